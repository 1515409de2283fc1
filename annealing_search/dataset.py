"""Structural description of the dataset a search runs over."""

from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from annealing_search.exceptions import SearchSpaceError


@dataclass
class DatasetDescriptor:
    """Attribute count and label position of a dataset.

    The search never looks at the data itself, only at how many attributes
    there are and which one (if any) is the label.

    Attributes:
        num_attributes: Number of attributes, label included
        label_index: 0-based index of the label attribute, or None
        attribute_names: Optional attribute names, used for reporting
    """
    num_attributes: int
    label_index: Optional[int] = None
    attribute_names: List[str] = field(default_factory=list)

    def validate(self):
        """Check that the attribute space is searchable.

        Raises:
            SearchSpaceError: If there are no attributes, the label index is
                out of range, or the label is the only attribute
        """
        if self.num_attributes < 1:
            raise SearchSpaceError(f"Need at least one attribute, got {self.num_attributes}")

        if self.label_index is not None:
            if not 0 <= self.label_index < self.num_attributes:
                raise SearchSpaceError(
                    f"Label index {self.label_index} outside [0, {self.num_attributes})"
                )
            if self.num_attributes < 2:
                raise SearchSpaceError(
                    "Need at least two attributes when a label attribute is designated"
                )

        if self.attribute_names and len(self.attribute_names) != self.num_attributes:
            raise SearchSpaceError(
                f"Got {len(self.attribute_names)} attribute names for "
                f"{self.num_attributes} attributes"
            )

    @classmethod
    def from_dataframe(cls, data: pd.DataFrame, label: Optional[str] = None) -> 'DatasetDescriptor':
        """Describe a DataFrame whose columns are the attributes.

        Args:
            data: DataFrame holding attributes (and the label column, if any)
            label: Name of the label column, or None

        Returns:
            DatasetDescriptor for the DataFrame

        Raises:
            SearchSpaceError: If the label column does not exist
        """
        label_index = None
        if label is not None:
            if label not in data.columns:
                raise SearchSpaceError(f"Label column '{label}' not in data")
            label_index = int(data.columns.get_loc(label))

        return cls(
            num_attributes=data.shape[1],
            label_index=label_index,
            attribute_names=[str(column) for column in data.columns]
        )

    def names_for(self, indices: List[int]) -> List[str]:
        """Attribute names for the given indices (index strings when unnamed)."""
        if not self.attribute_names:
            return [str(index) for index in indices]
        return [self.attribute_names[index] for index in indices]
