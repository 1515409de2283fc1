"""Fixed-size attribute subsets.

A FeatureSet is a boolean mask over the attributes of a dataset: bit i set
means attribute i is part of the subset.
"""

from typing import Iterable, List

import numpy as np


class FeatureSet:
    """Bit vector of included attributes.

    Attributes:
        num_attributes: Length of the mask (number of attributes in the data)
        mask: Boolean numpy array, True where the attribute is included

    Example:
        >>> subset = FeatureSet.from_indices(5, [0, 2])
        >>> subset.flip(3)
        True
        >>> subset.to_list()
        [0, 2, 3]
    """

    def __init__(self, num_attributes: int):
        if num_attributes < 0:
            raise ValueError(f"num_attributes must be non-negative, got {num_attributes}")

        self.num_attributes = num_attributes
        self.mask = np.zeros(num_attributes, dtype=bool)

    @classmethod
    def from_indices(cls, num_attributes: int, indices: Iterable[int]) -> 'FeatureSet':
        """Build a subset by setting exactly the given attribute indices."""
        subset = cls(num_attributes)
        for index in indices:
            subset.set(index)
        return subset

    def get(self, index: int) -> bool:
        return bool(self.mask[index])

    def set(self, index: int):
        self.mask[index] = True

    def clear(self, index: int):
        self.mask[index] = False

    def flip(self, index: int) -> bool:
        """Include the attribute if absent, exclude it if present.

        Returns:
            True if the attribute is included after the flip
        """
        self.mask[index] = not self.mask[index]
        return bool(self.mask[index])

    def count(self) -> int:
        """Number of included attributes."""
        return int(np.count_nonzero(self.mask))

    def copy(self) -> 'FeatureSet':
        clone = FeatureSet(self.num_attributes)
        clone.mask = self.mask.copy()
        return clone

    def to_list(self) -> List[int]:
        """Included attribute indices in ascending order (empty list if none)."""
        return np.flatnonzero(self.mask).tolist()

    def __contains__(self, index: int) -> bool:
        return 0 <= index < self.num_attributes and bool(self.mask[index])

    def __eq__(self, other) -> bool:
        if not isinstance(other, FeatureSet):
            return NotImplemented
        return (
            self.num_attributes == other.num_attributes
            and bool(np.array_equal(self.mask, other.mask))
        )

    def __repr__(self) -> str:
        return f"FeatureSet({self.num_attributes}, {self.to_list()})"
