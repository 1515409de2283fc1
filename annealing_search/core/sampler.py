"""Random attribute sampling for the annealing search.

Provides the random starting subsets for each search iteration and the
random attribute draws used to generate single-flip moves.
"""

from typing import Optional

import numpy as np

from annealing_search.core.feature_set import FeatureSet
from annealing_search.exceptions import SearchSpaceError


class SubsetSampler:
    """Draws random attributes and random starting subsets.

    All draws come from the random number generator handed in by the caller,
    so every iteration of a search shares one reproducible stream. The label
    attribute (if any) is never drawn.

    Attributes:
        num_attributes: Number of attributes in the data
        label_index: Index of the label attribute, or None
        rng: NumPy random number generator

    Example:
        >>> rng = np.random.RandomState(1)
        >>> sampler = SubsetSampler(num_attributes=20, label_index=19, rng=rng)
        >>> start = sampler.sample()
        >>> 19 in start
        False
    """

    def __init__(
        self,
        num_attributes: int,
        label_index: Optional[int],
        rng: np.random.RandomState
    ):
        """Initialize the sampler.

        Args:
            num_attributes: Number of attributes in the data
            label_index: Index of the label attribute, or None
            rng: Shared NumPy random number generator

        Raises:
            SearchSpaceError: If no attribute is available to draw
        """
        if num_attributes < 1:
            raise SearchSpaceError(f"Need at least one attribute, got {num_attributes}")

        if label_index is not None and num_attributes < 2:
            raise SearchSpaceError(
                "Need at least two attributes when a label attribute is designated"
            )

        self.num_attributes = num_attributes
        self.label_index = label_index
        self.rng = rng

    def draw_index(self) -> int:
        """Draw a uniform random attribute index other than the label.

        Returns:
            Attribute index in [0, num_attributes)
        """
        index = self.label_index
        while index == self.label_index:
            index = int(self.rng.randint(self.num_attributes))
        return index

    def sample(self) -> FeatureSet:
        """Draw a random starting subset.

        The subset size is floor(sqrt(u)) with u uniform in
        [0, num_attributes), which favours small starting subsets. Members
        are then drawn uniformly until that many distinct non-label
        attributes have been included.

        Returns:
            Random FeatureSet (empty when the drawn size is 0)
        """
        subset = FeatureSet(self.num_attributes)
        remaining = int(np.sqrt(self.rng.randint(self.num_attributes)))

        while remaining > 0:
            index = int(self.rng.randint(self.num_attributes))
            if not subset.get(index) and index != self.label_index:
                subset.set(index)
                remaining -= 1

        return subset
