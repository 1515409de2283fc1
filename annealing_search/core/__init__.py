"""Core annealing search abstractions.

This subpackage provides clean, testable implementations of the core
search concepts:
- Attribute subsets (bit vectors over attribute indices)
- Random sampling (starting subsets and attribute draws)
- Acceptance criteria (simulated annealing)
- The single-iteration annealing walk
"""

from annealing_search.core.feature_set import FeatureSet
from annealing_search.core.sampler import SubsetSampler
from annealing_search.core.acceptance import AcceptanceCriterion
from annealing_search.core.annealing import AnnealingWalk, SearchState, WalkResult

__all__ = [
    'FeatureSet',
    'SubsetSampler',
    'AcceptanceCriterion',
    'AnnealingWalk',
    'SearchState',
    'WalkResult'
]
