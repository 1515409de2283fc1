"""Simulated Annealing Attribute Subset Search.

Selects the subset of dataset attributes that maximises a merit score
supplied by an evaluator, using simulated annealing with random restarts:
- Each iteration walks the subset space by single attribute flips
- Worse subsets are accepted with a probability that cools every step
- The best subset across all iterations is returned

The package provides configuration (dataclasses and Weka-style options),
the core search abstractions, ready-made evaluators and run tracking via
logging and a SQLite database.
"""

__version__ = "1.0.0"

from annealing_search.config import AnnealingConfig, SearchConfig, TrackingConfig
from annealing_search.core import FeatureSet
from annealing_search.dataset import DatasetDescriptor
from annealing_search.evaluators import (
    CallableEvaluator,
    CrossValidationEvaluator,
    EvaluatorCapabilities,
    RedundancyEvaluator,
    SubsetEvaluator
)
from annealing_search.exceptions import (
    AnnealingSearchError,
    ConfigurationError,
    IncompatibleEvaluatorError,
    SearchSpaceError
)
from annealing_search.search import SearchResult, SimulatedAnnealingSearch, anneal_search

__all__ = [
    'AnnealingConfig',
    'SearchConfig',
    'TrackingConfig',
    'FeatureSet',
    'DatasetDescriptor',
    'CallableEvaluator',
    'CrossValidationEvaluator',
    'EvaluatorCapabilities',
    'RedundancyEvaluator',
    'SubsetEvaluator',
    'AnnealingSearchError',
    'ConfigurationError',
    'IncompatibleEvaluatorError',
    'SearchSpaceError',
    'SearchResult',
    'SimulatedAnnealingSearch',
    'anneal_search'
]
