"""Subset merit evaluators and their capability descriptors.

The search treats an evaluator as a black box that scores attribute subsets.
What an evaluator can do is declared explicitly through an
EvaluatorCapabilities descriptor, either passed next to the evaluator or
carried as its `capabilities` attribute:
- subset_capable: the evaluator can score arbitrary subsets
- label_aware: the evaluator designates a label attribute that must never be
  selected

This module also provides ready-made evaluators:
- CallableEvaluator: wraps a plain function of a FeatureSet
- CrossValidationEvaluator: cross-validated score of a sklearn estimator
  trained on the selected columns (label-aware)
- RedundancyEvaluator: unsupervised coverage/redundancy trade-off based on
  column correlations
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, clone
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import StratifiedKFold, cross_val_score
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from annealing_search.core.feature_set import FeatureSet
from annealing_search.dataset import DatasetDescriptor


@dataclass(frozen=True)
class EvaluatorCapabilities:
    """What an evaluator supports.

    Attributes:
        subset_capable: Can score arbitrary attribute subsets
        label_aware: Designates a label attribute to exclude from the search
    """
    subset_capable: bool = True
    label_aware: bool = False


def get_capabilities(
    evaluator,
    capabilities: Optional[EvaluatorCapabilities] = None
) -> EvaluatorCapabilities:
    """Resolve the capability descriptor of an evaluator.

    An explicitly passed descriptor wins over the evaluator's own
    `capabilities` attribute. Evaluators declaring nothing are treated as
    unable to score subsets.
    """
    if capabilities is not None:
        return capabilities

    declared = getattr(evaluator, 'capabilities', None)
    if isinstance(declared, EvaluatorCapabilities):
        return declared

    return EvaluatorCapabilities(subset_capable=False, label_aware=False)


def is_subset_capable(evaluator, capabilities: Optional[EvaluatorCapabilities] = None) -> bool:
    return get_capabilities(evaluator, capabilities).subset_capable


def is_label_aware(evaluator, capabilities: Optional[EvaluatorCapabilities] = None) -> bool:
    return get_capabilities(evaluator, capabilities).label_aware


def evaluate_subset(evaluator, subset: FeatureSet) -> float:
    """Score a subset with either an evaluator object or a plain callable."""
    if hasattr(evaluator, 'evaluate_subset'):
        return float(evaluator.evaluate_subset(subset))
    return float(evaluator(subset))


class SubsetEvaluator:
    """Base class for evaluators scoring attribute subsets.

    Subclasses implement evaluate_subset() and may expose the dataset they
    describe through the `dataset` attribute.
    """

    capabilities = EvaluatorCapabilities(subset_capable=True, label_aware=False)
    dataset: Optional[DatasetDescriptor] = None

    def evaluate_subset(self, subset: FeatureSet) -> float:
        raise NotImplementedError(
            f"{type(self).__name__} must implement evaluate_subset()"
        )

    def __call__(self, subset: FeatureSet) -> float:
        return self.evaluate_subset(subset)


class CallableEvaluator(SubsetEvaluator):
    """Adapts a plain merit function to the evaluator interface.

    Example:
        >>> evaluator = CallableEvaluator(lambda subset: subset.count() / 5.0)
        >>> evaluator.evaluate_subset(FeatureSet.from_indices(5, [0, 2]))
        0.4
    """

    def __init__(
        self,
        func: Callable[[FeatureSet], float],
        label_aware: bool = False,
        dataset: Optional[DatasetDescriptor] = None
    ):
        self.func = func
        self.capabilities = EvaluatorCapabilities(subset_capable=True, label_aware=label_aware)
        self.dataset = dataset

    def evaluate_subset(self, subset: FeatureSet) -> float:
        return float(self.func(subset))


class CrossValidationEvaluator(SubsetEvaluator):
    """Wrapper evaluator: cross-validated score of a model on the subset.

    Attribute indices refer to the columns of `data`, label column included,
    so the label keeps its position and is excluded by the search.

    Attributes:
        data: DataFrame with attribute columns and the label column
        label: Name of the label column
        estimator: sklearn estimator, cloned for every evaluation
        cv: Number of stratified folds
        scoring: sklearn scoring name
        random_state: Seed for fold shuffling
        empty_merit: Merit assigned to the empty subset
        dataset: DatasetDescriptor for data

    Example:
        >>> evaluator = CrossValidationEvaluator(df, label='target')
        >>> merit = evaluator.evaluate_subset(FeatureSet.from_indices(df.shape[1], [0, 3]))
    """

    capabilities = EvaluatorCapabilities(subset_capable=True, label_aware=True)

    def __init__(
        self,
        data: pd.DataFrame,
        label: str,
        estimator: Optional[BaseEstimator] = None,
        cv: int = 5,
        scoring: str = 'roc_auc',
        random_state: int = 315,
        empty_merit: float = 0.0
    ):
        self.data = data
        self.label = label
        self.dataset = DatasetDescriptor.from_dataframe(data, label=label)

        if estimator is None:
            estimator = Pipeline([
                ('scaler', StandardScaler()),
                ('classifier', LogisticRegression(max_iter=1000, class_weight='balanced'))
            ])

        self.estimator = estimator
        self.cv = cv
        self.scoring = scoring
        self.random_state = random_state
        self.empty_merit = empty_merit

    def evaluate_subset(self, subset: FeatureSet) -> float:
        indices = [index for index in subset.to_list() if index != self.dataset.label_index]
        if not indices:
            return self.empty_merit

        columns = self.data.columns[indices]
        folds = StratifiedKFold(n_splits=self.cv, shuffle=True, random_state=self.random_state)

        scores = cross_val_score(
            clone(self.estimator),
            self.data[columns],
            self.data[self.label],
            cv=folds,
            scoring=self.scoring
        )

        return float(np.mean(scores))


class RedundancyEvaluator(SubsetEvaluator):
    """Unsupervised evaluator trading column coverage against redundancy.

    merit = coverage - redundancy_weight * redundancy, where
    - coverage is the mean over all columns of the strongest absolute
      correlation with any selected column (1.0 when every column is selected)
    - redundancy is the mean pairwise absolute correlation inside the subset
      (0.0 for fewer than two columns)

    All columns of `data` must be numeric.

    Attributes:
        redundancy_weight: Penalty weight for redundancy
        correlations: Absolute correlation matrix (n_columns x n_columns)
        dataset: DatasetDescriptor for data (no label)

    Example:
        >>> evaluator = RedundancyEvaluator(df, redundancy_weight=0.5)
        >>> merit = evaluator.evaluate_subset(FeatureSet.from_indices(df.shape[1], [1, 4]))
    """

    capabilities = EvaluatorCapabilities(subset_capable=True, label_aware=False)

    def __init__(self, data: pd.DataFrame, redundancy_weight: float = 0.5):
        if redundancy_weight < 0:
            raise ValueError(f"redundancy_weight must be non-negative, got {redundancy_weight}")

        self.redundancy_weight = redundancy_weight
        self.dataset = DatasetDescriptor.from_dataframe(data)

        # Constant columns have undefined correlation, treat them as unrelated
        correlations = data.corr().abs().fillna(0.0).to_numpy(dtype=float, copy=True)
        np.fill_diagonal(correlations, 1.0)
        self.correlations = correlations

    def evaluate_subset(self, subset: FeatureSet) -> float:
        indices = subset.to_list()
        if not indices:
            return 0.0

        selected = self.correlations[indices]
        coverage = float(np.mean(selected.max(axis=0)))

        redundancy = 0.0
        if len(indices) > 1:
            within = selected[:, indices]
            upper_indices = np.triu_indices(len(indices), k=1)
            redundancy = float(np.mean(within[upper_indices]))

        return coverage - self.redundancy_weight * redundancy
