"""Multi-start simulated annealing attribute subset search.

Every iteration walks the subset space from a fresh starting point (the
configured start set for the first iteration, a random subset otherwise) and
the best subset found across all iterations is returned.

Two entry points are provided:
- anneal_search(): plain function, all state passed in and returned
- SimulatedAnnealingSearch: configurable engine that remembers the dataset
  description between calls and exposes the best merit of the last search
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from annealing_search.config import AnnealingConfig, SearchConfig, format_start_set, parse_start_set
from annealing_search.core.annealing import AnnealingWalk
from annealing_search.core.feature_set import FeatureSet
from annealing_search.core.sampler import SubsetSampler
from annealing_search.dataset import DatasetDescriptor
from annealing_search.evaluators import (
    EvaluatorCapabilities,
    evaluate_subset,
    is_label_aware,
    is_subset_capable
)
from annealing_search.exceptions import ConfigurationError, IncompatibleEvaluatorError, SearchSpaceError
from annealing_search.tracking.database import SearchDatabase
from annealing_search.tracking.logger import (
    log_error,
    log_iteration,
    log_phase_end,
    log_phase_start,
    log_success,
    log_warning,
    setup_logger
)
from annealing_search.utils import compute_run_id


@dataclass
class IterationResult:
    """Outcome of one search iteration.

    Attributes:
        iteration: Iteration number (0-based)
        initial_subset: Starting attribute indices
        subset: Final attribute indices of the walk
        merit: Merit of the final subset
        steps: Steps taken before convergence
        accepted_steps: Steps whose flip was committed
        final_temperature: Temperature when the walk stopped
        new_best: Whether this iteration replaced the global best
        best_merit: Global best merit after this iteration
    """
    iteration: int
    initial_subset: List[int]
    subset: List[int]
    merit: float
    steps: int
    accepted_steps: int
    final_temperature: float
    new_best: bool
    best_merit: float


@dataclass
class SearchResult:
    """Best subset found by a search, plus per-iteration history."""
    subset: List[int]
    merit: float
    iterations: List[IterationResult] = field(default_factory=list)
    run_id: Optional[str] = None


def anneal_search(
    evaluator,
    num_attributes: int,
    label_index: Optional[int] = None,
    starting_subset: Optional[Sequence[int]] = None,
    config: Optional[AnnealingConfig] = None,
    capabilities: Optional[EvaluatorCapabilities] = None,
    rng: Optional[np.random.RandomState] = None,
    logger: Optional[logging.Logger] = None,
    database: Optional[SearchDatabase] = None,
    run_id: Optional[str] = None
) -> SearchResult:
    """Run a multi-start annealing search for the best attribute subset.

    Args:
        evaluator: Subset evaluator (object with evaluate_subset() or callable)
        num_attributes: Number of attributes, label included
        label_index: Label attribute index; ignored unless the evaluator is
            label-aware
        starting_subset: Attribute indices seeding the first iteration only
            (the label is dropped if present); None = random start
        config: Annealing parameters, defaults to AnnealingConfig()
        capabilities: Capability descriptor overriding evaluator.capabilities
        rng: Random stream shared by all iterations; seeded from
            config.random_seed when None
        logger: Logger for progress output
        database: Optional tracking database (must be initialized)
        run_id: Identifier for tracking, generated when None

    Returns:
        SearchResult with ascending best subset indices and best merit

    Raises:
        IncompatibleEvaluatorError: If the evaluator cannot score subsets
        SearchSpaceError: If the attribute space is degenerate
        ConfigurationError: If the config or starting subset is invalid

    Example:
        >>> evaluator = CallableEvaluator(lambda subset: subset.count() / 5.0)
        >>> result = anneal_search(evaluator, 5, starting_subset=[0, 2],
        ...                        config=AnnealingConfig(iterations=1))
        >>> result.subset, result.merit
        ([0, 1, 2, 3, 4], 1.0)
    """
    if config is None:
        config = AnnealingConfig()
    config.validate()

    if not is_subset_capable(evaluator, capabilities):
        raise IncompatibleEvaluatorError(f"{type(evaluator).__name__} is not a subset evaluator!")

    if not is_label_aware(evaluator, capabilities):
        label_index = None

    DatasetDescriptor(num_attributes=num_attributes, label_index=label_index).validate()

    if rng is None:
        rng = np.random.RandomState(config.random_seed)
    if logger is None:
        logger = logging.getLogger('annealing_search')

    start = None
    if starting_subset is not None:
        for index in starting_subset:
            if not 0 <= index < num_attributes:
                raise ConfigurationError(
                    f"Starting attribute {index} outside [0, {num_attributes})"
                )
        if label_index is not None and label_index in starting_subset:
            log_warning(logger, f"Start set contains the label attribute {label_index + 1}, dropping it")
        start = FeatureSet.from_indices(
            num_attributes,
            [index for index in starting_subset if index != label_index]
        )

    def evaluate(subset: FeatureSet) -> float:
        try:
            return evaluate_subset(evaluator, subset)
        except Exception as e:
            log_error(logger, e, f"evaluating subset {format_start_set(subset.to_list()) or '(empty)'}")
            raise

    sampler = SubsetSampler(num_attributes, label_index, rng)
    walk = AnnealingWalk.from_config(evaluate, sampler, config, logger=logger)

    if database is not None:
        run_id = run_id or compute_run_id(config, num_attributes)
        database.insert_run({
            'run_id': run_id,
            'timestamp': datetime.now().isoformat(),
            'num_attributes': num_attributes,
            'label_index': label_index,
            'options': config.to_options()
        })

    log_phase_start(
        logger,
        "Annealing subset search",
        f"{num_attributes} attributes, {config.iterations} iterations, "
        f"start set: {format_start_set(start.to_list()) if start is not None else 'random set'}"
    )
    start_time = time.time()

    best_subset: Optional[FeatureSet] = None
    best_merit = float('-inf')
    history = []

    for iteration in range(config.iterations):
        if iteration == 0 and start is not None:
            initial = start
        else:
            initial = sampler.sample()

        walk_result = walk.run(initial)

        new_best = best_subset is None or walk_result.merit > best_merit
        if new_best:
            reason = f"merit {walk_result.merit:.6f} > best {best_merit:.6f}"
            best_merit = walk_result.merit
            best_subset = walk_result.subset.copy()
        else:
            reason = f"merit {walk_result.merit:.6f} <= best {best_merit:.6f}"

        result = IterationResult(
            iteration=iteration,
            initial_subset=walk_result.initial_subset,
            subset=walk_result.subset.to_list(),
            merit=walk_result.merit,
            steps=walk_result.steps,
            accepted_steps=walk_result.accepted_steps,
            final_temperature=walk_result.final_temperature,
            new_best=new_best,
            best_merit=best_merit
        )
        history.append(result)

        log_iteration(logger, iteration, new_best, reason, {
            'merit': result.merit,
            'subset_size': len(result.subset),
            'steps': result.steps,
            'temperature': result.final_temperature
        })

        if database is not None:
            database.insert_iteration({
                'run_id': run_id,
                'timestamp': datetime.now().isoformat(),
                'iteration_num': iteration,
                'initial_subset': result.initial_subset,
                'final_subset': result.subset,
                'merit': result.merit,
                'steps': result.steps,
                'accepted_steps': result.accepted_steps,
                'final_temperature': result.final_temperature,
                'new_best': result.new_best
            })

    elapsed = time.time() - start_time
    best_list = best_subset.to_list()

    if database is not None:
        database.insert_run({
            'run_id': run_id,
            'timestamp': datetime.now().isoformat(),
            'num_attributes': num_attributes,
            'label_index': label_index,
            'options': config.to_options(),
            'best_merit': best_merit,
            'best_subset': best_list,
            'elapsed_sec': elapsed
        })

    log_success(logger, f"Best subset: {format_start_set(best_list) or '(empty)'} (merit {best_merit:.6f})")
    log_phase_end(logger, "Annealing subset search", elapsed)

    return SearchResult(subset=best_list, merit=best_merit, iterations=history, run_id=run_id)


class SimulatedAnnealingSearch:
    """Configurable simulated annealing attribute subset search.

    The engine remembers the dataset description between calls: passing a
    dataset starts a fresh run (random stream reseeded), while passing None
    reuses the previous attribute count and label index, keeps the random
    stream running and only resets the best subset and merit.

    Attributes:
        config: Annealing parameters
        logger: Logger for progress output
        database: Optional tracking database
        last_result: SearchResult of the most recent search

    Example:
        >>> engine = SimulatedAnnealingSearch()
        >>> engine.set_options(['-I', '10', '-P', '1,3'])
        >>> selected = engine.search(evaluator, DatasetDescriptor(20, label_index=19))
        >>> engine.best_merit
    """

    def __init__(
        self,
        config: Optional[AnnealingConfig] = None,
        logger: Optional[logging.Logger] = None,
        database: Optional[SearchDatabase] = None
    ):
        self.config = config if config is not None else AnnealingConfig()
        self.config.validate()
        self.logger = logger or logging.getLogger('annealing_search')
        self.database = database
        self.last_result: Optional[SearchResult] = None

        self._dataset: Optional[DatasetDescriptor] = None
        self._starting: Optional[List[int]] = None
        self._label_index: Optional[int] = None
        self._reset()

    @classmethod
    def from_config(cls, config: SearchConfig) -> 'SimulatedAnnealingSearch':
        """Build an engine with logging and tracking set up from a SearchConfig."""
        config.validate()
        tracking = config.tracking

        log_file = None
        if tracking.log_to_file:
            log_file = Path(tracking.log_directory) / 'annealing_search.log'
        logger = setup_logger(level=tracking.log_level, log_file=log_file)

        database = None
        if tracking.db_path is not None:
            database = SearchDatabase(tracking.db_path, enable_wal=tracking.enable_wal)
            database.initialize()

        return cls(config=config.annealing, logger=logger, database=database)

    def _reset(self):
        self._rng = np.random.RandomState(self.config.random_seed)
        self._best_subset: Optional[List[int]] = None
        self._best_merit = 0.0

    @property
    def best_merit(self) -> float:
        """Best merit found by the most recent search."""
        return self._best_merit

    @property
    def best_subset(self) -> Optional[List[int]]:
        """Best subset found by the most recent search."""
        return self._best_subset

    def set_options(self, options: Sequence[str]):
        """Replace the configuration with one parsed from an option list.

        Raises:
            ConfigurationError: If any option is malformed
        """
        self.config = AnnealingConfig.from_options(options)
        self._starting = None

    def get_options(self) -> List[str]:
        """Current configuration as an option list."""
        resolved = None
        if self._starting is not None:
            resolved = [index for index in self._starting if index != self._label_index]
        return self.config.to_options(resolved_start_set=resolved)

    def search(
        self,
        evaluator,
        dataset: Optional[DatasetDescriptor] = None,
        capabilities: Optional[EvaluatorCapabilities] = None
    ) -> List[int]:
        """Search for the best attribute subset.

        Args:
            evaluator: Subset evaluator
            dataset: Dataset description; None reuses the previous one
            capabilities: Capability descriptor overriding evaluator.capabilities

        Returns:
            Ascending list of selected attribute indices

        Raises:
            SearchSpaceError: If no dataset has ever been described
            IncompatibleEvaluatorError: If the evaluator cannot score subsets
        """
        if dataset is not None:
            self._reset()
            self._dataset = dataset
        elif self._dataset is None:
            raise SearchSpaceError("No dataset described: pass a DatasetDescriptor to the first search")
        else:
            self._best_subset = None
            self._best_merit = 0.0

        num_attributes = self._dataset.num_attributes

        if not is_subset_capable(evaluator, capabilities):
            raise IncompatibleEvaluatorError(f"{type(evaluator).__name__} is not a subset evaluator!")

        self._label_index = self._dataset.label_index if is_label_aware(evaluator, capabilities) else None

        self._starting = None
        if self.config.start_set != '':
            self._starting = parse_start_set(self.config.start_set, num_attributes)

        result = anneal_search(
            evaluator,
            num_attributes,
            label_index=self._label_index,
            starting_subset=self._starting,
            config=self.config,
            capabilities=capabilities,
            rng=self._rng,
            logger=self.logger,
            database=self.database
        )

        if self._dataset.attribute_names:
            names = self._dataset.names_for(result.subset)
            self.logger.info(f"Selected attributes: {', '.join(names) or '(none)'}")

        self.last_result = result
        self._best_subset = result.subset
        self._best_merit = result.merit
        return list(result.subset)

    def summary(self) -> str:
        """Short description of the search and its start set."""
        if self._starting is not None:
            start = format_start_set([i for i in self._starting if i != self._label_index])
        elif self.config.start_set != '':
            start = self.config.start_set
        else:
            start = 'random set'
        return f"\tSimulated annealing.\n\tStart set: {start}\n"

    def __str__(self) -> str:
        return self.summary()
