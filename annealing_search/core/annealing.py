"""Single-iteration annealing walk over attribute subsets.

One walk starts from an initial subset and repeatedly proposes flipping one
random attribute, committing the flip when the acceptance criterion allows
it, until the average merit change per step drops below the convergence
threshold.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from annealing_search.config import AnnealingConfig
from annealing_search.core.acceptance import AcceptanceCriterion
from annealing_search.core.feature_set import FeatureSet
from annealing_search.core.sampler import SubsetSampler
from annealing_search.tracking.logger import log_step


@dataclass
class SearchState:
    """Mutable state of one annealing walk.

    Attributes:
        subset: Current subset
        merit: Merit of the current subset
        temperature: Temperature after the most recent step
        change_sum: Sum of absolute merit changes of accepted steps
        steps: Number of steps taken
        accepted_steps: Number of steps whose flip was committed
    """
    subset: FeatureSet
    merit: float
    temperature: float
    change_sum: float = 0.0
    steps: int = 0
    accepted_steps: int = 0

    @property
    def average_change(self) -> float:
        if self.steps == 0:
            return float('inf')
        return self.change_sum / self.steps

    def has_converged(self, threshold: float, minimum_steps: int) -> bool:
        """Whether the walk is quiet enough, for long enough, to stop."""
        return self.average_change < threshold and self.steps > minimum_steps


@dataclass
class WalkResult:
    """Outcome of one annealing walk."""
    initial_subset: List[int]
    subset: FeatureSet
    merit: float
    steps: int
    accepted_steps: int
    final_temperature: float
    trajectory: List[float] = field(default_factory=list)


class AnnealingWalk:
    """Runs single annealing walks with shared sampler and acceptance logic.

    Attributes:
        evaluate: Callable scoring a FeatureSet (higher is better)
        sampler: SubsetSampler drawing the attribute to flip
        criterion: AcceptanceCriterion deciding each move
        convergence_threshold: Average change below which the walk stops
        minimum_steps: Steps required before convergence can be declared
        debug: Log every accepted step
        logger: Logger for the debug output

    Example:
        >>> rng = np.random.RandomState(1)
        >>> sampler = SubsetSampler(5, None, rng)
        >>> walk = AnnealingWalk.from_config(evaluate, sampler, AnnealingConfig())
        >>> result = walk.run(sampler.sample())
    """

    def __init__(
        self,
        evaluate: Callable[[FeatureSet], float],
        sampler: SubsetSampler,
        criterion: AcceptanceCriterion,
        convergence_threshold: float,
        minimum_steps: int,
        debug: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.evaluate = evaluate
        self.sampler = sampler
        self.criterion = criterion
        self.convergence_threshold = convergence_threshold
        self.minimum_steps = minimum_steps
        self.debug = debug
        self.logger = logger or logging.getLogger('annealing_search')

    @classmethod
    def from_config(
        cls,
        evaluate: Callable[[FeatureSet], float],
        sampler: SubsetSampler,
        config: AnnealingConfig,
        logger: Optional[logging.Logger] = None
    ) -> 'AnnealingWalk':
        """Build a walk whose criterion draws from the sampler's random stream."""
        criterion = AcceptanceCriterion(
            start_temperature=config.start_temperature,
            cooling_coefficient=config.cooling_coefficient,
            conservative=config.conservative_selection,
            rng=sampler.rng
        )
        return cls(
            evaluate=evaluate,
            sampler=sampler,
            criterion=criterion,
            convergence_threshold=config.convergence_threshold,
            minimum_steps=config.minimum_steps,
            debug=config.debug,
            logger=logger
        )

    def step(self, state: SearchState) -> bool:
        """Propose one attribute flip and commit it if accepted.

        Args:
            state: Walk state, updated in place

        Returns:
            True if the flip was committed
        """
        candidate = state.subset.copy()
        index = self.sampler.draw_index()
        candidate.flip(index)

        candidate_merit = float(self.evaluate(candidate))
        differential = candidate_merit - state.merit

        accepted, reason = self.criterion.should_accept(state.merit, candidate_merit)
        state.temperature = self.criterion.temperature

        if accepted:
            state.subset.flip(index)
            state.merit = candidate_merit
            state.change_sum += abs(differential)
            state.accepted_steps += 1

        state.steps += 1

        if accepted and self.debug:
            log_step(self.logger, state.steps, state.subset.to_list(), state.merit, reason)

        return accepted

    def run(self, initial: FeatureSet) -> WalkResult:
        """Walk from the initial subset until convergence.

        The walk has no step limit: it only ends through its convergence
        test, so a zero threshold with a noise-free evaluator may never stop.

        Args:
            initial: Starting subset (not modified)

        Returns:
            WalkResult with the final subset and its merit
        """
        self.criterion.reset()

        if self.debug:
            for line in self.criterion.summary().splitlines():
                self.logger.info(line)

        state = SearchState(
            subset=initial.copy(),
            merit=float(self.evaluate(initial)),
            temperature=self.criterion.temperature
        )
        trajectory = [state.merit]

        done = False
        while not done:
            if self.step(state):
                trajectory.append(state.merit)
            done = state.has_converged(self.convergence_threshold, self.minimum_steps)

        return WalkResult(
            initial_subset=initial.to_list(),
            subset=state.subset,
            merit=state.merit,
            steps=state.steps,
            accepted_steps=state.accepted_steps,
            final_temperature=state.temperature,
            trajectory=trajectory
        )
