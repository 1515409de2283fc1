"""Simulated annealing acceptance criterion for the subset walk.

Implements the acceptance logic that decides whether a single attribute flip
is committed to the current subset, based on merit and temperature.
"""

from typing import Tuple

import numpy as np


class AcceptanceCriterion:
    """Simulated annealing acceptance decision logic.

    A candidate move is accepted when either of two independent triggers fires:
    1. Greedy: the candidate merit is higher than the current merit (or equal,
       under conservative selection)
    2. Annealing: a uniform draw in [0, 1) is at most exp(delta / temperature)

    Both triggers are evaluated on every step, and the temperature is cooled
    after the test whether or not the move was accepted. The first step of a
    walk therefore uses the undecayed start temperature.

    Attributes:
        start_temperature: Temperature restored by reset()
        temperature: Current acceptance temperature
        cooling_coefficient: Multiplicative decay applied after every test
        conservative: Whether equal merit counts as a greedy improvement
        rng: NumPy random number generator

    Example:
        >>> rng = np.random.RandomState(1)
        >>> criterion = AcceptanceCriterion(0.1, 0.4, conservative=False, rng=rng)
        >>> accept, reason = criterion.should_accept(
        ...     current_merit=0.650,
        ...     candidate_merit=0.652
        ... )
        >>> criterion.temperature  # Now 0.1 * 0.4
        0.04000000000000001
    """

    def __init__(
        self,
        start_temperature: float,
        cooling_coefficient: float,
        conservative: bool,
        rng: np.random.RandomState
    ):
        """Initialize the acceptance criterion.

        Args:
            start_temperature: Temperature at the start of each walk (> 0)
            cooling_coefficient: Multiplicative decay per step
            conservative: Accept equal-merit moves greedily
            rng: Shared NumPy random number generator

        Raises:
            ValueError: If start_temperature is not positive
        """
        if not start_temperature > 0:
            raise ValueError(f"Temperature must be positive, got {start_temperature}")

        self.start_temperature = start_temperature
        self.temperature = start_temperature
        self.cooling_coefficient = cooling_coefficient
        self.conservative = conservative
        self.rng = rng

    def reset(self):
        """Restore the start temperature at the beginning of a walk."""
        self.temperature = self.start_temperature

    def is_improvement(self, current_merit: float, candidate_merit: float) -> bool:
        """Greedy trigger: strict improvement, or non-worsening when conservative."""
        if self.conservative:
            return candidate_merit >= current_merit
        return candidate_merit > current_merit

    def get_acceptance_probability(self, differential: float) -> float:
        """Annealing acceptance probability exp(differential / temperature).

        Not clipped to 1, so improving moves give values >= 1. Once the
        temperature underflows to 0.0 the usual floating point rules apply:
        worse moves get 0, better moves get inf and unchanged merit gets NaN,
        which no draw can satisfy.

        Args:
            differential: candidate_merit - current_merit

        Returns:
            Acceptance probability (may exceed 1 or be NaN)
        """
        with np.errstate(divide='ignore', over='ignore', invalid='ignore'):
            exponent = np.float64(differential) / np.float64(self.temperature)
            return float(np.exp(exponent))

    def should_accept(
        self,
        current_merit: float,
        candidate_merit: float
    ) -> Tuple[bool, str]:
        """Decide whether to commit a candidate move, then cool down.

        Args:
            current_merit: Merit of the current subset
            candidate_merit: Merit of the candidate subset

        Returns:
            Tuple of (accept: bool, reason: str)
            - accept: True if the flip should be committed
            - reason: Human-readable explanation of decision

        Example:
            >>> accept, reason = criterion.should_accept(0.650, 0.655)
            >>> print(reason)
            'Improvement: 0.6550 > 0.6500'
        """
        differential = candidate_merit - current_merit

        improvement = self.is_improvement(current_merit, candidate_merit)

        acceptance_prob = self.get_acceptance_probability(differential)
        random_value = self.rng.random_sample()
        annealing = bool(random_value <= acceptance_prob)

        self.decay_temperature()

        if improvement:
            if differential == 0:
                return True, f"Equal: {candidate_merit:.4f} == {current_merit:.4f}"
            return True, f"Improvement: {candidate_merit:.4f} > {current_merit:.4f}"

        if annealing:
            return True, (
                f"Probabilistic: {candidate_merit:.4f} vs {current_merit:.4f}, "
                f"accepted (prob={acceptance_prob:.4f}, rand={random_value:.4f})"
            )

        return False, (
            f"Rejected: {candidate_merit:.4f} < {current_merit:.4f}, "
            f"prob={acceptance_prob:.4f} < rand={random_value:.4f}"
        )

    def decay_temperature(self):
        """Apply the cooling coefficient to the current temperature."""
        self.temperature *= self.cooling_coefficient

    def summary(self) -> str:
        """Generate human-readable summary of current state.

        Returns:
            Multi-line string describing acceptance criterion state
        """
        greedy = "improvements or equal merit" if self.conservative else "strict improvements"
        return (
            f"Acceptance Criterion:\n"
            f"  Temperature: {self.temperature:.6f}\n"
            f"  Cooling coefficient: {self.cooling_coefficient}\n"
            f"  Behavior:\n"
            f"    - Always accepts {greedy}\n"
            f"    - Accepts any move with prob = exp(delta / {self.temperature:.6f})\n"
            f"    - Temperature cools after every step"
        )
