"""Consolidated configuration for the annealing subset search.

This module provides a type-safe, validated configuration structure using
dataclasses. All configuration parameters are consolidated here with:
- Clear documentation
- Type hints
- Validation logic
- Sensible default values

The configuration is organized hierarchically:
    SearchConfig (root)
    ├── AnnealingConfig
    └── TrackingConfig

Annealing parameters can also be read from and written to Weka-style option
lists, so a search can be configured from a command line string:

    -C                 Use conservative selection
    -D                 Print debugging output
    -P <start set>     Starting set of attributes, eg. 1,3,5-7
    -R <seed>          Random seed
    -T <temperature>   Annealing start temperature
    -A <coefficient>   Annealing (cooling) coefficient
    -S <threshold>     Stopping threshold
    -I <iterations>    Number of iterations to start
    -M <steps>         Minimum steps per iteration

Usage:
    >>> from annealing_search.config import SearchConfig, AnnealingConfig
    >>> config = SearchConfig()  # Use defaults
    >>> config.validate()  # Check configuration validity

    >>> # Or from options
    >>> annealing = AnnealingConfig.from_options(['-C', '-I', '10', '-P', '1-3'])
    >>> annealing.to_options()
    ['-C', '-P', '1-3', '-R', '1', '-T', '0.1', '-I', '10', '-A', '0.4', '-S', '0.0005', '-M', '10']
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from annealing_search.exceptions import ConfigurationError


# ==============================================================================
# START SET PARSING
# ==============================================================================

def _parse_start_token(token: str, num_attributes: Optional[int]) -> int:
    """Convert one 1-based start set token to a 1-based attribute number."""
    token = token.strip().lower()

    if token == 'first':
        return 1

    if token == 'last':
        if num_attributes is None:
            # Syntax check only, the real value is resolved at search time
            return 1
        return num_attributes

    try:
        value = int(token)
    except ValueError:
        raise ConfigurationError(f"Invalid start set element: '{token}'") from None

    if value < 1:
        raise ConfigurationError(f"Start set attributes are numbered from 1, got {value}")

    return value


def parse_start_set(start_set: str, num_attributes: Optional[int] = None) -> List[int]:
    """Parse a start set specification into sorted 0-based attribute indices.

    The specification is a comma separated list of 1-based attribute numbers
    and ranges, with 'first' and 'last' accepted as range ends.

    Args:
        start_set: Specification such as '1,3,5-7' or 'first-3,last'
        num_attributes: Number of attributes in the dataset. When None, only
            the syntax is checked and no upper bound is enforced.

    Returns:
        Sorted list of unique 0-based attribute indices

    Raises:
        ConfigurationError: If the specification is malformed or names an
            attribute beyond num_attributes

    Example:
        >>> parse_start_set('1,3,5-7', num_attributes=10)
        [0, 2, 4, 5, 6]
    """
    if start_set is None or start_set.strip() == '':
        return []

    selected = set()

    for token in start_set.split(','):
        if token.strip() == '':
            raise ConfigurationError(f"Empty element in start set '{start_set}'")

        if '-' in token:
            low_token, _, high_token = token.partition('-')
            low = _parse_start_token(low_token, num_attributes)
            high = _parse_start_token(high_token, num_attributes)

            if num_attributes is not None and low > high:
                raise ConfigurationError(f"Invalid range in start set: '{token.strip()}'")

            numbers = range(low, high + 1)
        else:
            numbers = [_parse_start_token(token, num_attributes)]

        for number in numbers:
            if num_attributes is not None and number > num_attributes:
                raise ConfigurationError(
                    f"Start set attribute {number} is out of range "
                    f"(dataset has {num_attributes} attributes)"
                )
            selected.add(number - 1)

    return sorted(selected)


def format_start_set(indices: Sequence[int]) -> str:
    """Format 0-based attribute indices as a 1-based comma separated list."""
    return ','.join(str(index + 1) for index in indices)


# ==============================================================================
# ANNEALING CONFIGURATION
# ==============================================================================

@dataclass
class AnnealingConfig:
    """Simulated annealing subset search parameters.

    Each iteration starts from a subset (the start set for the first
    iteration, a random one otherwise) and walks the subset space by single
    attribute flips:
    - Accepts better subsets with probability 1
    - Accepts any subset with probability exp((new_merit - old_merit) / temperature)
    - Temperature is multiplied by the cooling coefficient after every step

    Attributes:
        conservative_selection: Also greedily accept moves that keep merit unchanged
        debug: Log every accepted step
        start_set: 1-based start set specification ('' = random start)
        random_seed: Seed of the random stream shared by all iterations
        start_temperature: Temperature at the start of each iteration
        cooling_coefficient: Multiplicative temperature decay per step
        convergence_threshold: Iteration stops when the average merit change
            per step falls below this value
        iterations: Number of independent iterations to run
        minimum_steps: Steps that must be taken before convergence is declared
    """
    conservative_selection: bool = False
    debug: bool = False
    start_set: str = ''
    random_seed: int = 1
    start_temperature: float = 0.1
    cooling_coefficient: float = 0.4
    convergence_threshold: float = 0.0005
    iterations: int = 5
    minimum_steps: int = 10

    def validate(self):
        """Validate annealing configuration.

        Raises:
            ConfigurationError: If any parameter is out of range
        """
        if not self.start_temperature > 0:
            raise ConfigurationError(
                f"start_temperature must be positive, got {self.start_temperature}"
            )
        if not 0 < self.cooling_coefficient <= 1:
            raise ConfigurationError(
                f"cooling_coefficient must be in (0, 1], got {self.cooling_coefficient}"
            )
        if not self.convergence_threshold >= 0:
            raise ConfigurationError(
                f"convergence_threshold must be non-negative, got {self.convergence_threshold}"
            )
        if self.iterations < 1:
            raise ConfigurationError(f"iterations must be positive, got {self.iterations}")
        if self.minimum_steps < 0:
            raise ConfigurationError(
                f"minimum_steps must be non-negative, got {self.minimum_steps}"
            )

        # Syntax only, bounds are checked once the dataset is known
        parse_start_set(self.start_set)

    def set_start_set(self, start_set: str):
        """Set the start set after checking its syntax.

        Args:
            start_set: 1-based specification, eg. '1,2,5-9,17'

        Raises:
            ConfigurationError: If the specification is malformed
        """
        parse_start_set(start_set)
        self.start_set = start_set

    @classmethod
    def from_options(cls, options: Sequence[str]) -> 'AnnealingConfig':
        """Build a validated config from a Weka-style option list.

        Options not present keep their defaults.

        Args:
            options: Option strings, eg. ['-C', '-T', '0.2', '-P', '1,3']

        Returns:
            Validated AnnealingConfig

        Raises:
            ConfigurationError: On unknown flags, missing values or values
                that are not numbers

        Example:
            >>> config = AnnealingConfig.from_options(['-I', '3', '-R', '42'])
            >>> config.iterations, config.random_seed
            (3, 42)
        """
        config = cls()
        remaining = list(options)

        while remaining:
            flag = remaining.pop(0)

            if flag == '':
                continue
            if flag == '-C':
                config.conservative_selection = True
                continue
            if flag == '-D':
                config.debug = True
                continue
            if flag not in _VALUE_OPTIONS:
                raise ConfigurationError(f"Unknown option: '{flag}'")
            if not remaining:
                raise ConfigurationError(f"Option '{flag}' requires a value")

            name, converter = _VALUE_OPTIONS[flag]
            raw_value = remaining.pop(0)

            if name == 'start_set':
                config.set_start_set(raw_value)
                continue

            try:
                value = converter(raw_value)
            except ValueError:
                raise ConfigurationError(
                    f"Option '{flag}' expects a number, got '{raw_value}'"
                ) from None

            setattr(config, name, value)

        config.validate()
        return config

    def to_options(self, resolved_start_set: Optional[Sequence[int]] = None) -> List[str]:
        """Convert the config back to a Weka-style option list.

        Args:
            resolved_start_set: 0-based start indices already resolved against
                a dataset. When given they are reported as individual 1-based
                numbers so equivalent specifications ('1-3' and '1,2,3')
                produce identical options.

        Returns:
            List of option strings accepted by from_options()
        """
        options = []

        if self.conservative_selection:
            options.append('-C')
        if self.debug:
            options.append('-D')

        if resolved_start_set is not None:
            options.extend(['-P', format_start_set(resolved_start_set)])
        elif self.start_set != '':
            options.extend(['-P', self.start_set])

        options.extend([
            '-R', str(self.random_seed),
            '-T', str(self.start_temperature),
            '-I', str(self.iterations),
            '-A', str(self.cooling_coefficient),
            '-S', str(self.convergence_threshold),
            '-M', str(self.minimum_steps)
        ])

        return options


# Flag -> (attribute name, converter)
_VALUE_OPTIONS = {
    '-P': ('start_set', str),
    '-R': ('random_seed', int),
    '-T': ('start_temperature', float),
    '-A': ('cooling_coefficient', float),
    '-S': ('convergence_threshold', float),
    '-I': ('iterations', int),
    '-M': ('minimum_steps', int),
}


# ==============================================================================
# TRACKING CONFIGURATION
# ==============================================================================

@dataclass
class TrackingConfig:
    """Database and logging configuration.

    Attributes:
        db_path: Path to SQLite database file (None = no run tracking)
        enable_wal: Whether to use WAL mode (better concurrency)
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_to_file: Whether to log to file in addition to stdout
        log_directory: Directory for log files
    """
    db_path: Optional[str] = None
    enable_wal: bool = True
    log_level: str = 'INFO'
    log_to_file: bool = False
    log_directory: str = 'logs'

    def validate(self):
        """Validate tracking configuration."""
        if self.log_level not in ['DEBUG', 'INFO', 'WARNING', 'ERROR']:
            raise ConfigurationError("log_level must be DEBUG, INFO, WARNING, or ERROR")


# ==============================================================================
# ROOT CONFIGURATION
# ==============================================================================

@dataclass
class SearchConfig:
    """Complete search configuration.

    Root configuration object for a search run. Create an instance and call
    validate() before use.

    Attributes:
        annealing: Annealing search parameters
        tracking: Database and logging configuration

    Example:
        >>> config = SearchConfig(annealing=AnnealingConfig(iterations=10))
        >>> config.validate()
        >>> print(config.summary())
    """
    annealing: AnnealingConfig = field(default_factory=AnnealingConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)

    def validate(self):
        """Validate entire configuration hierarchy.

        Raises:
            ConfigurationError: If any configuration parameter is invalid
        """
        self.annealing.validate()
        self.tracking.validate()

    def summary(self) -> str:
        """Generate a human-readable configuration summary.

        Returns:
            Multi-line string describing key configuration parameters
        """
        annealing = self.annealing
        lines = [
            "Search Configuration Summary",
            "=" * 50,
            f"Random seed: {annealing.random_seed}",
            "",
            "Annealing:",
            f"  Iterations: {annealing.iterations}",
            f"  Start temperature: {annealing.start_temperature}",
            f"  Cooling coefficient: {annealing.cooling_coefficient}",
            f"  Convergence threshold: {annealing.convergence_threshold}",
            f"  Minimum steps: {annealing.minimum_steps}",
            f"  Conservative selection: {annealing.conservative_selection}",
            f"  Start set: {annealing.start_set or 'random set'}",
            "",
            "Tracking:",
            f"  Database: {self.tracking.db_path or 'disabled'}",
            f"  Log level: {self.tracking.log_level}",
            ""
        ]
        return "\n".join(lines)
