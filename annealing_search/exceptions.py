"""Exception types raised by the annealing subset search."""


class AnnealingSearchError(Exception):
    """Base class for all errors raised by this package."""

    pass


class ConfigurationError(AnnealingSearchError, ValueError):
    """Raised when an option or configuration value is malformed or out of range."""

    pass


class IncompatibleEvaluatorError(AnnealingSearchError, TypeError):
    """Raised when the supplied evaluator cannot score arbitrary attribute subsets."""

    pass


class SearchSpaceError(AnnealingSearchError, ValueError):
    """Raised when the attribute space leaves the search nothing valid to draw."""

    pass
