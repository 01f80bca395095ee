"""Error taxonomy for the weighting pipeline."""


class WeightingError(Exception):
    """Base error for the weighting domain."""


class InvalidInputError(WeightingError, ValueError):
    """Raised when a query is missing, blank, or not text."""


class ExternalProviderError(WeightingError, RuntimeError):
    """Raised by corpus context providers when statistics cannot be produced.

    Never escapes ``ContextualScorer``; the scorer substitutes defaults.
    """


class DependencyContractError(WeightingError, TypeError):
    """Raised when the weight combiner receives malformed component outputs."""
