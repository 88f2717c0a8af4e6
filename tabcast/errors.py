"""Error taxonomy shared by all engines.

Engines validate their preconditions and raise one of the exceptions below before any
computation starts, so a failed call never leaves a half-updated dataset behind. Callers that
need structured results instead of exceptions use :meth:`TabcastError.report` (the
:class:`~tabcast.session.AnalysisSession` does this for every operation).

Undefined metrics (an R² with zero total variance, a correlation with fewer than two paired
observations) are *not* errors; they are returned as NaN / ``None`` values.
"""

from dataclasses import dataclass


__all__ = [
    "ConfigurationError",
    "ErrorReport",
    "InsufficientDataError",
    "TabcastError",
]


@dataclass(frozen=True)
class ErrorReport:
    """Structured description of a failed operation.

    Attributes:
        kind: Machine-readable error category (``configuration``, ``insufficient_data``).
        message: Human-readable explanation suitable for display.
    """

    kind: str
    message: str


class TabcastError(Exception):
    """Base class for all engine errors."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def report(self) -> ErrorReport:
        """Return the error as a structured ``(kind, message)`` record."""
        return ErrorReport(kind=self.kind, message=self.message)


class ConfigurationError(TabcastError):
    """A required column or option was not selected, or names something that does not exist."""

    kind = "configuration"


class InsufficientDataError(TabcastError):
    """Too few usable observations to run the requested computation."""

    kind = "insufficient_data"

    def __init__(self, message: str, *, n_available: int, n_required: int) -> None:
        super().__init__(message)
        self.n_available = n_available
        self.n_required = n_required
