"""Exception types raised by the analytics engine."""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for every error the engine raises."""


class InvalidInputError(AnalyticsError, ValueError):
    """Input rejected before any formula is evaluated."""


class NonConvergentError(AnalyticsError):
    """
    Implied volatility iteration did not settle.

    best_estimate is the volatility with the smallest residual seen so far
    (None when no iteration ran). Treat it as best-effort, not authoritative.
    """

    def __init__(
        self,
        message: str,
        best_estimate: Optional[float] = None,
        residual: Optional[float] = None,
        iterations: int = 0,
    ) -> None:
        super().__init__(message)
        self.best_estimate = best_estimate
        self.residual = residual
        self.iterations = iterations
