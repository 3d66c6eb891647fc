"""Exception hierarchy for the site access guard.

All errors inherit from SiteGuardError and carry a stable ``code``.
Backend errors are contained at the resolver boundary; they are logged
with their code and never reach the host.

Usage:
    from siteguard.exceptions import BackendUnavailable

    raise BackendUnavailable("no directory client", backend="directory")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "SiteGuardError",
    "ConfigurationError",
    "ClassificationAmbiguous",
    "BackendError",
    "BackendTimeout",
    "BackendUnavailable",
    "VisibilityUnresolvable",
    "TotalResolutionFailure",
    "EvaluationError",
]


class SiteGuardError(Exception):
    """Base exception for the site access guard.

    Attributes:
        code: Stable error code string (e.g. "BACKEND_TIMEOUT").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(SiteGuardError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class ClassificationAmbiguous(SiteGuardError):
    """Metadata missing or contradictory. Treated as Unclassified."""

    code: str = "CLASSIFICATION_AMBIGUOUS"


class BackendError(SiteGuardError):
    """A visibility or membership backend produced no usable result."""

    code: str = "BACKEND_ERROR"


class BackendTimeout(BackendError):
    code: str = "BACKEND_TIMEOUT"
    message: str = "Backend call timed out"


class BackendUnavailable(BackendError):
    code: str = "BACKEND_UNAVAILABLE"
    message: str = "Backend is not reachable from this context"


class VisibilityUnresolvable(SiteGuardError):
    """No visibility signal resolved. Treated as Public."""

    code: str = "VISIBILITY_UNRESOLVABLE"


class TotalResolutionFailure(SiteGuardError):
    """Every membership backend failed."""

    code: str = "TOTAL_RESOLUTION_FAILURE"


class EvaluationError(SiteGuardError):
    """Evaluation of a Sensitive resource could not complete."""

    code: str = "EVALUATION_ERROR"
