"""Verdict enforcement for the current page session.

Usage (in a host integration)::

    from siteguard.enforcement import get_redirect_guard

    guard = get_redirect_guard(config, navigator=browser_navigator)
    await guard.evaluate_and_enforce(context)      # on page load
    await guard.on_navigation(new_context)         # on client-side route change
"""

from __future__ import annotations

from ..config import GuardConfig
from ..interfaces import Navigator
from .guard import (
    EnforcementOutcome,
    EnforcementState,
    GuardState,
    RedirectGuard,
)

# ── Session singleton ───────────────────────────────────────────

_guard: RedirectGuard | None = None


def get_redirect_guard(
    config: GuardConfig | None = None,
    navigator: Navigator | None = None,
) -> RedirectGuard:
    """Get or create the session's RedirectGuard.

    Args:
        config: Guard configuration (used only on first call).
        navigator: Navigator (required on first call).

    Returns:
        RedirectGuard instance.
    """
    global _guard
    if _guard is None:
        _guard = RedirectGuard(config, navigator)
    return _guard


def reset_redirect_guard() -> None:
    """Drop the session guard (session end, or tests)."""
    global _guard
    _guard = None


__all__ = [
    "EnforcementOutcome",
    "EnforcementState",
    "GuardState",
    "RedirectGuard",
    "get_redirect_guard",
    "reset_redirect_guard",
]
