"""Redirect guard — enforces verdicts against the live session.

Provides:
- ``GuardState`` — per-cycle state machine positions.
- ``EnforcementState`` — session bookkeeping that prevents redirect loops.
- ``EnforcementOutcome`` — what one evaluation cycle did.
- ``RedirectGuard`` — evaluate, enforce at most once, reject stale results.

State machine for one cycle::

    Unchecked → Evaluating → Allowed
                           → Denied → Redirecting → Redirected

Exempt administrative paths go straight from Unchecked to Allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..access.classifier import SiteClassifier
from ..access.engine import DecisionEngine
from ..config import GuardConfig
from ..exceptions import ConfigurationError
from ..interfaces import EvaluationContext, Navigator
from ..logging import get_evaluation_logger
from ..models import AccessDecision, DecisionReason

logger = logging.getLogger(__name__)

EngineFactory = Callable[[EvaluationContext, GuardConfig], DecisionEngine]


class GuardState(str, Enum):
    UNCHECKED = "unchecked"
    EVALUATING = "evaluating"
    ALLOWED = "allowed"
    DENIED = "denied"
    REDIRECTING = "redirecting"
    REDIRECTED = "redirected"


@dataclass
class EnforcementState:
    """Session-scoped flags. Cleared by session end, ``reset()``, or an Allow."""

    already_redirected: bool = False
    previously_denied: bool = False

    def reset(self) -> None:
        self.already_redirected = False
        self.previously_denied = False


@dataclass
class EnforcementOutcome:
    """Result of one evaluate-and-enforce cycle."""

    decision: AccessDecision
    state: GuardState
    redirected: bool = False
    stale: bool = False
    evaluation_id: int = 0


class RedirectGuard:
    """Evaluates the current context and redirects on Deny, at most once.

    Each trigger (page load or in-page navigation) starts a new cycle with
    a new evaluation id. A cycle whose result arrives after a newer cycle
    has started is reported as stale and not enforced.

    Args:
        config: Guard configuration (safe URL, exemptions, timeouts).
        navigator: Performs the redirect.
        engine_factory: Builds a DecisionEngine per context. Defaults to
            ``DecisionEngine.from_context``.
        state: Session EnforcementState to share; a new one if omitted.
    """

    def __init__(
        self,
        config: GuardConfig | None = None,
        navigator: Navigator | None = None,
        *,
        engine_factory: Optional[EngineFactory] = None,
        state: Optional[EnforcementState] = None,
    ) -> None:
        if navigator is None:
            raise ConfigurationError("RedirectGuard requires a navigator")
        self._config = config or GuardConfig()
        self._navigator = navigator
        self._engine_factory = engine_factory or DecisionEngine.from_context
        self._enforcement = state or EnforcementState()
        self._classifier = SiteClassifier(self._config)
        self._state = GuardState.UNCHECKED
        self._generation = 0

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def enforcement(self) -> EnforcementState:
        return self._enforcement

    def reset(self) -> None:
        """Explicit session reset."""
        self._enforcement.reset()
        self._state = GuardState.UNCHECKED

    async def on_navigation(self, context: EvaluationContext) -> EnforcementOutcome:
        """Entry point for host-emitted in-page navigation events."""
        return await self.evaluate_and_enforce(context)

    async def evaluate_and_enforce(self, context: EvaluationContext) -> EnforcementOutcome:
        self._generation += 1
        generation = self._generation
        log = get_evaluation_logger(__name__, evaluation_id=generation)
        self._state = GuardState.UNCHECKED

        if self._classifier.is_exempt(context.address):
            log.info("Administrative path, skipping evaluation")
            decision = AccessDecision.allow(DecisionReason.EXEMPT, "administrative path")
            return self._allow(decision, generation)

        self._state = GuardState.EVALUATING
        decision = await self._evaluate(context, log)

        if generation != self._generation:
            log.info(
                "Discarding stale %s verdict; evaluation %d is current",
                decision.verdict.value,
                self._generation,
            )
            return EnforcementOutcome(decision, self._state, stale=True, evaluation_id=generation)

        log.info("Verdict %s (%s) %s", decision.verdict.value, decision.reason.value, decision.detail)
        if decision.allowed:
            return self._allow(decision, generation)
        return self._deny(decision, generation, log)

    async def _evaluate(self, context: EvaluationContext, log: logging.LoggerAdapter) -> AccessDecision:
        try:
            engine = self._engine_factory(context, self._config)
        except Exception as e:
            log.exception("Could not build decision engine: %s", e)
            return AccessDecision.deny(DecisionReason.EVALUATION_ERROR, "engine unavailable")
        return await engine.decide(context.address, context.principal, context.metadata)

    def _allow(self, decision: AccessDecision, generation: int) -> EnforcementOutcome:
        # A later Deny may redirect again.
        self._enforcement.reset()
        self._state = GuardState.ALLOWED
        return EnforcementOutcome(decision, self._state, evaluation_id=generation)

    def _deny(
        self,
        decision: AccessDecision,
        generation: int,
        log: logging.LoggerAdapter,
    ) -> EnforcementOutcome:
        self._state = GuardState.DENIED
        self._enforcement.previously_denied = True

        if self._enforcement.already_redirected:
            log.info("Redirect already issued this session, not navigating again")
            return EnforcementOutcome(decision, self._state, evaluation_id=generation)

        self._state = GuardState.REDIRECTING
        try:
            self._navigator.redirect_to(self._config.safe_url)
        except Exception as e:
            log.exception("Redirect to %s failed: %s", self._config.safe_url, e)
            self._state = GuardState.DENIED
            return EnforcementOutcome(decision, self._state, evaluation_id=generation)

        self._enforcement.already_redirected = True
        self._state = GuardState.REDIRECTED
        log.info("Redirected to %s", self._config.safe_url)
        return EnforcementOutcome(decision, self._state, redirected=True, evaluation_id=generation)


__all__ = [
    "EnforcementOutcome",
    "EnforcementState",
    "GuardState",
    "RedirectGuard",
]
