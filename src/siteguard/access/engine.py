"""DecisionEngine — combines classification, visibility and membership.

Order of checks for one evaluation is strictly sequential:
exemption → classification → visibility → membership. The engine never
raises; any failure on a Sensitive resource becomes a Deny.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import GuardConfig
from ..exceptions import EvaluationError, SiteGuardError
from ..interfaces import EvaluationContext
from ..models import (
    AccessDecision,
    Classification,
    DecisionReason,
    Principal,
    Resource,
    ResourceMetadata,
    Visibility,
)
from .classifier import SiteClassifier
from .membership import MembershipResolver
from .visibility import VisibilityResolver

logger = logging.getLogger(__name__)


class DecisionEngine:
    """Renders an Allow/Deny verdict for one resource and principal.

    Example::

        engine = DecisionEngine.from_context(context, config)
        decision = await engine.decide(context.address, context.principal)
        if decision.denied:
            ...
    """

    def __init__(
        self,
        classifier: SiteClassifier,
        visibility: VisibilityResolver,
        membership: MembershipResolver,
    ) -> None:
        self._classifier = classifier
        self._visibility = visibility
        self._membership = membership

    @classmethod
    def from_context(cls, context: EvaluationContext, config: GuardConfig) -> DecisionEngine:
        return cls(
            SiteClassifier(config),
            VisibilityResolver.from_context(context, config),
            MembershipResolver.from_context(context, config),
        )

    @property
    def classifier(self) -> SiteClassifier:
        return self._classifier

    async def decide(
        self,
        address: str,
        principal: Principal,
        metadata: Optional[ResourceMetadata] = None,
    ) -> AccessDecision:
        try:
            return await self._decide(address, principal, metadata)
        except SiteGuardError as e:
            logger.error("[%s] %s; denying", e.code, e.message)
            return AccessDecision.deny(DecisionReason.EVALUATION_ERROR, f"[{e.code}] {e.message}")
        except Exception as e:
            logger.exception("Access evaluation failed; denying: %s", e)
            return AccessDecision.deny(DecisionReason.EVALUATION_ERROR, f"unexpected {type(e).__name__}")

    async def _decide(
        self,
        address: str,
        principal: Principal,
        metadata: Optional[ResourceMetadata],
    ) -> AccessDecision:
        if self._classifier.is_exempt(address):
            return AccessDecision.allow(DecisionReason.EXEMPT, "administrative path")

        if self._classifier.classify(address, metadata) == Classification.UNCLASSIFIED:
            return AccessDecision.allow(DecisionReason.NOT_SENSITIVE)

        alias = self._classifier.extract_site_alias(address)
        if not alias:
            raise EvaluationError("Site alias could not be determined", address=address)
        resource = Resource(address=address, alias=alias, metadata=metadata)

        visibility = await self._visibility.resolve_visibility(resource)
        if visibility == Visibility.PRIVATE:
            return AccessDecision.allow(DecisionReason.PRIVATE_RESOURCE)
        # UNKNOWN falls through as PUBLIC: membership is required.

        result = await self._membership.resolve(resource, principal)
        if result.authorized:
            return AccessDecision.allow(DecisionReason.MEMBER, f"confirmed by {result.source}")
        if result.source is None:
            return AccessDecision.deny(DecisionReason.NOT_MEMBER, "no backend produced an authorized set")
        return AccessDecision.deny(DecisionReason.NOT_MEMBER, f"not in set from {result.source}")


__all__ = ["DecisionEngine"]
