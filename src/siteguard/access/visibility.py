"""Visibility resolution for Sensitive resources.

Signals are consulted in precedence order, first answer wins:

1. ``ResourcePrivacySignal`` — explicit privacy property on the resource record.
2. ``FederatedGroupSignal`` / ``DirectoryGroupSignal`` — the owning group's
   declared visibility string or join/edit flags.
3. ``RenderedBannerSignal`` — the privacy label rendered on the page.

A signal that raises or times out is logged and skipped. Only when every
signal is exhausted does the resolver return ``Visibility.UNKNOWN``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..config import GuardConfig
from ..exceptions import BackendTimeout, VisibilityUnresolvable
from ..interfaces import DirectoryClient, EvaluationContext, FederatedGroupClient, UIAccessor
from ..logging import safe_log_value
from ..models import Resource, Visibility
from .groups import locate_federated_group

logger = logging.getLogger(__name__)


class VisibilitySignal(ABC):
    """One source of visibility information."""

    name: str = "signal"

    @abstractmethod
    async def read(self, resource: Resource) -> Optional[Visibility]:
        """Return a Visibility, or None when this signal has nothing to say."""
        raise NotImplementedError


class ResourcePrivacySignal(VisibilitySignal):
    name = "resource_privacy"

    async def read(self, resource: Resource) -> Optional[Visibility]:
        if resource.metadata is None:
            return None
        return Visibility.parse(resource.metadata.privacy)


class FederatedGroupSignal(VisibilitySignal):
    name = "federated_group"

    def __init__(self, client: FederatedGroupClient) -> None:
        self._client = client

    async def read(self, resource: Resource) -> Optional[Visibility]:
        group = await locate_federated_group(self._client, resource)
        if group is None:
            return None
        return group.declared_visibility()


class DirectoryGroupSignal(VisibilitySignal):
    """Visibility from the first role group that declares any.

    A role group that cannot be fetched is skipped.
    """

    name = "directory_group"

    def __init__(self, client: DirectoryClient, role_group_names: Sequence[str]) -> None:
        self._client = client
        self._role_group_names = tuple(role_group_names)

    async def read(self, resource: Resource) -> Optional[Visibility]:
        for name in self._role_group_names:
            try:
                group = await self._client.get_group_by_name(name)
            except Exception as e:
                logger.warning("Error fetching role group %r: %s", name, safe_log_value(e))
                continue
            visibility = group.declared_visibility()
            if visibility is not None:
                return visibility
        return None


class RenderedBannerSignal(VisibilitySignal):
    name = "rendered_banner"

    def __init__(self, ui: UIAccessor) -> None:
        self._ui = ui

    async def read(self, resource: Resource) -> Optional[Visibility]:
        label = self._ui.read_visibility_label()
        if not label:
            return None
        text = label.casefold()
        if "private" in text:
            return Visibility.PRIVATE
        if "public" in text:
            return Visibility.PUBLIC
        return None


class VisibilityResolver:
    """Runs visibility signals in order with a per-signal timeout."""

    def __init__(self, signals: Sequence[VisibilitySignal], *, timeout: float = 5.0) -> None:
        self._signals = tuple(signals)
        self._timeout = timeout

    @classmethod
    def from_context(cls, context: EvaluationContext, config: GuardConfig) -> VisibilityResolver:
        """Build the signal chain from whichever clients the host supplied."""
        signals: list[VisibilitySignal] = [ResourcePrivacySignal()]
        if context.federated is not None:
            signals.append(FederatedGroupSignal(context.federated))
        if context.directory is not None:
            signals.append(DirectoryGroupSignal(context.directory, config.role_group_names))
        if context.ui is not None:
            signals.append(RenderedBannerSignal(context.ui))
        return cls(signals, timeout=config.backend_timeout_seconds)

    @property
    def signals(self) -> tuple[VisibilitySignal, ...]:
        return self._signals

    async def resolve_visibility(self, resource: Resource) -> Visibility:
        for signal in self._signals:
            try:
                visibility = await asyncio.wait_for(signal.read(resource), timeout=self._timeout)
            except asyncio.TimeoutError:
                err = BackendTimeout(signal=signal.name, timeout=self._timeout)
                logger.warning("[%s] visibility signal %s timed out after %.2fs", err.code, signal.name, self._timeout)
                continue
            except Exception as e:
                logger.warning("Visibility signal %s failed: %s", signal.name, safe_log_value(e))
                continue

            if visibility is not None:
                logger.debug("Visibility %s from %s", visibility.value, signal.name)
                return visibility

        err = VisibilityUnresolvable("No visibility signal resolved", address=resource.address)
        logger.warning("[%s] %s; treating as public", err.code, err.message)
        return Visibility.UNKNOWN


__all__ = [
    "DirectoryGroupSignal",
    "FederatedGroupSignal",
    "RenderedBannerSignal",
    "ResourcePrivacySignal",
    "VisibilityResolver",
    "VisibilitySignal",
]
