"""Membership resolution over an ordered chain of backends.

Backends are strategies over one capability: produce the authorized set
for a resource. They are tried strictly in order:

1. ``DirectoryRoleBackend`` — union of the site's role groups.
2. ``FederatedGroupBackend`` — owners + transitive members of the unified group.
3. ``RenderedListBackend`` — display names scraped from the page, polled
   for a bounded window, matched loosely.

The first backend yielding a non-empty authorized set decides. A backend
that raises or times out counts as no result and the next one is tried.
If nothing answers the principal is not authorized (fail closed).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..config import GuardConfig
from ..exceptions import BackendTimeout, BackendUnavailable, TotalResolutionFailure
from ..interfaces import DirectoryClient, EvaluationContext, FederatedGroupClient, UIAccessor
from ..logging import safe_log_value
from ..models import Principal, Resource
from .groups import locate_federated_group
from .matching import names_loosely_match, normalize_email, principals_match

logger = logging.getLogger(__name__)


# ── Authorized sets ─────────────────────────────────────────────


class AuthorizedSet(ABC):
    """Principals permitted to view a resource, with their matching rule."""

    @abstractmethod
    def contains(self, principal: Principal) -> bool:
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class PrincipalSet(AuthorizedSet):
    """Structured identities. Matched on email, then id."""

    principals: tuple[Principal, ...] = ()

    @classmethod
    def union(cls, *groups: Sequence[Principal]) -> PrincipalSet:
        seen: set[str] = set()
        merged: list[Principal] = []
        for group in groups:
            for principal in group:
                key = normalize_email(principal.email) or f"id:{principal.id}"
                if key in seen:
                    continue
                seen.add(key)
                merged.append(principal)
        return cls(tuple(merged))

    def contains(self, principal: Principal) -> bool:
        return any(principals_match(candidate, principal) for candidate in self.principals)

    def __len__(self) -> int:
        return len(self.principals)


@dataclass(frozen=True)
class DisplayNameSet(AuthorizedSet):
    """Scraped display names. Matched loosely, since names are unreliable."""

    names: tuple[str, ...] = ()

    def contains(self, principal: Principal) -> bool:
        return any(names_loosely_match(name, principal.display_name) for name in self.names)

    def __len__(self) -> int:
        return len(self.names)


# ── Backends ────────────────────────────────────────────────────


class MembershipBackend(ABC):
    """One source of the authorized set.

    ``time_budget`` overrides the resolver's per-call timeout when a
    backend needs a different bound (e.g. polling).
    """

    name: str = "backend"
    time_budget: Optional[float] = None

    @abstractmethod
    async def authorized_set(self, resource: Resource) -> AuthorizedSet:
        raise NotImplementedError


class DirectoryRoleBackend(MembershipBackend):
    """Union of the configured role groups (Owners, Members, Visitors).

    Role groups are fetched concurrently. A group that cannot be fetched is
    skipped; if none can be, the backend is unavailable.
    """

    name = "directory"

    def __init__(self, client: DirectoryClient, role_group_names: Sequence[str]) -> None:
        self._client = client
        self._role_group_names = tuple(role_group_names)

    async def _members_of(self, group_name: str) -> list[Principal]:
        group = await self._client.get_group_by_name(group_name)
        return await self._client.get_group_members(group.id)

    async def authorized_set(self, resource: Resource) -> AuthorizedSet:
        results = await asyncio.gather(
            *(self._members_of(name) for name in self._role_group_names),
            return_exceptions=True,
        )

        member_lists: list[list[Principal]] = []
        for name, result in zip(self._role_group_names, results):
            if isinstance(result, BaseException):
                logger.warning("Error fetching role group %r: %s", name, safe_log_value(result))
                continue
            logger.debug("Role group %r has %d members", name, len(result))
            member_lists.append(result)

        if not member_lists:
            raise BackendUnavailable("No role group could be fetched", backend=self.name)
        return PrincipalSet.union(*member_lists)


class FederatedGroupBackend(MembershipBackend):
    """Owners plus transitive members of the resource's unified group."""

    name = "federated"

    def __init__(self, client: FederatedGroupClient) -> None:
        self._client = client

    async def authorized_set(self, resource: Resource) -> AuthorizedSet:
        group = await locate_federated_group(self._client, resource)
        if group is None:
            logger.info("No federated group found for %r", resource.alias or resource.address)
            return PrincipalSet()

        # Both calls settle before a failure is raised.
        results = await asyncio.gather(
            self._client.get_group_owners(group.id),
            self._client.get_group_transitive_members(group.id),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        owners, members = results
        return PrincipalSet.union(owners, members)


class RenderedListBackend(MembershipBackend):
    """Display names read from the rendered member list.

    The list may render after page load, so it is sampled up to
    ``attempts`` times, ``interval`` seconds apart, stopping at the first
    non-empty sample.
    """

    name = "rendered_list"

    def __init__(
        self,
        ui: UIAccessor,
        *,
        attempts: int = 10,
        interval: float = 0.5,
        slack: float = 1.0,
    ) -> None:
        self._ui = ui
        self._attempts = max(1, attempts)
        self._interval = interval
        self.time_budget = self._attempts * self._interval + slack

    async def authorized_set(self, resource: Resource) -> AuthorizedSet:
        for attempt in range(1, self._attempts + 1):
            names = [n for n in self._ui.read_rendered_principal_names() if n and n.strip()]
            if names:
                logger.debug("Rendered list produced %d names on attempt %d", len(names), attempt)
                return DisplayNameSet(tuple(names))
            if attempt < self._attempts:
                await asyncio.sleep(self._interval)

        logger.info("Rendered list still empty after %d attempts", self._attempts)
        return DisplayNameSet()


# ── Resolver ────────────────────────────────────────────────────


@dataclass(frozen=True)
class MembershipResult:
    """Outcome of a resolution: the verdict and which backend gave it."""

    authorized: bool
    source: Optional[str] = None
    failures: tuple[str, ...] = field(default_factory=tuple)


class MembershipResolver:
    """Walks the backend chain with a bounded time per backend."""

    def __init__(self, backends: Sequence[MembershipBackend], *, timeout: float = 5.0) -> None:
        self._backends = tuple(backends)
        self._timeout = timeout

    @classmethod
    def from_context(cls, context: EvaluationContext, config: GuardConfig) -> MembershipResolver:
        """Build the backend chain from whichever clients the host supplied."""
        backends: list[MembershipBackend] = []
        if context.directory is not None:
            backends.append(DirectoryRoleBackend(context.directory, config.role_group_names))
        if context.federated is not None:
            backends.append(FederatedGroupBackend(context.federated))
        if context.ui is not None:
            backends.append(
                RenderedListBackend(
                    context.ui,
                    attempts=config.ui_poll_attempts,
                    interval=config.ui_poll_interval_seconds,
                    slack=config.backend_timeout_seconds,
                )
            )
        return cls(backends, timeout=config.backend_timeout_seconds)

    @property
    def backends(self) -> tuple[MembershipBackend, ...]:
        return self._backends

    async def resolve(self, resource: Resource, principal: Principal) -> MembershipResult:
        failures: list[str] = []

        for backend in self._backends:
            budget = backend.time_budget or self._timeout
            try:
                authorized = await asyncio.wait_for(backend.authorized_set(resource), timeout=budget)
            except asyncio.TimeoutError:
                err = BackendTimeout(backend=backend.name, timeout=budget)
                logger.warning("[%s] membership backend %s timed out after %.2fs", err.code, backend.name, budget)
                failures.append(backend.name)
                continue
            except Exception as e:
                code = getattr(e, "code", type(e).__name__)
                logger.warning("[%s] membership backend %s failed: %s", code, backend.name, safe_log_value(e))
                failures.append(backend.name)
                continue

            if not len(authorized):
                logger.info("Membership backend %s returned no principals, trying next", backend.name)
                continue

            is_member = authorized.contains(principal)
            logger.info(
                "Membership backend %s answered (%d principals): member=%s",
                backend.name,
                len(authorized),
                is_member,
            )
            return MembershipResult(authorized=is_member, source=backend.name, failures=tuple(failures))

        if self._backends and len(failures) == len(self._backends):
            err = TotalResolutionFailure("Every membership backend failed", backends=failures)
            logger.error("[%s] %s: %s", err.code, err.message, ", ".join(failures))
        else:
            logger.warning("No membership backend produced an authorized set; denying")
        return MembershipResult(authorized=False, failures=tuple(failures))

    async def is_authorized(self, resource: Resource, principal: Principal) -> bool:
        """True only if some backend proved membership."""
        result = await self.resolve(resource, principal)
        return result.authorized


__all__ = [
    "AuthorizedSet",
    "DirectoryRoleBackend",
    "DisplayNameSet",
    "FederatedGroupBackend",
    "MembershipBackend",
    "MembershipResolver",
    "MembershipResult",
    "PrincipalSet",
    "RenderedListBackend",
]
