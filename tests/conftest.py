"""Shared fixtures: in-memory collaborators for the access engine."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from siteguard import (
    DirectoryClient,
    EvaluationContext,
    FederatedGroupClient,
    GuardConfig,
    Navigator,
    Principal,
    UIAccessor,
)
from siteguard.models import Group

SENSITIVE_URL = "https://contoso.sharepoint.com/teams/b12345/SitePages/Home.aspx"
PUBLIC_URL = "https://contoso.sharepoint.com/sites/public/SitePages/Home.aspx"
APP_CATALOG_URL = "https://contoso.sharepoint.com/sites/appcatalog/_layouts/15/tenantAppCatalog.aspx/manageApps"

ALICE = Principal(id="1", email="alice@example.org", display_name="Alice Anders")
BOB = Principal(id="2", email="bob@example.org", display_name="Bob")


class FakeDirectory(DirectoryClient):
    """Role groups keyed by name. Names in ``failing`` raise on lookup."""

    def __init__(
        self,
        groups: Optional[dict[str, list[Principal]]] = None,
        *,
        failing: tuple[str, ...] = (),
        error: Optional[Exception] = None,
        delay: float = 0.0,
        flags: Optional[dict[str, dict[str, bool]]] = None,
    ) -> None:
        self.groups = groups or {}
        self.failing = failing
        self.error = error
        self.delay = delay
        self.flags = flags or {}
        self.calls: list[str] = []

    async def get_group_by_name(self, name: str) -> Group:
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if name in self.failing or name not in self.groups:
            raise LookupError(f"group {name!r} not found")
        return Group(id=name, title=name, **self.flags.get(name, {}))

    async def get_group_members(self, group_id: str) -> list[Principal]:
        return list(self.groups[group_id])


class FakeFederated(FederatedGroupClient):
    def __init__(
        self,
        group: Optional[Group] = None,
        *,
        owners: Optional[list[Principal]] = None,
        members: Optional[list[Principal]] = None,
        candidates: Optional[list[Group]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.group = group
        self.owners = owners or []
        self.members = members or []
        self.candidates = candidates or []
        self.error = error
        self.searched: list[str] = []

    async def find_group_for_resource(self, address: str) -> Optional[Group]:
        if self.error is not None:
            raise self.error
        return self.group

    async def search_groups(self, prefix: str) -> list[Group]:
        self.searched.append(prefix)
        return list(self.candidates)

    async def get_group_owners(self, group_id: str) -> list[Principal]:
        return list(self.owners)

    async def get_group_transitive_members(self, group_id: str) -> list[Principal]:
        return list(self.members)


class FakeUI(UIAccessor):
    """Returns successive snapshots; the last one repeats."""

    def __init__(self, snapshots: Optional[list[list[str]]] = None, label: Optional[str] = None) -> None:
        self.snapshots = snapshots or [[]]
        self.label = label
        self.reads = 0

    def read_rendered_principal_names(self) -> list[str]:
        index = min(self.reads, len(self.snapshots) - 1)
        self.reads += 1
        return list(self.snapshots[index])

    def read_visibility_label(self) -> Optional[str]:
        return self.label


class RecordingNavigator(Navigator):
    def __init__(self) -> None:
        self.urls: list[str] = []

    def redirect_to(self, url: str) -> None:
        self.urls.append(url)


@pytest.fixture
def config() -> GuardConfig:
    return GuardConfig(
        safe_url="https://contoso.sharepoint.com",
        backend_timeout_seconds=0.2,
        ui_poll_attempts=3,
        ui_poll_interval_seconds=0.01,
    )


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def public_federated() -> FakeFederated:
    """Public unified group whose only member is Alice."""
    return FakeFederated(
        Group(id="g-1", mail_nickname="b12345", visibility="Public"),
        members=[ALICE],
    )


def make_context(
    address: str = SENSITIVE_URL,
    principal: Principal = BOB,
    **clients,
) -> EvaluationContext:
    return EvaluationContext(address=address, principal=principal, **clients)
