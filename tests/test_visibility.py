"""Tests for visibility resolution."""

from __future__ import annotations

import asyncio

import pytest

from siteguard import EvaluationContext, Group, Resource, ResourceMetadata, Visibility, VisibilityResolver
from siteguard.access import (
    DirectoryGroupSignal,
    FederatedGroupSignal,
    RenderedBannerSignal,
    ResourcePrivacySignal,
    VisibilitySignal,
)

from conftest import BOB, SENSITIVE_URL, FakeDirectory, FakeFederated, FakeUI

RESOURCE = Resource(address=SENSITIVE_URL, alias="b12345")


class SlowSignal(VisibilitySignal):
    name = "slow"

    async def read(self, resource):
        await asyncio.sleep(5)
        return Visibility.PRIVATE


class BrokenSignal(VisibilitySignal):
    name = "broken"

    async def read(self, resource):
        raise RuntimeError("malformed response")


class FixedSignal(VisibilitySignal):
    name = "fixed"

    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def read(self, resource):
        self.calls += 1
        return self.value


class TestVisibilityParse:
    """Visibility.parse tests."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Private", Visibility.PRIVATE),
            (" private ", Visibility.PRIVATE),
            ("Public", Visibility.PUBLIC),
            ("HiddenMembership", Visibility.PUBLIC),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, raw, expected):
        assert Visibility.parse(raw) == expected


class TestGroupDeclaredVisibility:
    """Group.declared_visibility tests."""

    def test_string_attribute_wins(self):
        group = Group(id="1", visibility="Private", allow_request_to_join_leave=True)
        assert group.declared_visibility() == Visibility.PRIVATE

    def test_joinable_flags_mean_public(self):
        group = Group(id="1", allow_request_to_join_leave=True, allow_members_edit_membership=False)
        assert group.declared_visibility() == Visibility.PUBLIC

    def test_closed_flags_say_nothing(self):
        group = Group(id="1", allow_request_to_join_leave=False, allow_members_edit_membership=False)
        assert group.declared_visibility() is None

    def test_no_signal(self):
        assert Group(id="1").declared_visibility() is None


class TestSignals:
    """Individual visibility signals."""

    @pytest.mark.asyncio
    async def test_resource_privacy(self):
        resource = Resource(address=SENSITIVE_URL, alias="b12345", metadata=ResourceMetadata(privacy="Private"))
        assert await ResourcePrivacySignal().read(resource) == Visibility.PRIVATE

    @pytest.mark.asyncio
    async def test_resource_privacy_absent(self):
        assert await ResourcePrivacySignal().read(RESOURCE) is None

    @pytest.mark.asyncio
    async def test_federated_group(self):
        client = FakeFederated(Group(id="g", visibility="Private"))
        assert await FederatedGroupSignal(client).read(RESOURCE) == Visibility.PRIVATE

    @pytest.mark.asyncio
    async def test_directory_first_declaring_group(self):
        directory = FakeDirectory(
            {"Owners": [], "Members": []},
            flags={"Members": {"allow_request_to_join_leave": True}},
        )
        signal = DirectoryGroupSignal(directory, ["Owners", "Members"])
        assert await signal.read(RESOURCE) == Visibility.PUBLIC

    @pytest.mark.asyncio
    async def test_directory_skips_missing_group(self):
        directory = FakeDirectory(
            {"Members": []},
            flags={"Members": {"allow_members_edit_membership": True}},
        )
        signal = DirectoryGroupSignal(directory, ["Visitors", "Members"])
        assert await signal.read(RESOURCE) == Visibility.PUBLIC
        assert directory.calls == ["Visitors", "Members"]

    @pytest.mark.asyncio
    async def test_directory_default_flags_no_signal(self):
        closed = {"allow_members_edit_membership": False, "allow_request_to_join_leave": False}
        directory = FakeDirectory(
            {"Owners": [], "Members": [], "Visitors": []},
            flags={"Owners": closed, "Members": closed, "Visitors": closed},
        )
        signal = DirectoryGroupSignal(directory, ["Owners", "Members", "Visitors"])
        assert await signal.read(RESOURCE) is None

    @pytest.mark.asyncio
    async def test_banner(self):
        assert await RenderedBannerSignal(FakeUI(label="Private group")).read(RESOURCE) == Visibility.PRIVATE
        assert await RenderedBannerSignal(FakeUI(label="Public group")).read(RESOURCE) == Visibility.PUBLIC
        assert await RenderedBannerSignal(FakeUI(label="Team site")).read(RESOURCE) is None


class TestVisibilityResolver:
    """Signal precedence and fallthrough."""

    @pytest.mark.asyncio
    async def test_first_available_signal_wins(self):
        later = FixedSignal(Visibility.PUBLIC)
        resolver = VisibilityResolver([FixedSignal(Visibility.PRIVATE), later])
        assert await resolver.resolve_visibility(RESOURCE) == Visibility.PRIVATE
        assert later.calls == 0

    @pytest.mark.asyncio
    async def test_none_falls_through(self):
        resolver = VisibilityResolver([FixedSignal(None), FixedSignal(Visibility.PRIVATE)])
        assert await resolver.resolve_visibility(RESOURCE) == Visibility.PRIVATE

    @pytest.mark.asyncio
    async def test_error_falls_through(self):
        resolver = VisibilityResolver([BrokenSignal(), FixedSignal(Visibility.PRIVATE)])
        assert await resolver.resolve_visibility(RESOURCE) == Visibility.PRIVATE

    @pytest.mark.asyncio
    async def test_timeout_falls_through(self):
        resolver = VisibilityResolver([SlowSignal(), FixedSignal(Visibility.PUBLIC)], timeout=0.05)
        assert await resolver.resolve_visibility(RESOURCE) == Visibility.PUBLIC

    @pytest.mark.asyncio
    async def test_all_exhausted_is_unknown(self):
        resolver = VisibilityResolver([BrokenSignal(), FixedSignal(None)])
        assert await resolver.resolve_visibility(RESOURCE) == Visibility.UNKNOWN

    def test_from_context_order(self, config):
        context = EvaluationContext(
            address=SENSITIVE_URL,
            principal=BOB,
            directory=FakeDirectory(),
            federated=FakeFederated(),
            ui=FakeUI(),
        )
        resolver = VisibilityResolver.from_context(context, config)
        assert [s.name for s in resolver.signals] == [
            "resource_privacy",
            "federated_group",
            "directory_group",
            "rendered_banner",
        ]

    def test_from_context_without_clients(self, config):
        resolver = VisibilityResolver.from_context(EvaluationContext(address=SENSITIVE_URL, principal=BOB), config)
        assert [s.name for s in resolver.signals] == ["resource_privacy"]
