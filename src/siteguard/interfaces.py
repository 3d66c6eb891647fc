"""Contracts for the collaborators the engine consults.

The host supplies implementations (see ``siteguard.clients`` for HTTP
ones) through an :class:`EvaluationContext`, once per navigation event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .models import Group, Principal, ResourceMetadata


class DirectoryClient(ABC):
    """Site-local role groups (e.g. SharePoint site groups)."""

    @abstractmethod
    async def get_group_by_name(self, name: str) -> Group:
        raise NotImplementedError

    @abstractmethod
    async def get_group_members(self, group_id: str) -> list[Principal]:
        raise NotImplementedError


class FederatedGroupClient(ABC):
    """Unified/federated groups (e.g. Microsoft Graph)."""

    @abstractmethod
    async def find_group_for_resource(self, address: str) -> Optional[Group]:
        raise NotImplementedError

    async def search_groups(self, prefix: str) -> list[Group]:
        """Groups whose identifier starts with ``prefix``. Optional."""
        return []

    @abstractmethod
    async def get_group_owners(self, group_id: str) -> list[Principal]:
        raise NotImplementedError

    @abstractmethod
    async def get_group_transitive_members(self, group_id: str) -> list[Principal]:
        raise NotImplementedError


class UIAccessor(ABC):
    """Synchronous snapshots of the rendered page. Polling is the engine's job."""

    @abstractmethod
    def read_rendered_principal_names(self) -> list[str]:
        raise NotImplementedError

    def read_visibility_label(self) -> Optional[str]:
        """Text of the rendered privacy banner, if any."""
        return None


class Navigator(ABC):
    @abstractmethod
    def redirect_to(self, url: str) -> None:
        raise NotImplementedError


@dataclass
class EvaluationContext:
    """Everything one evaluation needs from the host.

    Attributes:
        address: Current resource URL.
        principal: Authenticated principal.
        metadata: Declared resource metadata, when available.
        directory: Directory client, or None if unavailable in this context.
        federated: Federated group client, or None.
        ui: Rendered page accessor, or None.
    """

    address: str
    principal: Principal
    metadata: Optional[ResourceMetadata] = None
    directory: Optional[DirectoryClient] = None
    federated: Optional[FederatedGroupClient] = None
    ui: Optional[UIAccessor] = None


__all__ = [
    "DirectoryClient",
    "EvaluationContext",
    "FederatedGroupClient",
    "Navigator",
    "UIAccessor",
]
