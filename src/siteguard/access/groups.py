"""Locating the federated group that owns a resource."""

from __future__ import annotations

import logging
from typing import Optional

from ..interfaces import FederatedGroupClient
from ..models import Group, Resource

logger = logging.getLogger(__name__)


def _group_key(group: Group) -> str:
    return (group.mail_nickname or group.title or "").strip().lower()


def best_group_match(alias: str, candidates: list[Group]) -> Optional[Group]:
    """Pick the candidate whose identifier best matches ``alias``.

    Exact (case-insensitive) identifier equality wins. Otherwise only
    candidates where one identifier is a prefix of the other are eligible,
    and the one closest in length to the alias is chosen.
    """
    wanted = alias.strip().lower()
    if not wanted:
        return None

    best: Optional[Group] = None
    best_distance = 0
    for group in candidates:
        key = _group_key(group)
        if not key:
            continue
        if key == wanted:
            return group
        if not (key.startswith(wanted) or wanted.startswith(key)):
            continue
        distance = abs(len(key) - len(wanted))
        if best is None or distance < best_distance:
            best, best_distance = group, distance
    return best


async def locate_federated_group(client: FederatedGroupClient, resource: Resource) -> Optional[Group]:
    """Exact lookup by address, then prefix search over the site alias."""
    group = await client.find_group_for_resource(resource.address)
    if group is not None:
        return group

    if not resource.alias:
        return None

    candidates = await client.search_groups(resource.alias)
    group = best_group_match(resource.alias, candidates)
    if group is not None:
        logger.info(
            "No exact federated group for %r; using best match %r",
            resource.alias,
            group.mail_nickname or group.title,
        )
    return group


__all__ = [
    "best_group_match",
    "locate_federated_group",
]
