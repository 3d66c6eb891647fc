"""Async client for unified groups via Microsoft Graph.

Implements :class:`~siteguard.interfaces.FederatedGroupClient`.
Transitive member listings include nested group objects; only user
objects are kept, so nested membership is expanded rather than reported.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..access.classifier import SiteClassifier
from ..interfaces import FederatedGroupClient
from ..models import Group, Principal

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
_USER_TYPE = "#microsoft.graph.user"
_GROUP_SELECT = "id,displayName,mailNickname,visibility"
_USER_SELECT = "id,mail,userPrincipalName,displayName"


def _odata_literal(value: str) -> str:
    return value.replace("'", "''")


def _group_from_dict(data: Dict[str, Any]) -> Group:
    return Group(
        id=str(data["id"]),
        title=data.get("displayName") or "",
        mail_nickname=data.get("mailNickname") or "",
        visibility=data.get("visibility"),
    )


def _principal_from_dict(data: Dict[str, Any]) -> Principal:
    return Principal(
        id=str(data.get("id", "")),
        email=data.get("mail") or data.get("userPrincipalName") or "",
        display_name=data.get("displayName") or "",
    )


class GraphGroupClient(FederatedGroupClient):
    """Group lookups against Graph.

    Parameters
    ----------
    base_url:
        Graph root (defaults to the v1.0 endpoint).
    headers:
        Extra headers applied to every request (``Authorization`` etc.).
    timeout:
        HTTP request timeout in seconds.
    max_pages:
        Upper bound on ``@odata.nextLink`` pages followed per listing.
    """

    def __init__(
        self,
        base_url: str = GRAPH_BASE_URL,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
        max_pages: int = 20,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"ConsistencyLevel": "eventual", **(headers or {})}
        self._timeout = timeout
        self._max_pages = max_pages
        self._client: Any = None  # lazy httpx.AsyncClient

    # ── lifecycle ───────────────────────────────────────────────────

    async def _ensure_client(self) -> Any:
        if self._client is None:
            import httpx  # lazy import

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect ``value`` across pages."""
        client = await self._ensure_client()
        items: List[Dict[str, Any]] = []
        url: Optional[str] = path
        for _ in range(self._max_pages):
            if url is None:
                break
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
            items.extend(item for item in data.get("value", []) if isinstance(item, dict))
            url = data.get("@odata.nextLink")
            params = None  # nextLink already carries the query
        else:
            if url is not None:
                logger.warning("Stopped paging %s after %d pages", path, self._max_pages)
        return items

    # ── public API ──────────────────────────────────────────────────

    async def find_group_for_resource(self, address: str) -> Optional[Group]:
        """Exact ``mailNickname`` match on the site alias of ``address``."""
        alias = SiteClassifier.extract_site_alias(address)
        if not alias:
            return None
        groups = await self._list(
            "/groups",
            params={
                "$filter": f"mailNickname eq '{_odata_literal(alias)}'",
                "$select": _GROUP_SELECT,
            },
        )
        return _group_from_dict(groups[0]) if groups else None

    async def search_groups(self, prefix: str) -> list[Group]:
        groups = await self._list(
            "/groups",
            params={
                "$filter": f"startswith(mailNickname,'{_odata_literal(prefix)}')",
                "$select": _GROUP_SELECT,
            },
        )
        return [_group_from_dict(g) for g in groups]

    async def get_group_owners(self, group_id: str) -> list[Principal]:
        owners = await self._list(f"/groups/{group_id}/owners", params={"$select": _USER_SELECT})
        return [_principal_from_dict(o) for o in owners if o.get("@odata.type", _USER_TYPE) == _USER_TYPE]

    async def get_group_transitive_members(self, group_id: str) -> list[Principal]:
        members = await self._list(f"/groups/{group_id}/transitiveMembers", params={"$select": _USER_SELECT})
        users = [m for m in members if m.get("@odata.type") == _USER_TYPE]
        logger.debug("Group %s: %d transitive entries, %d users", group_id, len(members), len(users))
        return [_principal_from_dict(u) for u in users]
