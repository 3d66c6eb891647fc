"""Async client for SharePoint site groups over the REST API.

Implements :class:`~siteguard.interfaces.DirectoryClient`. Errors are
raised to the caller; the membership resolver contains them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from ..interfaces import DirectoryClient
from ..models import Group, Principal

logger = logging.getLogger(__name__)

_ODATA_HEADERS = {"Accept": "application/json;odata=nometadata"}


class SharePointDirectoryClient(DirectoryClient):
    """Site group lookups for one site.

    Parameters
    ----------
    site_url:
        Absolute URL of the site (e.g. ``https://contoso.sharepoint.com/teams/b123``).
    headers:
        Extra headers applied to every request (bearer token, etc.).
    timeout:
        HTTP request timeout in seconds.
    """

    def __init__(
        self,
        site_url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
    ) -> None:
        self._site_url = site_url.rstrip("/")
        self._headers = {**_ODATA_HEADERS, **(headers or {})}
        self._timeout = timeout
        self._client: Any = None  # lazy httpx.AsyncClient

    # ── lifecycle ───────────────────────────────────────────────────

    async def _ensure_client(self) -> Any:
        if self._client is None:
            import httpx  # lazy import

            self._client = httpx.AsyncClient(
                base_url=self._site_url,
                headers=self._headers,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str) -> Dict[str, Any]:
        client = await self._ensure_client()
        resp = await client.get(path)
        resp.raise_for_status()
        return resp.json()

    # ── public API ──────────────────────────────────────────────────

    async def get_group_by_name(self, name: str) -> Group:
        """``GET /_api/web/sitegroups/getbyname('{name}')``."""
        escaped = quote(name.replace("'", "''"), safe="")
        data = await self._get_json(f"/_api/web/sitegroups/getbyname('{escaped}')")
        return Group(
            id=str(data["Id"]),
            title=data.get("Title", name),
            allow_members_edit_membership=data.get("AllowMembersEditMembership"),
            allow_request_to_join_leave=data.get("AllowRequestToJoinLeave"),
        )

    async def get_group_members(self, group_id: str) -> list[Principal]:
        """``GET /_api/web/sitegroups/getbyid({id})/users``."""
        data = await self._get_json(f"/_api/web/sitegroups/getbyid({group_id})/users")
        users = data.get("value", [])
        principals = [
            Principal(
                id=str(user.get("Id", "")),
                email=user.get("Email") or "",
                display_name=user.get("Title") or "",
            )
            for user in users
            if isinstance(user, dict)
        ]
        logger.debug("Site group %s has %d users", group_id, len(principals))
        return principals
