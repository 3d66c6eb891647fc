"""Resource classification from address and declared metadata.

Pure string matching: no I/O and no failure mode. Matching is
case-insensitive and ignores query strings and fragments.
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlsplit

from ..config import GuardConfig
from ..exceptions import ClassificationAmbiguous
from ..models import Classification, ResourceMetadata

logger = logging.getLogger(__name__)

# Owning-group alias: the segment after /sites/ or /teams/.
_SITE_ALIAS_RE = re.compile(r"/(?:sites|teams)/([^/?#]+)", re.IGNORECASE)


def resource_path(address: str) -> str:
    """Lower-cased path of ``address`` with query and fragment dropped.

    Bare paths (no scheme) are accepted as-is.
    """
    raw = (address or "").strip()
    parts = urlsplit(raw)
    path = parts.path if (parts.scheme or parts.netloc) else raw.split("?", 1)[0].split("#", 1)[0]
    return path.lower()


class SiteClassifier:
    """Decides whether a resource is Sensitive or exempt from gating."""

    def __init__(self, config: GuardConfig | None = None) -> None:
        self._config = config or GuardConfig()
        self._sensitive_re = re.compile(self._config.sensitive_path_pattern, re.IGNORECASE)
        self._exempt_res = tuple(re.compile(p, re.IGNORECASE) for p in self._config.exempt_path_patterns)
        self._marker = self._config.sensitivity_marker.strip().casefold()

    def classify(self, address: str, metadata: Optional[ResourceMetadata] = None) -> Classification:
        """Sensitive if the path matches the protected namespace or the
        description carries the sensitivity marker; otherwise Unclassified.
        """
        path = resource_path(address)
        # Trailing slash tolerance: "/teams/b" must match "/teams/b/".
        if self._sensitive_re.search(path) or self._sensitive_re.search(path.rstrip("/") + "/"):
            return Classification.SENSITIVE

        if metadata is not None and self._has_marker(metadata):
            return Classification.SENSITIVE

        return Classification.UNCLASSIFIED

    def is_exempt(self, address: str) -> bool:
        """True for administrative paths that are never evaluated."""
        path = resource_path(address)
        return any(pattern.search(path) for pattern in self._exempt_res)

    def _has_marker(self, metadata: ResourceMetadata) -> bool:
        description = metadata.description
        if description is None:
            return False
        if not isinstance(description, str):
            err = ClassificationAmbiguous("Resource description is not text", kind=type(description).__name__)
            logger.warning("[%s] %s; treating as unclassified", err.code, err.message)
            return False
        if not self._marker:
            return False
        return self._marker in description.casefold()

    @staticmethod
    def extract_site_alias(address: str) -> str:
        """Alias of the owning site, e.g. ``b10001638`` for ``/teams/b10001638/...``.

        Returns an empty string when the address has no site segment.
        """
        match = _SITE_ALIAS_RE.search(resource_path(address))
        if match is None:
            logger.warning("Could not extract site alias from address")
            return ""
        return match.group(1).strip()


__all__ = [
    "SiteClassifier",
    "resource_path",
]
