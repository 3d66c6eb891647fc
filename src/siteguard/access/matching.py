"""Principal comparison: structured identity and loose display-name matching."""

from __future__ import annotations

from ..models import Principal


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def normalize_display_name(name: str | None) -> str:
    """Trim, collapse inner whitespace, and case-fold."""
    return " ".join((name or "").split()).casefold()


def principals_match(candidate: Principal, principal: Principal) -> bool:
    """Match on normalized email; fall back to id when either email is absent.

    Example::

        principals_match(Principal(email="A@x.org"), Principal(email="a@x.org"))  # True
        principals_match(Principal(id="7"), Principal(id="7", email="a@x.org"))    # True
    """
    left, right = normalize_email(candidate.email), normalize_email(principal.email)
    if left and right:
        return left == right
    if candidate.id and principal.id:
        return candidate.id == principal.id
    return False


def names_loosely_match(scraped: str, display_name: str) -> bool:
    """Substring containment, in either direction, of normalized names.

    Example::

        names_loosely_match("Adi Makkar (PSP)", "Adi Makkar")  # True
        names_loosely_match("Roberta Smith", "Bob")             # False
    """
    left, right = normalize_display_name(scraped), normalize_display_name(display_name)
    if not left or not right:
        return False
    return left in right or right in left


__all__ = [
    "names_loosely_match",
    "normalize_display_name",
    "normalize_email",
    "principals_match",
]
