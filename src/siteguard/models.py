"""Core data models for the access decision engine.

Provides:
- ``Classification``, ``Visibility``, ``Verdict``, ``DecisionReason`` — str enums.
- ``Principal``, ``Group``, ``ResourceMetadata``, ``Resource`` — Pydantic models.
- ``AccessDecision`` — immutable verdict handed to the enforcement layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Classification(str, Enum):
    """Whether a resource requires access gating."""

    UNCLASSIFIED = "unclassified"
    SENSITIVE = "sensitive"


class Visibility(str, Enum):
    """Visibility of a Sensitive resource's owning group.

    ``UNKNOWN`` is produced only when every signal is unavailable and is
    treated as ``PUBLIC`` when deciding.
    """

    PUBLIC = "public"
    PRIVATE = "private"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> Optional[Visibility]:
        """Map a declared "Public"/"Private" style string to a Visibility.

        Returns None for empty or non-string input so callers can fall
        through to the next signal. Any other non-empty label that is not
        "private" counts as public.
        """
        if not isinstance(raw, str):
            return None
        value = raw.strip().lower()
        if not value:
            return None
        if value == "private":
            return cls.PRIVATE
        return cls.PUBLIC


class Verdict(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class DecisionReason(str, Enum):
    """Reason code attached to every AccessDecision."""

    NOT_SENSITIVE = "not_sensitive"
    EXEMPT = "exempt"
    PRIVATE_RESOURCE = "private_resource"
    MEMBER = "member"
    NOT_MEMBER = "not_member"
    EVALUATION_ERROR = "evaluation_error"


class Principal(BaseModel):
    """The authenticated user being evaluated. Read-only input."""

    model_config = {"frozen": True}

    id: str = ""
    email: str = ""
    display_name: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> str:
        """Emails are compared lower-cased and trimmed."""
        if v is None:
            return ""
        return str(v).strip().lower()


class Group(BaseModel):
    """An owning or role group as reported by a directory backend.

    ``allow_members_edit_membership`` and ``allow_request_to_join_leave``
    are the directory join flags. An open flag marks the group public;
    closed flags are the role-group default and say nothing about
    visibility.
    """

    id: str
    title: str = ""
    mail_nickname: str = ""
    visibility: Optional[str] = None
    allow_members_edit_membership: Optional[bool] = None
    allow_request_to_join_leave: Optional[bool] = None
    members: list[Principal] = Field(default_factory=list)
    owners: list[Principal] = Field(default_factory=list)

    def declared_visibility(self) -> Optional[Visibility]:
        """Visibility from the explicit attribute, else from the join flags."""
        parsed = Visibility.parse(self.visibility)
        if parsed is not None:
            return parsed
        # Openly joinable or member-managed groups are public.
        if self.allow_members_edit_membership or self.allow_request_to_join_leave:
            return Visibility.PUBLIC
        return None


class ResourceMetadata(BaseModel):
    """Declared metadata for the current resource, when the host has it."""

    description: Optional[str] = None
    privacy: Optional[str] = None


class Resource(BaseModel):
    """A resource under evaluation: its address and owning-group alias."""

    address: str
    alias: str = ""
    metadata: Optional[ResourceMetadata] = None


@dataclass(frozen=True)
class AccessDecision:
    """Verdict for one evaluation. Pure data, no side effects."""

    verdict: Verdict
    reason: DecisionReason
    detail: str = ""

    @property
    def allowed(self) -> bool:
        return self.verdict == Verdict.ALLOW

    @property
    def denied(self) -> bool:
        return not self.allowed

    @classmethod
    def allow(cls, reason: DecisionReason, detail: str = "") -> AccessDecision:
        return cls(Verdict.ALLOW, reason, detail)

    @classmethod
    def deny(cls, reason: DecisionReason, detail: str = "") -> AccessDecision:
        return cls(Verdict.DENY, reason, detail)


__all__ = [
    "AccessDecision",
    "Classification",
    "DecisionReason",
    "Group",
    "Principal",
    "Resource",
    "ResourceMetadata",
    "Verdict",
    "Visibility",
]
