"""Access decision engine for classified collaboration sites.

Defines:
- SiteClassifier: Sensitive vs Unclassified, administrative exemptions
- VisibilityResolver: Public / Private / Unknown from ordered signals
- MembershipResolver: authorized set from an ordered backend chain
- DecisionEngine: the single Allow/Deny verdict
"""

from .classifier import SiteClassifier, resource_path
from .engine import DecisionEngine
from .groups import best_group_match, locate_federated_group
from .matching import (
    names_loosely_match,
    normalize_display_name,
    normalize_email,
    principals_match,
)
from .membership import (
    AuthorizedSet,
    DirectoryRoleBackend,
    DisplayNameSet,
    FederatedGroupBackend,
    MembershipBackend,
    MembershipResolver,
    MembershipResult,
    PrincipalSet,
    RenderedListBackend,
)
from .visibility import (
    DirectoryGroupSignal,
    FederatedGroupSignal,
    RenderedBannerSignal,
    ResourcePrivacySignal,
    VisibilityResolver,
    VisibilitySignal,
)

__all__ = [
    "AuthorizedSet",
    "DecisionEngine",
    "DirectoryGroupSignal",
    "DirectoryRoleBackend",
    "DisplayNameSet",
    "FederatedGroupBackend",
    "FederatedGroupSignal",
    "MembershipBackend",
    "MembershipResolver",
    "MembershipResult",
    "PrincipalSet",
    "RenderedBannerSignal",
    "RenderedListBackend",
    "ResourcePrivacySignal",
    "SiteClassifier",
    "VisibilityResolver",
    "VisibilitySignal",
    "best_group_match",
    "locate_federated_group",
    "names_loosely_match",
    "normalize_display_name",
    "normalize_email",
    "principals_match",
    "resource_path",
]
