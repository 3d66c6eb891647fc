from .access import (
    DecisionEngine,
    MembershipResolver,
    SiteClassifier,
    VisibilityResolver,
    names_loosely_match,
    principals_match,
)
from .config import GuardConfig, LogLevel, load_config_from_env
from .enforcement import (
    EnforcementOutcome,
    EnforcementState,
    GuardState,
    RedirectGuard,
    get_redirect_guard,
    reset_redirect_guard,
)
from .interfaces import (
    DirectoryClient,
    EvaluationContext,
    FederatedGroupClient,
    Navigator,
    UIAccessor,
)
from .logging import (
    EvaluationFormatter,
    EvaluationLoggerAdapter,
    get_evaluation_logger,
    redact_secrets,
    safe_log_value,
    safe_preview,
    setup_logging,
)
from .models import (
    AccessDecision,
    Classification,
    DecisionReason,
    Group,
    Principal,
    Resource,
    ResourceMetadata,
    Verdict,
    Visibility,
)

__all__ = [
    "AccessDecision",
    "Classification",
    "DecisionEngine",
    "DecisionReason",
    "DirectoryClient",
    "EnforcementOutcome",
    "EnforcementState",
    "EvaluationContext",
    "EvaluationFormatter",
    "EvaluationLoggerAdapter",
    "FederatedGroupClient",
    "Group",
    "GuardConfig",
    "GuardState",
    "LogLevel",
    "MembershipResolver",
    "Navigator",
    "Principal",
    "RedirectGuard",
    "Resource",
    "ResourceMetadata",
    "SiteClassifier",
    "UIAccessor",
    "Verdict",
    "Visibility",
    "VisibilityResolver",
    "get_evaluation_logger",
    "get_redirect_guard",
    "load_config_from_env",
    "names_loosely_match",
    "principals_match",
    "redact_secrets",
    "reset_redirect_guard",
    "safe_log_value",
    "safe_preview",
    "setup_logging",
]
