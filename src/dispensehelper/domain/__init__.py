"""Domain models and business rules for expiry-aware dispensing."""

from dispensehelper.domain.dates import (
    days_until,
    month_key,
    next_month_key,
    parse_iso_date,
)
from dispensehelper.domain.errors import (
    DuplicateItem,
    DuplicateWorker,
    InvalidDate,
    InvalidInput,
    InvalidQuantity,
    InvalidRecord,
    SchedulingError,
)
from dispensehelper.domain.models import (
    Assignment,
    AssignmentRequest,
    AssignmentResult,
    BurdenMetrics,
    ExcludedItem,
    ExclusionReason,
    Item,
    RolloverNotification,
    WeeklyAssignment,
    WeeklyBatchResult,
)
from dispensehelper.domain.policies import (
    BatchPolicy,
    DefaultBatchPolicy,
    DefaultExpiryPolicy,
    DefaultRiskPolicy,
    ExpiryPolicy,
    RiskPolicy,
)
from dispensehelper.domain.risk import (
    RiskLevel,
    classify_risk,
    is_expired,
    risk_breakdown,
)

__all__ = [
    # Models
    "Assignment",
    "AssignmentRequest",
    "AssignmentResult",
    "BurdenMetrics",
    "ExcludedItem",
    "ExclusionReason",
    "Item",
    "RolloverNotification",
    "WeeklyAssignment",
    "WeeklyBatchResult",
    # Errors
    "DuplicateItem",
    "DuplicateWorker",
    "InvalidDate",
    "InvalidInput",
    "InvalidQuantity",
    "InvalidRecord",
    "SchedulingError",
    # Dates
    "days_until",
    "month_key",
    "next_month_key",
    "parse_iso_date",
    # Policies
    "BatchPolicy",
    "DefaultBatchPolicy",
    "DefaultExpiryPolicy",
    "DefaultRiskPolicy",
    "ExpiryPolicy",
    "RiskPolicy",
    # Risk
    "RiskLevel",
    "classify_risk",
    "is_expired",
    "risk_breakdown",
]
