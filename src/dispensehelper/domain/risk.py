"""Expiry risk classification for stock items.

An item counts as expired once its expiry month has arrived: stock expiring
later in the current month is already treated as expired, which is what
pharmacies do in practice.
"""

from collections import Counter
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from dispensehelper.domain.dates import DateLike, days_until
from dispensehelper.domain.models import Item
from dispensehelper.domain.policies import DefaultRiskPolicy, RiskPolicy


class RiskLevel(Enum):
    """Expiry risk bands, most urgent first."""

    EXPIRED = "expired"
    CRITICAL = "critical"
    HIGH = "high"
    LOW = "low"
    VERY_LOW = "very_low"


def is_expired(expiry: date, today: DateLike) -> bool:
    """True if ``expiry`` falls in an earlier month or in the month of ``today``."""
    return (expiry.year, expiry.month) <= (today.year, today.month)


def classify_risk(
    expiry: date,
    today: DateLike,
    policy: Optional[RiskPolicy] = None,
) -> RiskLevel:
    """Classify an expiry date into a risk band.

    Args:
        expiry: Expiry date of the item.
        today: Caller-supplied reference date.
        policy: Risk thresholds, defaults to ``DefaultRiskPolicy``.
    """
    policy = policy or DefaultRiskPolicy()
    if is_expired(expiry, today):
        return RiskLevel.EXPIRED

    days_left = days_until(expiry, today)
    if days_left <= policy.critical_days():
        return RiskLevel.CRITICAL
    if days_left <= policy.high_days():
        return RiskLevel.HIGH
    if days_left <= policy.low_days():
        return RiskLevel.LOW
    return RiskLevel.VERY_LOW


def risk_breakdown(
    items: Iterable[Item],
    today: DateLike,
    policy: Optional[RiskPolicy] = None,
) -> dict[RiskLevel, int]:
    """Count items per risk band (every band present, zero if empty)."""
    counts = Counter(classify_risk(item.expiry_date, today, policy) for item in items)
    return {level: counts.get(level, 0) for level in RiskLevel}
