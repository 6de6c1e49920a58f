"""Main scheduler interface.

This module provides the high-level ExpiryScheduler class that orchestrates
expiry filtering, month grouping and fair assignment, plus module-level
helpers for the two pipelines.
"""

import logging
from collections import Counter
from typing import Any, Iterable, Optional, Sequence, Union

from dispensehelper.domain.dates import DateLike
from dispensehelper.domain.models import (
    AssignmentRequest,
    AssignmentResult,
    BurdenMetrics,
    ExclusionReason,
    Item,
    WeeklyBatchResult,
)
from dispensehelper.domain.policies import (
    BatchPolicy,
    DefaultExpiryPolicy,
    ExpiryPolicy,
    RiskPolicy,
)
from dispensehelper.domain.risk import risk_breakdown
from dispensehelper.scheduling.expiry_filter import ExpiryFilter
from dispensehelper.scheduling.fair_assigner import FairAssigner
from dispensehelper.scheduling.month_grouper import MonthGrouper
from dispensehelper.scheduling.weekly_batcher import WeeklyBatcher

logger = logging.getLogger(__name__)

ItemLike = Union[Item, dict[str, Any]]


def coerce_items(items: Iterable[ItemLike]) -> list[Item]:
    """Turn item-feed records into Items, validating every one.

    Raises:
        InvalidRecord: On the first record that is not a mapping or has no id.
        InvalidQuantity: On the first item with a bad quantity.
        InvalidDate: On the first item with a bad expiry date.
    """
    return [item if isinstance(item, Item) else Item.from_dict(item) for item in items]


class ExpiryScheduler:
    """High-level scheduler for expiry-aware fair assignment.

    The whole input is validated before anything is allocated, so a call
    either returns a complete result or raises without side effects.

    Example:
        >>> scheduler = ExpiryScheduler()
        >>> request = AssignmentRequest(
        ...     items=[Item("a", date(2024, 3, 1), 10)],
        ...     workers=["w1", "w2"],
        ...     today=date(2024, 1, 15),
        ... )
        >>> result = scheduler.generate_assignments(request)
    """

    def __init__(
        self,
        expiry_policy: Optional[ExpiryPolicy] = None,
        risk_policy: Optional[RiskPolicy] = None,
    ):
        """Initialize scheduler with policies.

        Args:
            expiry_policy: Policy for shelf-life eligibility.
            risk_policy: Policy for risk bands in run statistics.
        """
        self.expiry_policy = expiry_policy or DefaultExpiryPolicy()
        self.risk_policy = risk_policy

        self.expiry_filter = ExpiryFilter(policy=self.expiry_policy)
        self.month_grouper = MonthGrouper()
        self.assigner = FairAssigner()

    def generate_assignments(self, request: AssignmentRequest) -> AssignmentResult:
        """Filter, group and fairly assign the requested items.

        Args:
            request: Items, roster and reference date.

        Returns:
            AssignmentResult with assignments, exclusions and burdens.
        """
        request.validate()
        items = request.items
        workers = list(request.workers)

        eligible, excluded = self.expiry_filter.partition(items, workers, request.today)
        result = AssignmentResult(
            excluded=excluded,
            eligible=eligible,
            burdens={worker_id: 0 for worker_id in workers},
        )
        if not eligible:
            logger.info("No eligible items among %d", len(items))
            return result

        buckets = self.month_grouper.group(eligible)
        result.assignments, result.burdens = self.assigner.assign(buckets, workers)

        logger.info(
            "Assigned %d items in %d months to %d workers (%d excluded)",
            len(eligible), len(buckets), len(workers), len(excluded),
        )
        return result

    def generate_assignments_with_stats(
        self,
        request: AssignmentRequest,
    ) -> tuple[AssignmentResult, dict]:
        """Generate assignments and return statistics.

        Args:
            request: Items, roster and reference date.

        Returns:
            Tuple of (result, stats_dict).
        """
        result = self.generate_assignments(request)
        stats = self._calculate_stats(result, request)
        return result, stats

    def _calculate_stats(
        self,
        result: AssignmentResult,
        request: AssignmentRequest,
    ) -> dict:
        """Calculate run statistics."""
        quantity_by_month: Counter = Counter()
        for assignment in result.assignments:
            quantity_by_month[assignment.expiry_month] += assignment.quantity

        reasons = Counter(excluded.reason for excluded in result.excluded)
        all_items = result.eligible + [excluded.item for excluded in result.excluded]

        return {
            "total_items": len(all_items),
            "eligible_items": len(result.eligible),
            "excluded_items": len(result.excluded),
            "excluded_by_reason": {
                reason.value: reasons.get(reason, 0) for reason in ExclusionReason
            },
            "total_workers": len(result.burdens),
            "assignment_records": len(result.assignments),
            "total_quantity_assigned": sum(a.quantity for a in result.assignments),
            "quantity_by_month": dict(sorted(quantity_by_month.items())),
            "burden_metrics": BurdenMetrics.calculate(result.burdens),
            "risk_breakdown": {
                level.value: count
                for level, count in risk_breakdown(
                    all_items, request.today, self.risk_policy
                ).items()
            },
        }


def assign_items_fairly(
    items: Iterable[ItemLike],
    workers: Sequence[str],
    today: DateLike,
    policy: Optional[ExpiryPolicy] = None,
) -> AssignmentResult:
    """Run the expiry filter, month grouper and fair assigner in one call."""
    request = AssignmentRequest(items=list(items), workers=list(workers), today=today)
    return ExpiryScheduler(expiry_policy=policy).generate_assignments(request)


def assign_weekly_with_rollover(
    items: Iterable[ItemLike],
    start_date: DateLike,
    policy: Optional[BatchPolicy] = None,
) -> WeeklyBatchResult:
    """Validate items and cut them into weekly batches with rollover."""
    return WeeklyBatcher(policy=policy).batch(coerce_items(items), start_date)
