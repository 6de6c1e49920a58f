"""Shelf-life filtering ahead of fair assignment.

Checks run in a fixed order:
1. An empty roster excludes every item, without looking at dates
2. Items expiring in the reference month are excluded
3. Items with too little shelf life left are excluded
4. Everything else is eligible
"""

import logging
from typing import Optional, Sequence

from dispensehelper.domain.dates import DateLike, days_until, is_same_month
from dispensehelper.domain.models import ExcludedItem, ExclusionReason, Item
from dispensehelper.domain.policies import DefaultExpiryPolicy, ExpiryPolicy

logger = logging.getLogger(__name__)


class ExpiryFilter:
    """Partitions items into eligible and excluded sets.

    Example:
        >>> expiry_filter = ExpiryFilter()
        >>> eligible, excluded = expiry_filter.partition(items, ["w1"], date(2024, 1, 15))
    """

    def __init__(self, policy: Optional[ExpiryPolicy] = None):
        self.policy = policy or DefaultExpiryPolicy()

    def partition(
        self,
        items: Sequence[Item],
        workers: Sequence[str],
        today: DateLike,
    ) -> tuple[list[Item], list[ExcludedItem]]:
        """Split items into (eligible, excluded) lists, preserving input order.

        Args:
            items: Items to check.
            workers: Worker roster; only its emptiness matters here.
            today: Caller-supplied reference date.
        """
        if not workers:
            logger.debug("Empty roster, excluding all %d items", len(items))
            return [], [
                ExcludedItem(item, ExclusionReason.NO_WORKERS_AVAILABLE)
                for item in items
            ]

        eligible: list[Item] = []
        excluded: list[ExcludedItem] = []
        for item in items:
            reason = self.check(item, today)
            if reason is None:
                eligible.append(item)
            else:
                excluded.append(ExcludedItem(item, reason))

        logger.debug(
            "Expiry filter: %d eligible, %d excluded", len(eligible), len(excluded)
        )
        return eligible, excluded

    def check(self, item: Item, today: DateLike) -> Optional[ExclusionReason]:
        """Reason an item would be excluded, or None if it is eligible.

        Does not consider the roster.
        """
        if self.policy.excludes_current_month() and is_same_month(item.expiry_date, today):
            return ExclusionReason.EXPIRES_THIS_MONTH
        if days_until(item.expiry_date, today) < self.policy.min_shelf_life_days():
            return ExclusionReason.INSUFFICIENT_SHELF_LIFE
        return None
