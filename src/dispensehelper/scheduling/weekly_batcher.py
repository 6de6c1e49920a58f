"""Weekly batching of items with month rollover.

This module provides the WeeklyBatcher, which walks all items soonest
expiry first and cuts them into fixed-size weekly batches:
- Each full batch moves the cursor one week forward
- After the last week of a month the cursor moves to week 1 of the next
  calendar month, and the items still waiting are announced in a
  RolloverNotification
- A batch shorter than the capacity is the last one

Items are atomic here; quantities are never split.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from dispensehelper.domain.dates import (
    DateLike,
    month_key,
    next_month_key,
    parse_iso_date,
)
from dispensehelper.domain.models import (
    Item,
    RolloverNotification,
    WeeklyAssignment,
    WeeklyBatchResult,
)
from dispensehelper.domain.policies import BatchPolicy, DefaultBatchPolicy

logger = logging.getLogger(__name__)


@dataclass
class BatchCursor:
    """Current (month, week) position of a batching run."""

    month: str
    week: int = 1

    def advance(self, weeks_per_month: int) -> bool:
        """Move to the next week.

        Returns:
            True if the move crossed into the next month.
        """
        self.week += 1
        if self.week > weeks_per_month:
            self.week = 1
            self.month = next_month_key(self.month)
            return True
        return False


class WeeklyBatcher:
    """Cuts items into weekly batches, rolling overflow into later months.

    Example:
        >>> batcher = WeeklyBatcher()
        >>> result = batcher.batch(items, date(2024, 1, 1))
        >>> result.assignments[0].week
        1
    """

    def __init__(self, policy: Optional[BatchPolicy] = None):
        self.policy = policy or DefaultBatchPolicy()

    def batch(self, items: Sequence[Item], start_date: DateLike) -> WeeklyBatchResult:
        """Batch all items starting at week 1 of ``start_date``'s month.

        Args:
            items: Items to batch; they are not filtered for eligibility.
            start_date: Caller-supplied date naming the first batch month.

        Returns:
            WeeklyBatchResult with batches in order and any rollovers.

        Raises:
            InvalidDate: If start_date is not a date or ISO-8601 string.
        """
        capacity = self.policy.week_capacity()
        weeks_per_month = self.policy.weeks_per_month()

        # sorted() is stable, so equal expiry dates keep input order
        ordered = sorted(items, key=lambda item: item.expiry_date)
        cursor = BatchCursor(month=month_key(parse_iso_date(start_date)))
        result = WeeklyBatchResult()

        index = 0
        while index < len(ordered):
            chunk = ordered[index : index + capacity]
            index += len(chunk)
            result.assignments.append(
                WeeklyAssignment(month=cursor.month, week=cursor.week, products=chunk)
            )
            if len(chunk) < capacity:
                break

            from_month = cursor.month
            if cursor.advance(weeks_per_month) and index < len(ordered):
                result.rollovers.append(
                    RolloverNotification(
                        from_month=from_month,
                        from_week=weeks_per_month,
                        to_month=cursor.month,
                        to_week=cursor.week,
                        product_ids=tuple(item.id for item in ordered[index:]),
                    )
                )
                logger.debug(
                    "Rolled %d items from %s into %s",
                    len(ordered) - index, from_month, cursor.month,
                )

        logger.debug(
            "Batched %d items into %d weeks with %d rollovers",
            len(ordered), len(result.assignments), len(result.rollovers),
        )
        return result
