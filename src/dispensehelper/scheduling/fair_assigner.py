"""Least-burden greedy allocation of item quantities to workers.

For each item, soonest expiry month first and soonest expiry first within a
month, the solver repeatedly:
1. Finds the workers currently carrying the least quantity
2. Splits what is left of the item evenly (rounded up) across as many of
   them as it needs, in roster order
3. Adds each share to that worker's burden

Every unit of every item is handed out, and workers are only ever picked
from the current minimum-burden set.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from dispensehelper.domain.models import Assignment, Item

logger = logging.getLogger(__name__)


@dataclass
class BurdenTracker:
    """Tracks quantity assigned to each worker during one run.

    Insertion order follows the roster, so ties always resolve in roster
    order.
    """

    burdens: dict[str, int] = field(default_factory=dict)

    @classmethod
    def for_roster(cls, workers: Sequence[str]) -> "BurdenTracker":
        """Start every worker on the roster at zero."""
        return cls(burdens={worker_id: 0 for worker_id in workers})

    @property
    def min_burden(self) -> int:
        """Smallest burden currently carried by any worker."""
        return min(self.burdens.values())

    def least_burdened(self) -> list[str]:
        """Workers at the current minimum burden, in roster order."""
        lowest = self.min_burden
        return [w for w, burden in self.burdens.items() if burden == lowest]

    def add(self, worker_id: str, quantity: int) -> None:
        """Record quantity handed to a worker."""
        self.burdens[worker_id] += quantity

    def snapshot(self) -> dict[str, int]:
        """Copy of the current burdens."""
        return dict(self.burdens)


class FairAssigner:
    """Distributes item quantities across interchangeable workers.

    Deterministic: the same buckets and roster always produce the same
    assignments in the same order.

    Example:
        >>> assigner = FairAssigner()
        >>> assignments, burdens = assigner.assign({"2024-03": items}, ["w1", "w2"])
    """

    def assign(
        self,
        buckets: Mapping[str, Sequence[Item]],
        workers: Sequence[str],
    ) -> tuple[list[Assignment], dict[str, int]]:
        """Assign every unit of every bucketed item.

        Args:
            buckets: Month key -> items, already in processing order
                (as produced by ``MonthGrouper``).
            workers: Worker roster in tie-breaking order.

        Returns:
            Tuple of (assignments, final burden per worker).

        Raises:
            ValueError: If the roster is empty.
        """
        if not workers:
            raise ValueError("FairAssigner needs at least one worker")

        tracker = BurdenTracker.for_roster(workers)
        assignments: list[Assignment] = []

        for month, items in buckets.items():
            for item in items:
                assignments.extend(self._assign_item(item, month, tracker))

        logger.debug(
            "Assigned %d records across %d workers", len(assignments), len(workers)
        )
        return assignments, tracker.snapshot()

    def _assign_item(
        self,
        item: Item,
        month: str,
        tracker: BurdenTracker,
    ) -> list[Assignment]:
        """Hand out one item's full quantity."""
        records = []
        remaining = item.quantity

        while remaining > 0:
            least_burdened = tracker.least_burdened()
            assign_count = min(len(least_burdened), remaining)
            per_worker = math.ceil(remaining / assign_count)

            for worker_id in least_burdened[:assign_count]:
                share = min(per_worker, remaining)
                records.append(
                    Assignment(
                        worker_id=worker_id,
                        item_id=item.id,
                        expiry_month=month,
                        quantity=share,
                    )
                )
                tracker.add(worker_id, share)
                remaining -= share
                if remaining == 0:
                    break

        return records
