"""Groups eligible items into expiry-month buckets."""

from collections import defaultdict
from typing import Iterable

from dispensehelper.domain.models import Item


class MonthGrouper:
    """Buckets items by ``YYYY-MM`` expiry month.

    Buckets come back in chronological order and each bucket is sorted
    soonest expiry first. That order decides which items get first claim
    on the least-burdened workers.
    """

    def group(self, items: Iterable[Item]) -> dict[str, list[Item]]:
        """Group items by expiry month.

        Returns:
            Dict of month key -> items, keys ascending. Ties on expiry date
            keep their input order.
        """
        buckets: dict[str, list[Item]] = defaultdict(list)
        for item in items:
            buckets[item.month_key].append(item)

        return {
            month: sorted(buckets[month], key=lambda item: item.expiry_date)
            for month in sorted(buckets)
        }
