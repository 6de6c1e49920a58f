"""Domain models for the dispensing scheduler.

This module contains the data structures exchanged by both scheduling
pipelines: stock items, fair-share assignments, exclusion reports, weekly
batches and rollover notifications. Everything here lives for a single
scheduling call; nothing is persisted.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional, Union

from dispensehelper.domain.dates import DateLike, month_key, parse_iso_date
from dispensehelper.domain.errors import (
    DuplicateItem,
    DuplicateWorker,
    InvalidQuantity,
    InvalidRecord,
)


class ExclusionReason(Enum):
    """Why an item was left out of fair assignment."""

    EXPIRES_THIS_MONTH = "expires_this_month"
    INSUFFICIENT_SHELF_LIFE = "insufficient_shelf_life"
    NO_WORKERS_AVAILABLE = "no_workers_available"

    @property
    def label(self) -> str:
        """Human-readable description for operator reports."""
        return _REASON_LABELS[self]


_REASON_LABELS = {
    ExclusionReason.EXPIRES_THIS_MONTH: "Expires this month",
    ExclusionReason.INSUFFICIENT_SHELF_LIFE: "Below minimum shelf life",
    ExclusionReason.NO_WORKERS_AVAILABLE: "No dispensers available",
}


@dataclass(frozen=True)
class Item:
    """A stock line with an expiry date and a quantity on hand.

    Strings and datetimes passed as ``expiry_date`` are normalised to a
    calendar date.

    Attributes:
        id: Opaque identifier from the inventory store.
        expiry_date: Calendar date the stock expires.
        quantity: Units on hand, always greater than zero.
        name: Optional display name.

    Raises:
        InvalidRecord: If the id is missing or blank.
        InvalidDate: If the expiry date cannot be parsed.
        InvalidQuantity: If the quantity is not a positive integer.
    """

    id: str
    expiry_date: date
    quantity: int
    name: str = ""

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidRecord(self.id, "item id must be a non-empty string")

        expiry = parse_iso_date(self.expiry_date, self.id)
        if expiry is not self.expiry_date:
            object.__setattr__(self, "expiry_date", expiry)

        # bool is an int subclass but never a meaningful quantity
        if (
            isinstance(self.quantity, bool)
            or not isinstance(self.quantity, int)
            or self.quantity <= 0
        ):
            raise InvalidQuantity(self.id, self.quantity)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Item":
        """Build an item from an item-feed record.

        Accepts ``expiryDate`` or ``expiry_date`` and ``id`` or ``itemId``.

        Raises:
            InvalidRecord: If the record is not a mapping or has no id.
        """
        if not isinstance(data, Mapping):
            raise InvalidRecord(data, "expected a mapping")

        item_id = data.get("id", data.get("itemId"))
        if item_id is None or not str(item_id).strip():
            raise InvalidRecord(data, "missing item id")

        raw_expiry = data.get("expiryDate", data.get("expiry_date"))
        return cls(
            id=str(item_id),
            expiry_date=parse_iso_date(raw_expiry, item_id),
            quantity=data.get("quantity"),
            name=data.get("name") or "",
        )

    @property
    def month_key(self) -> str:
        """``YYYY-MM`` key of the expiry month."""
        return month_key(self.expiry_date)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "expiryDate": self.expiry_date.isoformat(),
            "quantity": self.quantity,
        }
        if self.name:
            data["name"] = self.name
        return data


@dataclass(frozen=True)
class Assignment:
    """A share of one item's quantity handed to one worker.

    A worker may receive several records for the same item in one run;
    consumers must sum them rather than keep the last one.
    """

    worker_id: str
    item_id: str
    expiry_month: str
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "workerId": self.worker_id,
            "itemId": self.item_id,
            "expiryMonth": self.expiry_month,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class ExcludedItem:
    """An item left out of fair assignment, with the reason."""

    item: Item
    reason: ExclusionReason

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def expiry_date(self) -> date:
        return self.item.expiry_date

    @property
    def quantity(self) -> int:
        return self.item.quantity

    def to_dict(self) -> dict[str, Any]:
        data = self.item.to_dict()
        data["reason"] = self.reason.value
        return data


@dataclass
class WeeklyAssignment:
    """One week's batch of items.

    Attributes:
        month: ``YYYY-MM`` key of the batch month.
        week: Week number within the month (1-4 by default).
        products: Items in the batch, soonest expiry first.
    """

    month: str
    week: int
    products: list[Item] = field(default_factory=list)

    @property
    def product_ids(self) -> list[str]:
        return [p.id for p in self.products]

    def __len__(self) -> int:
        return len(self.products)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "week": self.week,
            "products": [p.to_dict() for p in self.products],
        }


@dataclass(frozen=True)
class RolloverNotification:
    """Items carried from the last week of one month into the next month."""

    from_month: str
    from_week: int
    to_month: str
    to_week: int
    product_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "fromMonth": self.from_month,
            "fromWeek": self.from_week,
            "toMonth": self.to_month,
            "toWeek": self.to_week,
            "productIds": list(self.product_ids),
        }


@dataclass
class AssignmentRequest:
    """Input for one fair-assignment run.

    Attributes:
        items: Stock items to distribute.
        workers: Worker roster in tie-breaking order.
        today: Caller-supplied reference date (never read from a clock).
    """

    items: list[Union[Item, dict[str, Any]]]
    workers: list[str]
    today: Union[DateLike, str]

    def validate(self) -> None:
        """Check and normalise the request before allocation begins.

        Item-feed records are turned into Items and an ISO-8601 ``today`` is
        parsed, so after this call ``items`` holds only Items and ``today``
        is a date or datetime.

        Raises:
            InvalidRecord: If an item record is malformed.
            InvalidQuantity: If an item has a bad quantity.
            InvalidDate: If an expiry date or ``today`` cannot be parsed.
            DuplicateWorker: If a worker id is listed twice.
            DuplicateItem: If an item id is listed twice.
        """
        if not isinstance(self.today, (date, datetime)):
            self.today = parse_iso_date(self.today)

        self.items = [
            item if isinstance(item, Item) else Item.from_dict(item)
            for item in self.items
        ]

        seen: set[str] = set()
        for worker_id in self.workers:
            if worker_id in seen:
                raise DuplicateWorker(worker_id)
            seen.add(worker_id)

        # Conservation is checked per item id, so ids must be unique
        seen_items: set[str] = set()
        for item in self.items:
            if item.id in seen_items:
                raise DuplicateItem(item.id)
            seen_items.add(item.id)


@dataclass
class BurdenMetrics:
    """Metrics for evaluating how evenly quantity was spread.

    Attributes:
        burden_per_worker: Dict mapping worker ID to assigned quantity.
        total: Total quantity assigned.
        mean: Average burden across the roster.
        std_dev: Standard deviation of burden.
        min_burden: Smallest burden of any worker.
        max_burden: Largest burden of any worker.
        fairness_score: 0-100, higher is fairer.
    """

    burden_per_worker: dict[str, int] = field(default_factory=dict)
    total: int = 0
    mean: float = 0.0
    std_dev: float = 0.0
    min_burden: int = 0
    max_burden: int = 0
    fairness_score: float = 100.0

    @property
    def spread(self) -> int:
        """Difference between the heaviest and lightest burden."""
        return self.max_burden - self.min_burden

    @classmethod
    def calculate(cls, burdens: dict[str, int]) -> "BurdenMetrics":
        """Calculate metrics from a worker -> burden map."""
        if not burdens:
            return cls()

        values = list(burdens.values())
        total = sum(values)
        mean = total / len(values)
        variance = sum((v - mean) ** 2 for v in values) / len(values)
        std_dev = variance ** 0.5

        # Coefficient of variation against the mean; an idle roster is fair
        score = 100.0 if mean == 0 else max(0.0, 100.0 - (std_dev / mean) * 100.0)

        return cls(
            burden_per_worker=dict(burdens),
            total=total,
            mean=mean,
            std_dev=std_dev,
            min_burden=min(values),
            max_burden=max(values),
            fairness_score=score,
        )


@dataclass
class AssignmentResult:
    """Output of one fair-assignment run.

    Attributes:
        assignments: Assignment records in allocation order.
        excluded: Items left out, with reasons.
        eligible: Items that passed the expiry filter.
        burdens: Final burden per worker, in roster order.
    """

    assignments: list[Assignment] = field(default_factory=list)
    excluded: list[ExcludedItem] = field(default_factory=list)
    eligible: list[Item] = field(default_factory=list)
    burdens: dict[str, int] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True if nothing was assigned."""
        return not self.assignments

    def totals_by_worker(self) -> dict[str, int]:
        """Total quantity per worker, in roster order."""
        totals = {worker_id: 0 for worker_id in self.burdens}
        for assignment in self.assignments:
            totals[assignment.worker_id] = (
                totals.get(assignment.worker_id, 0) + assignment.quantity
            )
        return totals

    def quantity_for(self, worker_id: str, item_id: str) -> int:
        """Summed quantity of one item handed to one worker."""
        return sum(
            a.quantity
            for a in self.assignments
            if a.worker_id == worker_id and a.item_id == item_id
        )

    def assigned_quantity(self, item_id: str) -> int:
        """Summed quantity of one item across all workers."""
        return sum(a.quantity for a in self.assignments if a.item_id == item_id)

    def month_order(self) -> list[str]:
        """Distinct expiry months in the order they were assigned."""
        months: list[str] = []
        for assignment in self.assignments:
            if not months or months[-1] != assignment.expiry_month:
                months.append(assignment.expiry_month)
        return months

    def excluded_by_reason(self) -> dict[ExclusionReason, list[ExcludedItem]]:
        grouped: dict[ExclusionReason, list[ExcludedItem]] = {
            reason: [] for reason in ExclusionReason
        }
        for excluded in self.excluded:
            grouped[excluded.reason].append(excluded)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        return {
            "assignments": [a.to_dict() for a in self.assignments],
            "excluded": [e.to_dict() for e in self.excluded],
            "burdens": dict(self.burdens),
        }


@dataclass
class WeeklyBatchResult:
    """Output of one weekly batching run."""

    assignments: list[WeeklyAssignment] = field(default_factory=list)
    rollovers: list[RolloverNotification] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.assignments

    def weeks_for_month(self, month: str) -> list[WeeklyAssignment]:
        """Batches labelled with a given month key."""
        return [wa for wa in self.assignments if wa.month == month]

    def partial_weeks(self, capacity: int) -> list[WeeklyAssignment]:
        """Batches holding fewer than ``capacity`` items."""
        return [wa for wa in self.assignments if len(wa) < capacity]

    def find_week(self, item_id: str) -> Optional[WeeklyAssignment]:
        """The batch an item landed in, if any."""
        for wa in self.assignments:
            if item_id in wa.product_ids:
                return wa
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "assignments": [wa.to_dict() for wa in self.assignments],
            "rollovers": [r.to_dict() for r in self.rollovers],
        }
