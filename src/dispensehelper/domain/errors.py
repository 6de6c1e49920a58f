"""Typed exceptions for the dispensing scheduler.

Only caller contract violations are raised. Expected degenerate situations
(an empty roster, nothing eligible, an exact multiple of the weekly capacity)
are returned as ordinary result data.

    SchedulingError
    +-- InvalidInput
        +-- InvalidQuantity
        +-- InvalidDate
        +-- InvalidRecord
        +-- DuplicateWorker
        +-- DuplicateItem

Every class carries a ``code`` class attribute so callers can report the
failure without parsing messages.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base exception for all scheduler errors."""

    code: str = "SCHEDULING_ERROR"


class InvalidInput(SchedulingError):
    """Input rejected before any allocation began."""

    code: str = "INVALID_INPUT"


class InvalidQuantity(InvalidInput):
    """Item quantity is not a positive integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, item_id: Optional[str], quantity: Any):
        self.item_id = item_id
        self.quantity = quantity
        super().__init__(
            f"Item {item_id!r} has invalid quantity {quantity!r}: "
            f"expected an integer greater than zero"
        )


class InvalidDate(InvalidInput):
    """Item expiry date is missing or cannot be parsed."""

    code: str = "INVALID_DATE"

    def __init__(self, item_id: Optional[str], value: Any):
        self.item_id = item_id
        self.value = value
        super().__init__(
            f"Item {item_id!r} has invalid expiry date {value!r}: "
            f"expected an ISO-8601 calendar date"
        )


class DuplicateWorker(InvalidInput):
    """The same worker id appears more than once in a roster."""

    code: str = "DUPLICATE_WORKER"

    def __init__(self, worker_id: str):
        self.worker_id = worker_id
        super().__init__(f"Worker {worker_id!r} appears more than once in the roster")


class DuplicateItem(InvalidInput):
    """The same item id appears more than once in an assignment request."""

    code: str = "DUPLICATE_ITEM"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item {item_id!r} appears more than once in the request")


class InvalidRecord(InvalidInput):
    """An item-feed record is not a mapping or has no usable id."""

    code: str = "INVALID_RECORD"

    def __init__(self, record: Any, reason: str):
        self.record = record
        self.reason = reason
        super().__init__(f"Invalid item record {record!r}: {reason}")
