"""Policy definitions for scheduling rules.

This module contains configurable policies that define the business rules
for shelf-life eligibility, weekly batching and expiry risk. Policies are
kept separate from the scheduling engine to allow independent testing and
easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class ExpiryPolicy(ABC):
    """Abstract base class for shelf-life eligibility policies."""

    @abstractmethod
    def min_shelf_life_days(self) -> int:
        """Fewest days left before an item can be assigned."""
        pass

    @abstractmethod
    def excludes_current_month(self) -> bool:
        """Whether items expiring in the reference month are always excluded."""
        pass


class BatchPolicy(ABC):
    """Abstract base class for weekly batching policies."""

    @abstractmethod
    def week_capacity(self) -> int:
        """Maximum number of items in one weekly batch."""
        pass

    @abstractmethod
    def weeks_per_month(self) -> int:
        """Number of weekly batches before rolling into the next month."""
        pass


class RiskPolicy(ABC):
    """Abstract base class for expiry risk thresholds."""

    @abstractmethod
    def critical_days(self) -> int:
        """Items with at most this many days left are critical."""
        pass

    @abstractmethod
    def high_days(self) -> int:
        """Items with at most this many days left are high risk."""
        pass

    @abstractmethod
    def low_days(self) -> int:
        """Items with at most this many days left are low risk."""
        pass


@dataclass
class DefaultExpiryPolicy(ExpiryPolicy):
    """Default eligibility policy.

    - Items expiring in the reference month are excluded outright.
    - Otherwise at least 30 days of shelf life are required.

    The month rule runs first, so an item 35 days out that is still in the
    reference month is excluded while one 31 days out in the next month is
    eligible.
    """

    min_days: int = 30
    exclude_current_month: bool = True

    def __post_init__(self):
        if self.min_days < 0:
            raise ValueError(f"min_days must be non-negative, got {self.min_days}")

    def min_shelf_life_days(self) -> int:
        return self.min_days

    def excludes_current_month(self) -> bool:
        return self.exclude_current_month


@dataclass
class DefaultBatchPolicy(BatchPolicy):
    """Default batching policy: 7 items a week, 4 weeks a month."""

    capacity: int = 7
    weeks: int = 4

    def __post_init__(self):
        if self.capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {self.capacity}")
        if self.weeks < 1:
            raise ValueError(f"weeks must be at least 1, got {self.weeks}")

    def week_capacity(self) -> int:
        return self.capacity

    def weeks_per_month(self) -> int:
        return self.weeks


@dataclass
class DefaultRiskPolicy(RiskPolicy):
    """Default risk bands.

    - Critical: 0-30 days
    - High: 31-60 days
    - Low: 61-180 days
    - Very low: 181+ days
    """

    critical: int = 30
    high: int = 60
    low: int = 180

    def __post_init__(self):
        if not (self.critical <= self.high <= self.low):
            raise ValueError(
                f"risk thresholds must be ascending, got "
                f"{self.critical}/{self.high}/{self.low}"
            )

    def critical_days(self) -> int:
        return self.critical

    def high_days(self) -> int:
        return self.high

    def low_days(self) -> int:
        return self.low
