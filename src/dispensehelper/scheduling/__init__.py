"""Scheduling engine for expiry-aware dispensing."""

from dispensehelper.scheduling.expiry_filter import ExpiryFilter
from dispensehelper.scheduling.fair_assigner import BurdenTracker, FairAssigner
from dispensehelper.scheduling.month_grouper import MonthGrouper
from dispensehelper.scheduling.scheduler import (
    ExpiryScheduler,
    assign_items_fairly,
    assign_weekly_with_rollover,
    coerce_items,
)
from dispensehelper.scheduling.weekly_batcher import BatchCursor, WeeklyBatcher

__all__ = [
    # Orchestration
    "ExpiryScheduler",
    "assign_items_fairly",
    "assign_weekly_with_rollover",
    "coerce_items",
    # Fair assignment pipeline
    "ExpiryFilter",
    "MonthGrouper",
    "FairAssigner",
    "BurdenTracker",
    # Weekly batching pipeline
    "WeeklyBatcher",
    "BatchCursor",
]
