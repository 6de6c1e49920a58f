"""Validation module for verifying scheduling results.

This module provides a single source of truth for the invariants both
pipelines promise. Results are checked after the fact; nothing here changes
a result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dispensehelper.domain.dates import DateLike, next_month_key
from dispensehelper.domain.models import (
    AssignmentResult,
    ExclusionReason,
    WeeklyBatchResult,
)
from dispensehelper.domain.policies import (
    BatchPolicy,
    DefaultBatchPolicy,
    DefaultExpiryPolicy,
    ExpiryPolicy,
)
from dispensehelper.scheduling.expiry_filter import ExpiryFilter


class ValidationErrorType(Enum):
    """Types of validation errors."""

    NON_POSITIVE_QUANTITY = "non_positive_quantity"
    UNKNOWN_WORKER = "unknown_worker"
    CONSERVATION_VIOLATED = "conservation_violated"
    EXCLUDED_ITEM_ASSIGNED = "excluded_item_assigned"
    INELIGIBLE_ITEM_ASSIGNED = "ineligible_item_assigned"
    MONTH_ORDER_VIOLATED = "month_order_violated"
    BURDEN_MISMATCH = "burden_mismatch"
    EXCLUSION_REASON_MISMATCH = "exclusion_reason_mismatch"
    WEEK_OVER_CAPACITY = "week_over_capacity"
    WEEK_OUT_OF_RANGE = "week_out_of_range"
    WEEK_SEQUENCE_BROKEN = "week_sequence_broken"
    MULTIPLE_PARTIAL_WEEKS = "multiple_partial_weeks"
    ROLLOVER_MONTH_SKIPPED = "rollover_month_skipped"
    ROLLOVER_WEEK_INVALID = "rollover_week_invalid"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    worker_id: Optional[str] = None
    item_id: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.worker_id:
            parts.append(f"Worker {self.worker_id}:")
        if self.item_id:
            parts.append(f"Item {self.item_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a scheduling run."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def error_types(self) -> set[ValidationErrorType]:
        return {error.error_type for error in self.errors}


class ScheduleValidator:
    """Validates scheduling results against their invariants.

    Example:
        >>> validator = ScheduleValidator()
        >>> result = validator.validate_assignments(assignment_result)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(
        self,
        expiry_policy: Optional[ExpiryPolicy] = None,
        batch_policy: Optional[BatchPolicy] = None,
    ):
        self.expiry_policy = expiry_policy or DefaultExpiryPolicy()
        self.batch_policy = batch_policy or DefaultBatchPolicy()

    def validate_assignments(
        self,
        result: AssignmentResult,
        today: Optional[DateLike] = None,
    ) -> ValidationResult:
        """Validate a fair-assignment result.

        Args:
            result: The result to validate.
            today: Reference date of the run. When given, eligible items are
                re-checked against the expiry policy.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        validation = ValidationResult(is_valid=True)
        roster = set(result.burdens)

        for assignment in result.assignments:
            if assignment.quantity <= 0:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.NON_POSITIVE_QUANTITY,
                        message=f"Assignment quantity {assignment.quantity} is not positive",
                        worker_id=assignment.worker_id,
                        item_id=assignment.item_id,
                    )
                )
            if assignment.worker_id not in roster:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_WORKER,
                        message="Assignment to a worker outside the roster",
                        worker_id=assignment.worker_id,
                        item_id=assignment.item_id,
                    )
                )

        self._validate_conservation(result, validation)
        self._validate_exclusions(result, validation)
        self._validate_month_order(result, validation)
        self._validate_burdens(result, validation)

        if today is not None:
            expiry_filter = ExpiryFilter(policy=self.expiry_policy)
            for item in result.eligible:
                reason = expiry_filter.check(item, today)
                if reason is not None:
                    validation.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.INELIGIBLE_ITEM_ASSIGNED,
                            message=f"Item should have been excluded ({reason.value})",
                            item_id=item.id,
                        )
                    )

        self._check_fairness(result, validation)
        return validation

    def _validate_conservation(
        self,
        result: AssignmentResult,
        validation: ValidationResult,
    ) -> None:
        """Every eligible item must be assigned exactly its quantity."""
        assigned: dict[str, int] = {}
        for assignment in result.assignments:
            assigned[assignment.item_id] = (
                assigned.get(assignment.item_id, 0) + assignment.quantity
            )

        for item in result.eligible:
            total = assigned.get(item.id, 0)
            if total != item.quantity:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.CONSERVATION_VIOLATED,
                        message=f"Assigned {total} of {item.quantity} units",
                        item_id=item.id,
                        details={"assigned": total, "expected": item.quantity},
                    )
                )

    def _validate_exclusions(
        self,
        result: AssignmentResult,
        validation: ValidationResult,
    ) -> None:
        """Excluded items stay unassigned and carry a consistent reason."""
        assigned_ids = {a.item_id for a in result.assignments}
        roster_empty = not result.burdens

        for excluded in result.excluded:
            if excluded.id in assigned_ids:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.EXCLUDED_ITEM_ASSIGNED,
                        message=f"Excluded item ({excluded.reason.value}) was assigned",
                        item_id=excluded.id,
                    )
                )
            no_workers = excluded.reason == ExclusionReason.NO_WORKERS_AVAILABLE
            if no_workers != roster_empty:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.EXCLUSION_REASON_MISMATCH,
                        message=(
                            f"Reason {excluded.reason.value} used with "
                            f"{'an empty' if roster_empty else 'a non-empty'} roster"
                        ),
                        item_id=excluded.id,
                    )
                )

    def _validate_month_order(
        self,
        result: AssignmentResult,
        validation: ValidationResult,
    ) -> None:
        """Expiry months must appear in strictly increasing order."""
        months = result.month_order()
        for earlier, later in zip(months, months[1:]):
            if later <= earlier:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MONTH_ORDER_VIOLATED,
                        message=f"Month {later} assigned after {earlier}",
                        details={"months": months},
                    )
                )

    def _validate_burdens(
        self,
        result: AssignmentResult,
        validation: ValidationResult,
    ) -> None:
        """Reported burdens must equal the summed assignment records."""
        summed: dict[str, int] = {worker_id: 0 for worker_id in result.burdens}
        for assignment in result.assignments:
            summed[assignment.worker_id] = (
                summed.get(assignment.worker_id, 0) + assignment.quantity
            )
        for worker_id, total in summed.items():
            reported = result.burdens.get(worker_id)
            if reported != total:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.BURDEN_MISMATCH,
                        message=f"Reported burden {reported} but records sum to {total}",
                        worker_id=worker_id,
                    )
                )

    def _check_fairness(
        self,
        result: AssignmentResult,
        validation: ValidationResult,
    ) -> None:
        """Warn if a unit-quantity run ends more than one unit apart."""
        if not result.burdens or not result.eligible:
            return
        if any(item.quantity != 1 for item in result.eligible):
            return
        spread = max(result.burdens.values()) - min(result.burdens.values())
        if spread > 1:
            validation.add_warning(
                f"Unit-quantity run has burden spread {spread} (expected at most 1)"
            )

    def validate_weekly(self, batch: WeeklyBatchResult) -> ValidationResult:
        """Validate a weekly batching result.

        Args:
            batch: The batching result to validate.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        validation = ValidationResult(is_valid=True)
        capacity = self.batch_policy.week_capacity()
        weeks_per_month = self.batch_policy.weeks_per_month()

        for weekly in batch.assignments:
            if len(weekly) > capacity:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WEEK_OVER_CAPACITY,
                        message=(
                            f"{weekly.month} week {weekly.week} holds "
                            f"{len(weekly)} items, capacity is {capacity}"
                        ),
                    )
                )
            if not 1 <= weekly.week <= weeks_per_month:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WEEK_OUT_OF_RANGE,
                        message=f"Week {weekly.week} outside 1-{weeks_per_month}",
                    )
                )

        for previous, current in zip(batch.assignments, batch.assignments[1:]):
            if previous.week < weeks_per_month:
                expected = (previous.month, previous.week + 1)
            else:
                expected = (next_month_key(previous.month), 1)
            if (current.month, current.week) != expected:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WEEK_SEQUENCE_BROKEN,
                        message=(
                            f"{current.month} week {current.week} follows "
                            f"{previous.month} week {previous.week}"
                        ),
                    )
                )

        partial = batch.partial_weeks(capacity)
        if len(partial) > 1 or (partial and partial[0] is not batch.assignments[-1]):
            validation.add_error(
                ValidationError(
                    error_type=ValidationErrorType.MULTIPLE_PARTIAL_WEEKS,
                    message=(
                        f"{len(partial)} partial weeks; only the final week "
                        f"may be partial"
                    ),
                )
            )

        for rollover in batch.rollovers:
            if rollover.to_month != next_month_key(rollover.from_month):
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.ROLLOVER_MONTH_SKIPPED,
                        message=(
                            f"Rollover from {rollover.from_month} "
                            f"lands in {rollover.to_month}"
                        ),
                    )
                )
            if rollover.from_week != weeks_per_month or rollover.to_week != 1:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.ROLLOVER_WEEK_INVALID,
                        message=(
                            f"Rollover from week {rollover.from_week} "
                            f"to week {rollover.to_week}"
                        ),
                    )
                )

        return validation
