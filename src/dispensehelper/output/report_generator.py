"""Plain-text reports for scheduling runs.

This module creates operator-facing text output showing:
- Quantity handed to each worker, summed across assignment records
- Per-month assignment detail
- Excluded items grouped by reason
- Weekly batches and rollover notifications
"""

from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Optional, Union

from dispensehelper.domain.models import (
    AssignmentResult,
    BurdenMetrics,
    ExclusionReason,
    WeeklyBatchResult,
)


class ReportGenerator:
    """Generates text reports for assignment and batching runs.

    Example:
        >>> generator = ReportGenerator()
        >>> print(generator.generate_to_string(result, report_date=date(2024, 1, 15)))
    """

    def __init__(self, width: int = 80):
        self.width = width

    def generate(
        self,
        output_path: Union[str, Path],
        result: Optional[AssignmentResult] = None,
        batch: Optional[WeeklyBatchResult] = None,
        report_date: Optional[date] = None,
    ) -> str:
        """Generate the report and save it to a file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(result, batch, report_date)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        result: Optional[AssignmentResult] = None,
        batch: Optional[WeeklyBatchResult] = None,
        report_date: Optional[date] = None,
    ) -> str:
        """Generate the report and return it as a string."""
        lines = []

        lines.append("=" * self.width)
        title = "DISPENSING SCHEDULE REPORT"
        if report_date is not None:
            title += f" - {report_date.isoformat()}"
        lines.append(title)
        lines.append("=" * self.width)
        lines.append("")

        if result is not None:
            lines.extend(self._assignment_section(result))
        if batch is not None:
            lines.extend(self._weekly_section(batch))

        lines.append("=" * self.width)
        lines.append("END OF REPORT")
        lines.append("=" * self.width)

        return "\n".join(lines)

    def _assignment_section(self, result: AssignmentResult) -> list[str]:
        lines = []
        metrics = BurdenMetrics.calculate(result.burdens)

        lines.append("-" * self.width)
        lines.append("WORKER TOTALS")
        lines.append("-" * self.width)
        if not result.burdens:
            lines.append("No workers on the roster.")
        else:
            lines.append(f"{'Worker':<30} {'Units':>8} {'Records':>8}")
            records = defaultdict(int)
            for assignment in result.assignments:
                records[assignment.worker_id] += 1
            for worker_id, total in result.totals_by_worker().items():
                lines.append(f"{worker_id[:30]:<30} {total:>8} {records[worker_id]:>8}")
            lines.append("")
            lines.append(
                f"Burden: min={metrics.min_burden}, max={metrics.max_burden}, "
                f"mean={metrics.mean:.1f}, fairness={metrics.fairness_score:.1f}/100"
            )
        lines.append("")

        lines.append("-" * self.width)
        lines.append("ASSIGNMENTS BY EXPIRY MONTH")
        lines.append("-" * self.width)
        if result.is_empty:
            lines.append("No items assigned.")
        else:
            by_month = defaultdict(list)
            for assignment in result.assignments:
                by_month[assignment.expiry_month].append(assignment)
            for month in sorted(by_month):
                month_total = sum(a.quantity for a in by_month[month])
                lines.append(f"\n{month} ({month_total} units):")
                for assignment in by_month[month]:
                    lines.append(
                        f"    {assignment.item_id:<24} -> "
                        f"{assignment.worker_id:<20} x{assignment.quantity}"
                    )
        lines.append("")

        lines.append("-" * self.width)
        lines.append(f"EXCLUDED ITEMS ({len(result.excluded)})")
        lines.append("-" * self.width)
        grouped = result.excluded_by_reason()
        for reason in ExclusionReason:
            excluded = grouped[reason]
            if not excluded:
                continue
            lines.append(f"\n{reason.label} ({len(excluded)}):")
            for entry in excluded:
                lines.append(
                    f"    {entry.id:<24} expires {entry.expiry_date.isoformat()} "
                    f"qty {entry.quantity}"
                )
        lines.append("")
        return lines

    def _weekly_section(self, batch: WeeklyBatchResult) -> list[str]:
        lines = []

        lines.append("-" * self.width)
        lines.append("WEEKLY BATCHES")
        lines.append("-" * self.width)
        if batch.is_empty:
            lines.append("No items to batch.")
        for weekly in batch.assignments:
            lines.append(f"{weekly.month} week {weekly.week}: {len(weekly)} items")
            for product in weekly.products:
                label = product.name or product.id
                lines.append(f"    {label:<30} expires {product.expiry_date.isoformat()}")
        lines.append("")

        if batch.rollovers:
            lines.append("-" * self.width)
            lines.append("ROLLOVERS")
            lines.append("-" * self.width)
            for rollover in batch.rollovers:
                lines.append(
                    f"{rollover.from_month} week {rollover.from_week} -> "
                    f"{rollover.to_month} week {rollover.to_week}: "
                    f"{len(rollover.product_ids)} items"
                )
                lines.append(f"    {', '.join(rollover.product_ids)}")
            lines.append("")

        return lines
