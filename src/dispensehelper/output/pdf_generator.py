"""PDF generation for scheduling reports.

This module creates printable PDF reports showing:
- Per-worker totals with a burden bar chart
- Excluded items grouped by reason
- Weekly batches and rollover notifications
"""

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from dispensehelper.domain.models import (
    AssignmentResult,
    BurdenMetrics,
    ExclusionReason,
    WeeklyBatchResult,
)

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "burden": (0.4, 0.6, 0.8),  # Blue
    ExclusionReason.EXPIRES_THIS_MONTH: (0.8, 0.3, 0.3),  # Red
    ExclusionReason.INSUFFICIENT_SHELF_LIFE: (0.9, 0.6, 0.2),  # Orange
    ExclusionReason.NO_WORKERS_AVAILABLE: (0.6, 0.6, 0.6),  # Gray
    "rollover": (1.0, 0.9, 0.5),  # Yellow
}


def _load_canvas():
    try:
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas


class PDFGenerator:
    """Generates printable PDF reports.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate("report.pdf", result=result, report_date=date(2024, 1, 15))
    """

    def __init__(
        self,
        page_width: float = 612,  # Letter portrait width (8.5")
        page_height: float = 792,  # Letter portrait height (11")
        margin: float = 36,  # 0.5 inch margins
        line_height: float = 14,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.line_height = line_height

    def generate(
        self,
        output_path: Union[str, Path],
        result: Optional[AssignmentResult] = None,
        batch: Optional[WeeklyBatchResult] = None,
        report_date: Optional[date] = None,
    ) -> None:
        """Generate a PDF report and save to file.

        Args:
            output_path: Path to save the PDF.
            result: Fair-assignment result to render.
            batch: Weekly batching result to render.
            report_date: Reference date shown in the header.
        """
        canvas = _load_canvas()
        c = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))
        self._draw(c, result, batch, report_date)
        c.save()

    def generate_to_buffer(
        self,
        result: Optional[AssignmentResult] = None,
        batch: Optional[WeeklyBatchResult] = None,
        report_date: Optional[date] = None,
    ) -> BytesIO:
        """Generate a PDF report and return it as a bytes buffer."""
        canvas = _load_canvas()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        self._draw(c, result, batch, report_date)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(
        self,
        c,
        result: Optional[AssignmentResult],
        batch: Optional[WeeklyBatchResult],
        report_date: Optional[date],
    ) -> None:
        y = self._draw_header(c, report_date)
        if result is not None:
            y = self._draw_worker_totals(c, result, y)
            y = self._draw_exclusions(c, result, y)
        if batch is not None:
            y = self._draw_weekly(c, batch, y)
        c.showPage()

    def _draw_header(self, c, report_date: Optional[date]) -> float:
        """Draw page header and return the next y position."""
        c.setFont("Helvetica-Bold", 16)
        title = "Dispensing Schedule"
        if report_date is not None:
            title += f" - {report_date.strftime('%B %d, %Y')}"
        c.drawString(self.margin, self.page_height - self.margin - 20, title)
        return self.page_height - self.margin - 50

    def _next_line(self, c, y: float, lines: int = 1) -> float:
        """Move down, starting a new page when the bottom margin is reached."""
        y -= self.line_height * lines
        if y < self.margin + self.line_height:
            c.showPage()
            c.setFont("Helvetica", 9)
            y = self.page_height - self.margin - self.line_height
        return y

    def _draw_section_title(self, c, title: str, y: float) -> float:
        y = self._next_line(c, y)
        c.setFont("Helvetica-Bold", 12)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(self.margin, y, title)
        y = self._next_line(c, y)
        c.setFont("Helvetica", 9)
        return y

    def _draw_worker_totals(self, c, result: AssignmentResult, y: float) -> float:
        """Draw per-worker totals with a horizontal bar for each."""
        y = self._draw_section_title(c, "Worker Totals", y)
        totals = result.totals_by_worker()
        if not totals:
            c.drawString(self.margin + 20, y, "No workers on the roster.")
            return self._next_line(c, y)

        metrics = BurdenMetrics.calculate(result.burdens)
        largest = max(totals.values()) or 1
        bar_left = self.margin + 180
        bar_max_width = self.page_width - self.margin - bar_left - 40

        for worker_id, total in totals.items():
            c.setFillColorRGB(0, 0, 0)
            c.drawString(self.margin + 20, y, worker_id[:28])
            width = (total / largest) * bar_max_width
            c.setFillColorRGB(*COLORS["burden"])
            c.rect(bar_left, y - 2, width, self.line_height - 4, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(bar_left + width + 4, y, str(total))
            y = self._next_line(c, y)

        c.drawString(
            self.margin + 20,
            y,
            f"Min {metrics.min_burden}, max {metrics.max_burden}, "
            f"fairness score {metrics.fairness_score:.1f}/100",
        )
        return self._next_line(c, y)

    def _draw_exclusions(self, c, result: AssignmentResult, y: float) -> float:
        """Draw excluded items grouped by reason."""
        y = self._draw_section_title(c, f"Excluded Items ({len(result.excluded)})", y)
        grouped = result.excluded_by_reason()
        for reason in ExclusionReason:
            entries = grouped[reason]
            if not entries:
                continue
            c.setFillColorRGB(*COLORS[reason])
            c.rect(self.margin + 20, y - 2, 10, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(self.margin + 35, y, f"{reason.label} ({len(entries)})")
            y = self._next_line(c, y)
            for entry in entries:
                c.drawString(
                    self.margin + 45,
                    y,
                    f"{entry.id[:30]}  expires {entry.expiry_date.isoformat()}  "
                    f"qty {entry.quantity}",
                )
                y = self._next_line(c, y)
        return y

    def _draw_weekly(self, c, batch: WeeklyBatchResult, y: float) -> float:
        """Draw weekly batches, highlighting weeks that start after a rollover."""
        y = self._draw_section_title(c, "Weekly Batches", y)
        rolled_into = {(r.to_month, r.to_week) for r in batch.rollovers}

        for weekly in batch.assignments:
            if (weekly.month, weekly.week) in rolled_into:
                c.setFillColorRGB(*COLORS["rollover"])
                c.rect(
                    self.margin + 15, y - 3,
                    self.page_width - 2 * self.margin - 15, self.line_height,
                    fill=1, stroke=0,
                )
                c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica-Bold", 9)
            c.drawString(
                self.margin + 20, y,
                f"{weekly.month} week {weekly.week} ({len(weekly)} items)",
            )
            c.setFont("Helvetica", 9)
            y = self._next_line(c, y)
            for product in weekly.products:
                label = product.name or product.id
                c.drawString(
                    self.margin + 40, y,
                    f"{label[:40]}  expires {product.expiry_date.isoformat()}",
                )
                y = self._next_line(c, y)

        if batch.rollovers:
            y = self._draw_section_title(c, "Rollovers", y)
            for rollover in batch.rollovers:
                c.drawString(
                    self.margin + 20, y,
                    f"{rollover.from_month} week {rollover.from_week} -> "
                    f"{rollover.to_month} week {rollover.to_week}: "
                    f"{len(rollover.product_ids)} items",
                )
                y = self._next_line(c, y)
        return y
