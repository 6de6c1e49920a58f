"""Command-line interface for the dispensing scheduler."""

import argparse
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

from dispensehelper.domain.dates import parse_iso_date
from dispensehelper.domain.errors import InvalidInput
from dispensehelper.domain.models import AssignmentRequest, Item
from dispensehelper.domain.policies import DefaultBatchPolicy, DefaultExpiryPolicy
from dispensehelper.output.pdf_generator import PDFGenerator
from dispensehelper.output.report_generator import ReportGenerator
from dispensehelper.scheduling.scheduler import ExpiryScheduler, coerce_items
from dispensehelper.scheduling.weekly_batcher import WeeklyBatcher
from dispensehelper.validation.validator import ScheduleValidator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_INVALID_INPUT = 2


def load_input(path: str) -> tuple[list[dict[str, Any]], list[str]]:
    """Read items and workers from a JSON file.

    The file holds either ``{"items": [...], "workers": [...]}`` or a bare
    list of items (no workers).

    Raises:
        InvalidInput: If the file cannot be read or is not JSON of either shape.
    """
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidInput(f"cannot read {path}: {e}") from e

    if isinstance(data, list):
        return data, []
    if not isinstance(data, dict):
        raise InvalidInput(f"{path}: expected a JSON object or list")
    return data.get("items", []), [str(w) for w in data.get("workers", [])]


def _build_policy(factory, **kwargs):
    """Build a policy from command-line values, reporting bad ones as input errors."""
    try:
        return factory(**kwargs)
    except ValueError as e:
        raise InvalidInput(str(e)) from e


def create_sample_items(count: int, today: date) -> list[Item]:
    """Create sample items spread across the coming months.

    A few land in the reference month or inside the 30-day window so the
    demo shows every exclusion reason.
    """
    names = [
        "Amoxicillin 500mg", "Paracetamol 1g", "Ibuprofen 400mg", "Metformin 850mg",
        "Omeprazole 20mg", "Salbutamol Inhaler", "Cetirizine 10mg", "Losartan 50mg",
        "Atorvastatin 20mg", "Insulin Glargine", "Azithromycin 250mg", "Prednisolone 5mg",
    ]
    items = []
    for i in range(count):
        # 0, 12, 24, ... days out, wrapping at roughly a year
        offset = (i * 12) % 360
        items.append(
            Item(
                id=f"ITEM{i + 1:03d}",
                expiry_date=today + timedelta(days=offset),
                quantity=(i % 5) + 1,
                name=names[i % len(names)],
            )
        )
    return items


def _print_validation(validation) -> None:
    if validation.is_valid:
        print("\n  Validation: PASSED")
    else:
        print(f"\n  Validation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")
    for warning in validation.warnings[:3]:
        print(f"    ! {warning}")


def run_assign(
    input_path: str,
    today: date,
    min_shelf_life: int = 30,
    output_path: Optional[str] = None,
    as_json: bool = False,
) -> int:
    """Fairly assign the items in ``input_path`` to its workers."""
    raw_items, workers = load_input(input_path)
    policy = _build_policy(DefaultExpiryPolicy, min_days=min_shelf_life)
    scheduler = ExpiryScheduler(expiry_policy=policy)
    request = AssignmentRequest(items=raw_items, workers=workers, today=today)
    result, stats = scheduler.generate_assignments_with_stats(request)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(ReportGenerator().generate_to_string(result, report_date=today))
        print(f"\n  Eligible: {stats['eligible_items']}/{stats['total_items']} items")
        print(f"  Units assigned: {stats['total_quantity_assigned']}")
        metrics = stats["burden_metrics"]
        print(f"  Fairness Score: {metrics.fairness_score:.1f}/100")
        validation = ScheduleValidator(expiry_policy=policy).validate_assignments(
            result, today
        )
        _print_validation(validation)

    if output_path:
        PDFGenerator().generate(output_path, result=result, report_date=today)
        logger.info("Wrote PDF report to %s", output_path)
    return EXIT_OK


def run_weekly(
    input_path: str,
    start_date: date,
    capacity: int = 7,
    output_path: Optional[str] = None,
    as_json: bool = False,
) -> int:
    """Cut the items in ``input_path`` into weekly batches."""
    raw_items, _ = load_input(input_path)
    policy = _build_policy(DefaultBatchPolicy, capacity=capacity)
    batch = WeeklyBatcher(policy=policy).batch(coerce_items(raw_items), start_date)

    if as_json:
        print(json.dumps(batch.to_dict(), indent=2))
    else:
        print(ReportGenerator().generate_to_string(batch=batch, report_date=start_date))
        _print_validation(ScheduleValidator(batch_policy=policy).validate_weekly(batch))

    if output_path:
        PDFGenerator().generate(output_path, batch=batch, report_date=start_date)
        logger.info("Wrote PDF report to %s", output_path)
    return EXIT_OK


def run_demo(item_count: int = 20, worker_count: int = 3, today: Optional[date] = None) -> int:
    """Run both pipelines over generated sample data."""
    today = today or date.today()
    items = create_sample_items(item_count, today)
    workers = [f"D{i + 1:02d}" for i in range(worker_count)]
    print(f"Scheduling {item_count} sample items for {worker_count} dispensers...")

    result, _ = ExpiryScheduler().generate_assignments_with_stats(
        AssignmentRequest(items=items, workers=workers, today=today)
    )
    batch = WeeklyBatcher().batch(items, today.replace(day=1))
    print(ReportGenerator().generate_to_string(result, batch, report_date=today))
    return EXIT_OK


def _parse_date_arg(value: str) -> date:
    try:
        return parse_iso_date(value)
    except InvalidInput:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 date: {value!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Dispense Helper - expiry-aware stock assignment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s assign stock.json --date 2024-01-15        Fairly assign stock to dispensers
  %(prog)s assign stock.json --output report.pdf      Also write a PDF report
  %(prog)s assign stock.json --json                   Print assignments as JSON

  %(prog)s weekly stock.json --start 2024-01-01       Batch stock into weekly tasks
  %(prog)s weekly stock.json --capacity 10            Use 10 items per week

  %(prog)s demo --count 40 --workers 4                Run both pipelines on sample data
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Assign command
    assign_parser = subparsers.add_parser("assign", help="Fairly assign stock to dispensers")
    assign_parser.add_argument("input", help="JSON file with items and workers")
    assign_parser.add_argument(
        "--date", "-d",
        type=_parse_date_arg,
        default=None,
        help="Reference date (default: today)",
    )
    assign_parser.add_argument(
        "--min-shelf-life", "-m",
        type=int,
        default=30,
        help="Minimum days of shelf life for assignment (default: 30)",
    )
    assign_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")
    assign_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # Weekly command
    weekly_parser = subparsers.add_parser("weekly", help="Batch stock into weekly tasks")
    weekly_parser.add_argument("input", help="JSON file with items")
    weekly_parser.add_argument(
        "--start", "-s",
        type=_parse_date_arg,
        default=None,
        help="Date in the first batch month (default: today)",
    )
    weekly_parser.add_argument(
        "--capacity", "-c",
        type=int,
        default=7,
        help="Items per week (default: 7)",
    )
    weekly_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")
    weekly_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run both pipelines on sample data")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=20,
        help="Number of sample items (default: 20)",
    )
    demo_parser.add_argument(
        "--workers", "-w",
        type=int,
        default=3,
        help="Number of dispensers (default: 3)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "assign":
            return run_assign(
                args.input,
                args.date or date.today(),
                args.min_shelf_life,
                args.output,
                args.json,
            )
        elif args.command == "weekly":
            return run_weekly(
                args.input,
                args.start or date.today(),
                args.capacity,
                args.output,
                args.json,
            )
        elif args.command == "demo":
            return run_demo(args.count, args.workers)
    except InvalidInput as e:
        logger.error("Invalid input (%s): %s", e.code, e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    parser.print_help()
    return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
