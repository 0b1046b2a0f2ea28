#!/usr/bin/env python3
# ============================================================================
# scripts/compare_reports.py
# ============================================================================
"""
Compare Lab Reports

Submits 2-10 lab reports to the comparison service, polls until the job
finishes and prints the parameter trends and summary.

Usage:
    python scripts/compare_reports.py --patient P1 jan.pdf apr.pdf jul.png
    python scripts/compare_reports.py --patient P1 --name "Quarterly CBC" a.pdf b.pdf
    python scripts/compare_reports.py --list --status completed
    python scripts/compare_reports.py --stats
    python scripts/compare_reports.py --delete <comparison_id>
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

from report_comparison.client import ComparisonApiClient, ComparisonSession
from report_comparison.core.enums import PollState
from report_comparison.core.files import ReportFile
from report_comparison.core.models import Comparison
from report_comparison.utils import ReportComparisonError, setup_logging


def format_comparison(comparison: Comparison) -> str:
    """Render a completed comparison as plain text."""
    lines = [
        "=" * 70,
        f"{comparison.comparison_name} ({comparison.report_count} reports)",
        "=" * 70,
    ]

    if comparison.date_range.start and comparison.date_range.end:
        lines.append(
            f"Period: {comparison.date_range.start:%Y-%m-%d} to {comparison.date_range.end:%Y-%m-%d}"
        )

    lines.append("")
    lines.append(f"{'Parameter':<28}{'Trend':<20}{'Values':<30}Flag")
    lines.append("-" * 70)
    for param in comparison.parameter_comparisons:
        values = " -> ".join(v.value for v in param.values)
        flag = "!" if param.is_concerning else ""
        lines.append(f"{param.parameter:<28}{param.trend.value:<20}{values:<30}{flag}")

    analysis = comparison.comparison_analysis
    if analysis:
        lines.append("")
        lines.append(f"Overall trend: {analysis.overall_trend}")
        if analysis.key_changes:
            lines.append("Key changes:")
            lines.extend(f"  - {change}" for change in analysis.key_changes)
        if analysis.alignment_warnings:
            lines.append("Alignment warnings:")
            lines.extend(f"  ! {warning}" for warning in analysis.alignment_warnings)
        if analysis.recommendations:
            lines.append("Recommendations:")
            lines.extend(
                f"  [{r.priority.value}] {r.action} ({r.timeline})" for r in analysis.recommendations
            )
        lines.append("")
        lines.append(analysis.patient_summary.overall_status)
        lines.append(analysis.patient_summary.main_findings)

    return "\n".join(lines)


async def run_compare(args) -> int:
    files = [ReportFile.from_path(path) for path in args.files]

    def show_progress(progress: int) -> None:
        print(f"Progress: {progress}%")

    client = ComparisonApiClient(base_url=args.api_url)
    async with ComparisonSession(client, on_progress=show_progress) as session:
        result = await session.compare(
            files,
            patient_id=args.patient,
            comparison_name=args.name,
            custom_prompt=args.prompt,
            doctor_id=args.doctor,
        )
        print(f"Submitted comparison {result.comparison_id} ({result.report_count} reports)")

        state = await session.wait()
        if state == PollState.COMPLETED:
            print(format_comparison(session.current))
            return 0

        print(f"{state.value}: {session.message}")
        return 2 if state == PollState.TIMED_OUT else 1


async def run_list(args) -> int:
    async with ComparisonApiClient(base_url=args.api_url) as client:
        comparisons, pagination = await client.list_comparisons(
            page=args.page,
            status=args.status,
            patient_id=args.patient,
        )

    for c in comparisons:
        print(f"{c.id}  {c.created_at:%Y-%m-%d %H:%M}  {c.status.value:<11}{c.comparison_name}")
    print(f"Page {pagination.current_page}/{pagination.total_pages} ({pagination.total_items} total)")
    return 0


async def run_stats(args) -> int:
    async with ComparisonApiClient(base_url=args.api_url) as client:
        stats = await client.get_stats()

    for key, value in stats.model_dump(exclude={"by_month"}).items():
        print(f"{key:<20}{value}")
    for month, count in stats.by_month.items():
        print(f"  {month}: {count}")
    return 0


async def run_delete(args) -> int:
    async with ComparisonApiClient(base_url=args.api_url) as client:
        await client.delete_comparison(args.delete)
    print(f"Deleted {args.delete}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare lab reports across dates"
    )

    parser.add_argument("files", nargs="*", type=Path, help="Report files (JPEG, PNG or PDF)")
    parser.add_argument("--patient", type=str, help="Patient id (required to submit)")
    parser.add_argument("--doctor", type=str, help="Doctor id")
    parser.add_argument("--name", type=str, help="Comparison name")
    parser.add_argument("--prompt", type=str, help="Extra instructions for the analyzer")
    parser.add_argument("--api-url", type=str, default=None, help="Comparison API base URL")

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--list", action="store_true", help="List comparisons")
    actions.add_argument("--stats", action="store_true", help="Show comparison stats")
    actions.add_argument("--delete", type=str, metavar="ID", help="Delete a comparison")

    parser.add_argument(
        "--status",
        choices=["pending", "processing", "completed", "failed"],
        help="Filter --list by status"
    )
    parser.add_argument("--page", type=int, default=1, help="Page for --list")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return parser


def main(argv: List[str] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "WARNING")

    if args.list:
        command = run_list
    elif args.stats:
        command = run_stats
    elif args.delete:
        command = run_delete
    else:
        command = run_compare

    try:
        return asyncio.run(command(args))
    except ReportComparisonError as e:
        print(f"ERROR: {e}")
        return 1
    except OSError as e:
        print(f"ERROR: cannot read {e.filename or 'input'}: {e.strerror or e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
