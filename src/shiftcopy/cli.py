"""Command-line interface for the shift copy engine.

All commands work on a JSON snapshot of employees, shifts and opening
hours (see JsonShiftRepository for the format). ``apply`` writes the new
shifts back to the snapshot.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from shiftcopy.copying.orchestrator import CopyConfig, CopyOrchestrator
from shiftcopy.copying.session import CopySession
from shiftcopy.domain.models import (
    ApplyResult,
    CopyStrategy,
    CopySummary,
    TargetAnalysis,
)
from shiftcopy.domain.repository import JsonShiftRepository
from shiftcopy.exceptions import ShiftCopyError
from shiftcopy.logging_config import configure_logging
from shiftcopy.output.pdf_generator import PDFGenerator
from shiftcopy.output.preview_generator import PreviewGenerator

logger = logging.getLogger(__name__)


def build_session(
    args: argparse.Namespace,
    repository: JsonShiftRepository,
) -> CopySession:
    """Create a session from CLI arguments and select its source."""
    config = CopyConfig(
        concurrent=getattr(args, "concurrent", False),
        max_concurrency=getattr(args, "max_concurrency", 4),
    )
    orchestrator = CopyOrchestrator(repository, repository.shifts, config)
    session = CopySession(orchestrator, repository.employees, repository.opening_hours)

    if args.opening_hours:
        session.select_opening_hours_source()
    else:
        session.select_employee_source(args.source_employee)
    return session


def select_targets(session: CopySession, args: argparse.Namespace) -> None:
    """Move the session to target selection and apply the CLI's target choice."""
    session.proceed_to_targets()
    if args.all_targets:
        session.select_all_targets()
    elif args.without_shifts:
        session.select_targets_without_shifts()
    else:
        for target_id in args.targets or []:
            session.toggle_target(target_id)
    session.set_strategy(args.strategy)


def analysis_to_dict(analysis: TargetAnalysis) -> dict:
    return {
        "employee_id": analysis.employee_id,
        "to_create": analysis.to_create,
        "to_skip": analysis.to_skip,
        "conflicts": analysis.conflicts,
        "details": [
            {
                "weekday": d.weekday,
                "action": d.action.value,
                "intervals": [iv.to_dict() for iv in d.intervals],
            }
            for d in analysis.details
        ],
    }


def summary_to_dict(summary: CopySummary) -> dict:
    return {
        "total_create": summary.total_create,
        "total_skip": summary.total_skip,
        "total_conflict": summary.total_conflict,
        "target_count": summary.target_count,
        "targets_with_changes": summary.targets_with_changes,
    }


def result_to_dict(result: ApplyResult) -> dict:
    return {
        "created": result.created,
        "skipped": result.skipped,
        "per_target": [
            {"employee_id": t.employee_id, "created": t.created, "error": t.error}
            for t in result.per_target
        ],
        "errors": list(result.errors),
    }


def run_analyse(args: argparse.Namespace) -> int:
    """Print the dry-run analysis."""
    repository = JsonShiftRepository(args.data)
    session = build_session(args, repository)
    select_targets(session, args)

    analyses = session.analyses()
    summary = session.summary()

    if args.json:
        print(json.dumps({
            "pattern": session.pattern.to_dict(),
            "pattern_hours": session.pattern_hours(),
            "summary": summary_to_dict(summary),
            "analyses": [analysis_to_dict(a) for a in analyses],
        }, indent=2))
    else:
        employees_map = {e.id: e for e in session.employees}
        print(PreviewGenerator().generate_to_string(
            session.pattern, analyses, session.strategy, employees_map
        ), end="")

    for warning in session.validate().warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def write_report(
    output: Path,
    session: CopySession,
    analyses: list[TargetAnalysis],
    apply_result: Optional[ApplyResult] = None,
) -> None:
    """Write the preview to a PDF (``.pdf`` suffix) or text file."""
    employees_map = {e.id: e for e in session.employees}
    if output.suffix.lower() == ".pdf":
        PDFGenerator().generate(
            session.pattern, analyses, session.strategy, output, employees_map, apply_result
        )
    else:
        PreviewGenerator().generate(
            session.pattern, analyses, session.strategy, output, employees_map, apply_result
        )


def run_apply(args: argparse.Namespace) -> int:
    """Commit the copy to the snapshot."""
    repository = JsonShiftRepository(args.data)
    session = build_session(args, repository)
    select_targets(session, args)

    if session.strategy is CopyStrategy.REPLACE and not args.yes:
        existing = session.existing_shift_count()
        if existing > 0:
            print(
                f"Replace would affect {existing} existing shifts of "
                f"{len(session.selected_targets)} employees. Re-run with --yes to confirm.",
                file=sys.stderr,
            )
            return 1

    # The session's snapshot is reloaded by apply, so keep the dry run it acted on.
    analyses = session.analyses()
    result = asyncio.run(session.apply())

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
    else:
        employees_map = {e.id: e for e in session.employees}
        print(PreviewGenerator().generate_to_string(
            session.pattern, analyses, session.strategy, employees_map, apply_result=result
        ), end="")

    if args.output:
        write_report(Path(args.output), session, analyses, result)
        print(f"Report written to {args.output}", file=sys.stderr)

    return 2 if result.errors else 0


def run_hours(args: argparse.Namespace) -> int:
    """Print the weekly hours of the source pattern."""
    repository = JsonShiftRepository(args.data)
    session = build_session(args, repository)
    print(f"{session.pattern_hours():.1f}")
    return 0


def run_report(args: argparse.Namespace) -> int:
    """Write the dry-run preview to a PDF or text file."""
    repository = JsonShiftRepository(args.data)
    session = build_session(args, repository)
    select_targets(session, args)

    output = Path(args.output)
    write_report(output, session, session.analyses())
    print(f"Report written to {output}")
    return 0


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data", "-d",
        type=str,
        required=True,
        help="JSON snapshot with employees, shifts and opening hours",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--source-employee", "-s",
        type=str,
        help="Copy the shifts of this employee",
    )
    source.add_argument(
        "--opening-hours",
        action="store_true",
        help="Copy the salon's opening hours",
    )


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    targets = parser.add_mutually_exclusive_group(required=True)
    targets.add_argument(
        "--targets", "-t",
        nargs="+",
        help="Target employee IDs",
    )
    targets.add_argument(
        "--all-targets",
        action="store_true",
        help="Copy to every employee except the source",
    )
    targets.add_argument(
        "--without-shifts",
        action="store_true",
        help="Copy to every employee that has no shifts yet",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        default="additive",
        choices=[s.value for s in CopyStrategy],
        help="additive keeps existing shifts, replace clears the copied weekdays (default: additive)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of text",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="shiftcopy - copy weekly shift patterns between employees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyse -d salon.json -s E1 -t E2 E3        Preview copying E1's week
  %(prog)s analyse -d salon.json --opening-hours --all-targets
  %(prog)s apply -d salon.json -s E1 -t E2 --strategy replace --yes
  %(prog)s hours -d salon.json -s E1                    Weekly hours of E1's pattern
  %(prog)s report -d salon.json -s E1 --all-targets -o preview.pdf
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    analyse_parser = subparsers.add_parser("analyse", help="Dry-run analysis of a copy")
    _add_source_arguments(analyse_parser)
    _add_target_arguments(analyse_parser)

    apply_parser = subparsers.add_parser("apply", help="Apply a copy to the snapshot")
    _add_source_arguments(apply_parser)
    _add_target_arguments(apply_parser)
    apply_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Confirm replacing existing shifts",
    )
    apply_parser.add_argument(
        "--concurrent",
        action="store_true",
        help="Apply targets concurrently",
    )
    apply_parser.add_argument(
        "--max-concurrency",
        type=int,
        default=4,
        help="Maximum targets applied at once with --concurrent (default: 4)",
    )
    apply_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Also write the preview with the apply result (.pdf for PDF, anything else for text)",
    )

    hours_parser = subparsers.add_parser("hours", help="Weekly hours of a source pattern")
    _add_source_arguments(hours_parser)

    report_parser = subparsers.add_parser("report", help="Write a PDF or text preview")
    _add_source_arguments(report_parser)
    _add_target_arguments(report_parser)
    report_parser.add_argument(
        "--output", "-o",
        type=str,
        required=True,
        help="Output file (.pdf for PDF, anything else for text)",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    commands = {
        "analyse": run_analyse,
        "apply": run_apply,
        "hours": run_hours,
        "report": run_report,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args)
    except (ShiftCopyError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
