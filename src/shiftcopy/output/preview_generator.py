"""Plain-text preview of a shift copy.

This module renders the dry-run analysis of a copy (pattern, per-target
counts, per-interval actions) and, after commit, the apply result, in a
format suitable for terminals and log attachments.
"""

from pathlib import Path
from typing import Optional, Union

from shiftcopy.domain.models import (
    WEEKDAY_NAMES,
    ApplyResult,
    CopyStrategy,
    Employee,
    TargetAnalysis,
    WeekPattern,
)
from shiftcopy.patterns.hours import calc_hours

WIDTH = 80

ACTION_LABELS = {
    "create": "create",
    "skip_dupe": "skip (duplicate)",
    "skip_overlap": "skip (overlap)",
}


class PreviewGenerator:
    """Generates a text preview of a copy operation.

    Example:
        >>> generator = PreviewGenerator()
        >>> text = generator.generate_to_string(pattern, analyses, CopyStrategy.ADDITIVE)
    """

    def generate(
        self,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        output_path: Union[str, Path],
        employees_map: Optional[dict[str, Employee]] = None,
        apply_result: Optional[ApplyResult] = None,
    ) -> str:
        """Generate the preview and save it to a file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(pattern, analyses, strategy, employees_map, apply_result)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(
        self,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        employees_map: Optional[dict[str, Employee]] = None,
        apply_result: Optional[ApplyResult] = None,
    ) -> str:
        """Generate the preview and return it as a string."""
        employees_map = employees_map or {}
        lines = []

        lines.append("=" * WIDTH)
        lines.append(f"SHIFT COPY PREVIEW - strategy: {CopyStrategy(strategy).value}")
        lines.append("=" * WIDTH)
        lines.append("")

        lines.extend(self._pattern_lines(pattern))
        lines.append("")
        lines.extend(self._target_table(analyses, employees_map))
        lines.append("")
        lines.extend(self._detail_lines(analyses, employees_map))

        if apply_result is not None:
            lines.append("")
            lines.extend(self._result_lines(apply_result, employees_map))

        return "\n".join(lines) + "\n"

    def _name(self, employee_id: str, employees_map: dict[str, Employee]) -> str:
        employee = employees_map.get(employee_id)
        return employee.display_name if employee else employee_id

    def _pattern_lines(self, pattern: WeekPattern) -> list[str]:
        lines = [f"Pattern ({calc_hours(pattern):.1f} h/week):"]
        for weekday, day in pattern.items():
            intervals = day.active_intervals()
            text = ", ".join(str(iv) for iv in intervals) if intervals else "-"
            lines.append(f"  {WEEKDAY_NAMES[weekday]:<4} {text}")
        return lines

    def _target_table(
        self,
        analyses: list[TargetAnalysis],
        employees_map: dict[str, Employee],
    ) -> list[str]:
        lines = ["-" * WIDTH, "TARGETS", "-" * WIDTH]
        if not analyses:
            lines.append("  No targets selected")
            return lines

        lines.append(f"{'#':>3} {'Employee':<30} {'Create':>8} {'Skip':>8} {'Conflict':>10}")
        for i, analysis in enumerate(analyses, 1):
            name = self._name(analysis.employee_id, employees_map)[:30]
            lines.append(
                f"{i:>3} {name:<30} {analysis.to_create:>8} "
                f"{analysis.to_skip:>8} {analysis.conflicts:>10}"
            )

        lines.append("-" * WIDTH)
        total_create = sum(a.to_create for a in analyses)
        total_skip = sum(a.to_skip for a in analyses)
        total_conflict = sum(a.conflicts for a in analyses)
        lines.append(
            f"{'':>3} {'Total':<30} {total_create:>8} {total_skip:>8} {total_conflict:>10}"
        )
        return lines

    def _detail_lines(
        self,
        analyses: list[TargetAnalysis],
        employees_map: dict[str, Employee],
    ) -> list[str]:
        lines = ["-" * WIDTH, "DETAILS", "-" * WIDTH]
        for analysis in analyses:
            lines.append(f"{self._name(analysis.employee_id, employees_map)} ({analysis.employee_id})")
            if not analysis.details:
                lines.append("  nothing to copy")
            for detail in analysis.details:
                intervals = ", ".join(str(iv) for iv in detail.intervals)
                lines.append(
                    f"  {WEEKDAY_NAMES[detail.weekday]:<4} {intervals:<13} "
                    f"{ACTION_LABELS[detail.action.value]}"
                )
        return lines

    def _result_lines(
        self,
        result: ApplyResult,
        employees_map: dict[str, Employee],
    ) -> list[str]:
        lines = ["-" * WIDTH, "APPLY RESULT", "-" * WIDTH]
        lines.append(f"Created: {result.created}")
        lines.append(f"Skipped: {result.skipped}")
        for target in result.per_target:
            name = self._name(target.employee_id, employees_map)
            if target.ok:
                lines.append(f"  {name}: created {target.created}")
            else:
                lines.append(
                    f"  {name}: FAILED at {target.failed_step} after "
                    f"{target.created} created - {target.error}"
                )
        if result.errors:
            lines.append("")
            lines.append(f"Errors ({len(result.errors)}):")
            for error in result.errors:
                lines.append(f"  - {error}")
        return lines
