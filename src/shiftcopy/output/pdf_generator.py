"""PDF generation for shift copy previews.

This module creates a printable PDF showing:
- The pattern being copied, per weekday
- A week grid per target with every interval coloured by its action
- A summary page with totals and, after commit, the apply result
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from shiftcopy.domain.models import (
    ISO_WEEKDAYS,
    WEEKDAY_NAMES,
    ApplyResult,
    CopyStrategy,
    DetailAction,
    Employee,
    TargetAnalysis,
    WeekPattern,
)
from shiftcopy.patterns.hours import calc_hours

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    DetailAction.CREATE: (0.4, 0.7, 0.4),  # Green
    DetailAction.SKIP_DUPE: (0.75, 0.75, 0.75),  # Gray
    DetailAction.SKIP_OVERLAP: (0.9, 0.45, 0.4),  # Red
    "pattern": (0.4, 0.55, 0.8),  # Blue
    "empty": (0.95, 0.95, 0.95),  # Light gray
}

LEGEND = [
    (DetailAction.CREATE, "Create"),
    (DetailAction.SKIP_DUPE, "Duplicate (skipped)"),
    (DetailAction.SKIP_OVERLAP, "Overlap (skipped)"),
]


class PDFGenerator:
    """Generates a printable PDF preview of a copy operation.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(pattern, analyses, CopyStrategy.ADDITIVE, "preview.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        output_path: Union[str, Path],
        employees_map: Optional[dict[str, Employee]] = None,
        apply_result: Optional[ApplyResult] = None,
    ) -> None:
        """Generate the PDF preview and save it to a file.

        Args:
            pattern: The pattern being copied.
            analyses: Per-target dry-run analyses.
            strategy: Merge strategy of the copy.
            output_path: Path to save the PDF.
            employees_map: Dict mapping employee IDs to Employee objects.
            apply_result: Committed result, if the copy was applied.
        """
        self._render(str(output_path), pattern, analyses, strategy, employees_map, apply_result)

    def generate_to_buffer(
        self,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        employees_map: Optional[dict[str, Employee]] = None,
        apply_result: Optional[ApplyResult] = None,
    ) -> BytesIO:
        """Generate the PDF preview and return it as a bytes buffer."""
        buffer = BytesIO()
        self._render(buffer, pattern, analyses, strategy, employees_map, apply_result)
        buffer.seek(0)
        return buffer

    def _render(
        self,
        target,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        employees_map: Optional[dict[str, Employee]],
        apply_result: Optional[ApplyResult],
    ) -> None:
        try:
            from reportlab.lib.pagesizes import landscape, letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        employees_map = employees_map or {}
        strategy = CopyStrategy(strategy)

        c = canvas.Canvas(target, pagesize=landscape(letter))
        self._draw_target_pages(c, pattern, analyses, strategy, employees_map)
        self._draw_summary_page(c, pattern, analyses, strategy, employees_map, apply_result)
        c.save()

    def _draw_target_pages(
        self,
        c,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        employees_map: dict[str, Employee],
    ) -> None:
        """Draw the week grid, one row per target, paginated."""
        row_height = 36
        header_height = 60
        footer_height = 40
        usable_height = (
            self.page_height - 2 * self.margin - header_height - footer_height - row_height
        )
        rows_per_page = max(1, int(usable_height / row_height))

        grid_left = self.margin + 130  # Space for names
        column_width = (self.page_width - self.margin - grid_left) / len(ISO_WEEKDAYS)

        # Always draw at least one page so the pattern row is visible
        pages = range(0, max(1, len(analyses)), rows_per_page)
        total_pages = len(pages)

        for page_num, page_start in enumerate(pages, 1):
            page_analyses = analyses[page_start : page_start + rows_per_page]

            self._draw_header(c, strategy, pattern, len(analyses))

            y = self.page_height - self.margin - header_height
            self._draw_day_headings(c, grid_left, column_width, y)

            y -= row_height
            self._draw_pattern_row(c, pattern, grid_left, column_width, y, row_height - 4)

            for analysis in page_analyses:
                y -= row_height
                self._draw_target_row(
                    c,
                    analysis,
                    employees_map,
                    grid_left,
                    column_width,
                    y,
                    row_height - 4,
                )

            self._draw_legend(c, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num} of {total_pages}",
            )
            c.showPage()

    def _draw_header(
        self,
        c,
        strategy: CopyStrategy,
        pattern: WeekPattern,
        target_count: int,
    ) -> None:
        """Draw page header with title and pattern totals."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Copy Shifts Preview - {strategy.value.capitalize()}",
        )

        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Pattern: {calc_hours(pattern):.1f} h/week    Targets: {target_count}",
        )

    def _draw_day_headings(self, c, grid_left: float, column_width: float, y: float) -> None:
        c.setFont("Helvetica-Bold", 9)
        for i, weekday in enumerate(ISO_WEEKDAYS):
            x = grid_left + i * column_width
            c.drawCentredString(x + column_width / 2, y - 12, WEEKDAY_NAMES[weekday])

    def _draw_pattern_row(
        self,
        c,
        pattern: WeekPattern,
        grid_left: float,
        column_width: float,
        y: float,
        height: float,
    ) -> None:
        """Draw the pattern itself as the first row of the grid."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(self.margin, y + height / 2 - 3, "Pattern")

        for i, (_, day) in enumerate(pattern.items()):
            x = grid_left + i * column_width
            intervals = day.active_intervals()
            color = COLORS["pattern"] if intervals else COLORS["empty"]
            self._draw_cell(c, x, y, column_width - 2, height, color,
                            [str(iv) for iv in intervals])

    def _draw_target_row(
        self,
        c,
        analysis: TargetAnalysis,
        employees_map: dict[str, Employee],
        grid_left: float,
        column_width: float,
        y: float,
        height: float,
    ) -> None:
        """Draw a single target's row: name, counts and one cell per weekday."""
        employee = employees_map.get(analysis.employee_id)
        name = employee.display_name if employee else analysis.employee_id

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawString(self.margin, y + height / 2, name[:22])
        c.setFont("Helvetica", 7)
        c.drawString(
            self.margin,
            y + height / 2 - 10,
            f"+{analysis.to_create}  dup {analysis.to_skip}  conflict {analysis.conflicts}",
        )

        for i, weekday in enumerate(ISO_WEEKDAYS):
            x = grid_left + i * column_width
            c.setFillColorRGB(*COLORS["empty"])
            c.rect(x, y, column_width - 2, height, fill=1, stroke=0)

            details = [d for d in analysis.details if d.weekday == weekday]
            if not details:
                continue

            slice_height = height / len(details)
            for j, detail in enumerate(details):
                sy = y + height - (j + 1) * slice_height
                self._draw_cell(
                    c, x, sy, column_width - 2, slice_height,
                    COLORS[detail.action], [str(iv) for iv in detail.intervals],
                )

    def _draw_cell(
        self,
        c,
        x: float,
        y: float,
        width: float,
        height: float,
        color: tuple,
        labels: list[str],
    ) -> None:
        c.setFillColorRGB(*color)
        c.rect(x, y, width, height, fill=1, stroke=0)
        if not labels:
            return
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 6)
        line_height = min(8, height / len(labels))
        for k, label in enumerate(labels):
            c.drawCentredString(x + width / 2, y + height - (k + 1) * line_height + 1, label)

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for key, label in LEGEND:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 110

    def _draw_summary_page(
        self,
        c,
        pattern: WeekPattern,
        analyses: list[TargetAnalysis],
        strategy: CopyStrategy,
        employees_map: dict[str, Employee],
        apply_result: Optional[ApplyResult],
    ) -> None:
        """Draw summary page with totals and the apply result."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            "Copy Shifts Summary",
        )

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 20

        c.setFont("Helvetica", 10)
        stats = [
            f"Strategy: {strategy.value}",
            f"Pattern Hours per Week: {calc_hours(pattern):.1f}",
            f"Targets: {len(analyses)}",
            f"Shifts to Create: {sum(a.to_create for a in analyses)}",
            f"Duplicates Skipped: {sum(a.to_skip for a in analyses)}",
            f"Conflicts Skipped: {sum(a.conflicts for a in analyses)}",
        ]
        for stat in stats:
            c.drawString(self.margin + 20, y, stat)
            y -= 15

        if apply_result is not None:
            y -= 20
            c.setFont("Helvetica-Bold", 12)
            c.drawString(self.margin, y, "Apply Result")
            y -= 20

            c.setFont("Helvetica", 10)
            c.drawString(self.margin + 20, y, f"Created: {apply_result.created}")
            y -= 15
            c.drawString(self.margin + 20, y, f"Skipped: {apply_result.skipped}")
            y -= 20

            c.setFont("Helvetica", 9)
            for target in apply_result.per_target:
                if y < self.margin + 20:
                    c.showPage()
                    c.setFont("Helvetica", 9)
                    y = self.page_height - self.margin - 20
                employee = employees_map.get(target.employee_id)
                name = employee.display_name if employee else target.employee_id
                if target.ok:
                    c.setFillColorRGB(*COLORS[DetailAction.CREATE])
                    line = f"{name}: created {target.created}"
                else:
                    c.setFillColorRGB(*COLORS[DetailAction.SKIP_OVERLAP])
                    line = f"{name}: failed at {target.failed_step} - {target.error}"
                c.rect(self.margin + 20, y - 2, 10, 10, fill=1, stroke=1)
                c.setFillColorRGB(0, 0, 0)
                c.drawString(self.margin + 35, y, line[:120])
                y -= 15

        c.showPage()
