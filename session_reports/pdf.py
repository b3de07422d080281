from __future__ import annotations  # Styled PDF rendering for feedback reports

from datetime import datetime
from typing import Any, List, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .models import Report, RubricScore

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background


def _parse_datetime(value: str | None) -> datetime | None:  # Parse ISO timestamp safely
    if not value:
        return None
    try:
        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _format_datetime(value: datetime | None) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _calc_text_height(pdf: FPDF, width: float, text: str, line_height: float) -> float:  # Estimate multi-cell height
    if not text:
        return line_height
    lines = pdf.multi_cell(width, line_height, text, dry_run=True, output="LINES")
    return line_height * max(1, len(lines))


class ReportPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args, accent: Tuple[int, int, int] = ACCENT, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.accent = accent
        self.header_title = "Interview Feedback Report"
        self._font_regular = "Helvetica"
        self._font_bold = "Helvetica"
        self._supports_unicode = False

    def _prepare_text(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self._supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("’", "'").replace("—", "-")
        return cleaned.encode("latin-1", "ignore").decode("latin-1")

    def cell(self, *args, **kwargs):  # Wrap base cell with text sanitisation
        args_list = list(args)
        if len(args_list) >= 3:
            args_list[2] = self._prepare_text(args_list[2])
        elif "text" in kwargs:
            kwargs["text"] = self._prepare_text(kwargs["text"])
        return super().cell(*args_list, **kwargs)

    def multi_cell(self, *args, **kwargs):  # Wrap base multi_cell with text sanitisation
        args_list = list(args)
        if len(args_list) >= 3:
            args_list[2] = self._prepare_text(args_list[2])
        elif "text" in kwargs:
            kwargs["text"] = self._prepare_text(kwargs["text"])
        return super().multi_cell(*args_list, **kwargs)

    def header(self) -> None:  # Render header banner on the first page, a rule afterwards
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_fill_color(*self.accent)
            self.rect(0, 0, self.w, 20, style="F")
            self.set_text_color(255, 255, 255)
            self.set_font(self._font_bold, "B", 16)
            self.set_xy(self.l_margin, 6)
            self.cell(usable, 8, self.header_title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.set_text_color(*TEXT)
            self.set_y(26)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self._font_bold, "B", 12)
            self.cell(usable, 6, self.header_title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            mark = self.get_y()
            self.set_draw_color(*self.accent)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
            self.set_text_color(*TEXT)
            self.ln(4)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self._font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf._font_bold, "B", 13)
    pdf.cell(0, 9, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Draw two-column metadata
    col = _effective_width(pdf) / 2.0
    line = 6
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf._font_regular, "", 10)
        pdf.cell(col, line, left[0], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[0], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf._font_bold, "B", 11)
        pdf.cell(col, line, left[1], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[1], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _render_rubric_table(pdf: ReportPDF, rubric: Sequence[RubricScore]) -> None:  # Draw rubric scores table
    headers = ["Dimension", "Score", "Feedback"]
    width = _effective_width(pdf)
    widths = [width * 0.3, width * 0.12, width * 0.58]
    line = 7
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*ACCENT)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font(pdf._font_bold, "B", 10)
    for idx, title in enumerate(headers):
        pdf.cell(widths[idx], 8, title, align="L", fill=True)
    pdf.ln(8)
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf._font_regular, "", 10)
    for idx, item in enumerate(rubric):
        row_height = max(
            _calc_text_height(pdf, widths[0], item.dimension, line),
            _calc_text_height(pdf, widths[2], item.feedback, line),
        )
        if pdf.get_y() + row_height > pdf.page_break_trigger:
            pdf.add_page()
        top = pdf.get_y()
        if idx % 2 == 0:
            pdf.set_fill_color(247, 250, 255)
            pdf.rect(pdf.l_margin, top, width, row_height, style="F")
        pdf.set_xy(pdf.l_margin, top)
        pdf.multi_cell(widths[0], line, item.dimension, new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.set_xy(pdf.l_margin + widths[0], top)
        pdf.cell(widths[1], line, f"{item.score}/5")
        pdf.set_xy(pdf.l_margin + widths[0] + widths[1], top)
        pdf.multi_cell(widths[2], line, item.feedback, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_y(top + row_height)
    pdf.ln(2)


def _render_overall(pdf: ReportPDF, overall: float) -> None:  # Highlight box with the overall score
    width = _effective_width(pdf)
    top = pdf.get_y()
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, top, width, 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, top + 4)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf._font_regular, "", 10)
    pdf.cell(width / 2, 8, "Overall Score")
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf._font_bold, "B", 14)
    pdf.cell(width / 2 - 12, 8, f"{overall:.1f}/5.0", align="R")
    pdf.set_y(top + 20)
    pdf.set_text_color(*TEXT)


def _render_bullets(pdf: ReportPDF, items: Sequence[str]) -> None:
    bullet = "•" if pdf._supports_unicode else "-"
    pdf.set_font(pdf._font_regular, "", 11)
    pdf.set_text_color(*TEXT)
    for item in items:
        pdf.set_x(pdf.l_margin)
        pdf.multi_cell(_effective_width(pdf), 6, f"{bullet} {item}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _register_fonts(pdf: ReportPDF) -> None:  # Prefer DejaVu for unicode, fall back to core Helvetica
    try:
        pdf.add_font("DejaVu", "", DEJAVU_SANS)
        pdf.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
    except (OSError, RuntimeError):  # pragma: no cover - font availability depends on the host
        return
    pdf._font_regular = "DejaVu"
    pdf._font_bold = "DejaVu"
    pdf._supports_unicode = True


def render_report_pdf(report: Report) -> bytes:  # Build PDF payload for a feedback report
    pdf = ReportPDF()
    pdf.alias_nb_pages()
    _register_fonts(pdf)
    title = report.problem_title if report.problem_title != "Unknown Problem" else "Mock Interview"
    pdf.header_title = f"{title} - Feedback Report"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    _meta_block(
        pdf,
        [
            ("Session ID", report.session_id),
            ("Problem", report.problem_title),
            ("Duration", f"{report.duration_minutes} minutes"),
            ("Generated", _format_datetime(_parse_datetime(report.generated_at))),
        ],
    )
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf._font_regular, "", 11)
    pdf.multi_cell(_effective_width(pdf), 6, report.summary, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)

    _section_title(pdf, "Rubric Assessment")
    _render_rubric_table(pdf, report.rubric)
    _render_overall(pdf, report.overall_score)

    _section_title(pdf, "Key Strengths")
    _render_bullets(pdf, report.strengths)

    _section_title(pdf, "Areas for Improvement")
    _render_bullets(pdf, report.improvements)

    _section_title(pdf, "Recommendations")
    _render_bullets(pdf, report.recommendations)

    return bytes(pdf.output())


__all__ = ["ReportPDF", "render_report_pdf"]
