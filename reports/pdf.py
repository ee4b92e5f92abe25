from __future__ import annotations  # Styled PDF rendering for interview evaluation reports

import math
import re
import textwrap
from datetime import datetime
from typing import Any, List, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from interview.types import PENDING_ANALYSIS, InterviewResponse, ReportView


DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background

RATING_LABELS = {
    "excellent": "Excellent",
    "good": "Good",
    "average": "Average",
    "below-average": "Below average",
    "poor": "Poor",
}


def _format_datetime(value: datetime | None) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _section_title(pdf: ReportPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_bold, "B", 13)
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
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.cell(col, line, left[0], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[0], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_bold, "B", 11)
        pdf.cell(col, line, left[1], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[1], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _calc_text_height(pdf: FPDF, width: float, text: str, line_height: float) -> float:  # Estimate multi-cell height
    if not text:
        return line_height
    lines = pdf.multi_cell(width, line_height, text, dry_run=True, output="LINES")
    if isinstance(lines, (list, tuple)):
        return line_height * max(1, len(lines))
    return max(1, math.ceil(len(text) / 90)) * line_height


class ReportPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args, accent: Tuple[int, int, int] = ACCENT, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.accent = accent
        self.header_title = "Evaluation Report"
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_unicode_font(self) -> None:  # Switch to DejaVu when the system ships it
        try:
            self.add_font("DejaVu", "", DEJAVU_SANS)
            self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        except OSError:
            return
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    @property
    def bullet(self) -> str:
        return "•" if self.supports_unicode else "-"

    def _prepare_text(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("…", "...")
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

    def header(self) -> None:  # Render header banner
        usable = _effective_width(self)
        if self.page_no() == 1:
            line_height = 8
            self.set_font(self.font_bold, "B", 16)
            trial = self.multi_cell(usable, line_height, self.header_title, dry_run=True, output="LINES")
            lines = len(trial) if isinstance(trial, (list, tuple)) else 1
            banner = 6 + lines * line_height + 4
            self.set_fill_color(*self.accent)
            self.rect(0, 0, self.w, banner, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 6)
            self.multi_cell(usable, line_height, self.header_title)
            self.set_text_color(*TEXT)
            self.ln(4)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self.font_bold, "B", 12)
            self.multi_cell(usable, 6, self.header_title)
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
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _summarize(text: str) -> str:  # Summarize longer paragraphs
    cleaned = " ".join(text.split()) if text else ""
    if not cleaned:
        return "-"
    segments = [seg.strip() for seg in re.split(r"(?<=[.!?])\s+", cleaned) if seg.strip()]
    snippet = " ".join(segments[:3]) or cleaned
    return textwrap.shorten(snippet, width=380, placeholder="...")


def _paragraph(pdf: ReportPDF, text: str) -> None:
    pdf.set_x(pdf.l_margin)
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf.font_regular, "", 11)
    pdf.multi_cell(_effective_width(pdf), 6, text or "-")
    pdf.ln(2)


def _bullets(pdf: ReportPDF, items: Sequence[str], empty: str) -> None:  # Render bullet list
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf.font_regular, "", 11)
    if not items:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.multi_cell(_effective_width(pdf), 6, empty)
        pdf.set_text_color(*TEXT)
    for item in items:
        pdf.set_x(pdf.l_margin)
        pdf.multi_cell(_effective_width(pdf), 6, f"{pdf.bullet} {item}")
    pdf.ln(2)


def _render_score_table(pdf: ReportPDF, view: ReportView) -> None:  # Draw sub-score table
    report = view.evaluation_report
    rows = [
        ("Technical skills", report.technical_skills_score),
        ("Communication", report.communication_score),
        ("Cultural fit", report.cultural_fit_score),
        ("Overall", report.overall_score),
    ]
    width = _effective_width(pdf)
    widths = [width * 0.4, width * 0.2, width * 0.4]
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*ACCENT)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font(pdf.font_bold, "B", 10)
    for idx, title in enumerate(["Area", "Score", ""]):
        pdf.cell(widths[idx], 8, title, align="L", fill=True)
    pdf.ln(8)
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf.font_regular, "", 10)
    for idx, (label, score) in enumerate(rows):
        fill = idx % 2 == 0
        if fill:
            pdf.set_fill_color(247, 250, 255)
        pdf.set_x(pdf.l_margin)
        pdf.cell(widths[0], 7, label, border=0, fill=fill)
        pdf.cell(widths[1], 7, f"{score}/100", border=0, fill=fill)
        origin_x = pdf.get_x()
        origin_y = pdf.get_y()
        pdf.cell(widths[2], 7, "", border=0, fill=fill)
        bar = max(0.0, (widths[2] - 6) * score / 100.0)
        if bar:
            pdf.set_fill_color(*ACCENT)
            pdf.rect(origin_x + 2, origin_y + 2, bar, 3, style="F")
        pdf.ln(7)
    pdf.ln(2)


def _render_score_callout(pdf: ReportPDF, view: ReportView) -> None:  # Highlight score of record
    score = view.interview_score if view.interview_score is not None else view.evaluation_report.overall_score
    verdict = "Meets passing score" if view.meets_passing_score else "Below passing score"
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, pdf.get_y(), _effective_width(pdf), 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, pdf.get_y() + 4)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.cell(_effective_width(pdf) - 12, 6, f"Interview Score ({verdict})")
    pdf.set_xy(pdf.l_margin, pdf.get_y() - 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 14)
    pdf.cell(_effective_width(pdf) - 6, 8, f"{score}/100", align="R")
    pdf.ln(12)
    pdf.set_text_color(*TEXT)


def _transcript_widths(pdf: FPDF) -> Tuple[float, float, float]:  # Compute transcript column widths
    total = _effective_width(pdf)
    gap = 6.0
    primary = max(total * 0.64, total - 120)
    secondary = total - primary - gap
    if secondary < total * 0.22:
        secondary = total * 0.22
        primary = total - secondary - gap
    return primary, secondary, gap


def _response_details(response: InterviewResponse) -> List[str]:  # Build highlight lines for transcript
    if response.analysis_text == PENDING_ANALYSIS:
        return ["Score: not scored", "Analysis pending"]
    return [f"Score: {response.score}/10", _summarize(response.analysis_text)]


def _render_transcript_header(pdf: ReportPDF, left: float, right: float, gap: float) -> None:  # Render transcript header row
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*ACCENT)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.cell(left, 8, "Dialogue", align="L", fill=True)
    pdf.cell(gap, 8, "", fill=True)
    pdf.cell(right, 8, "Analysis", align="L", fill=True)
    pdf.ln(8)
    pdf.set_text_color(*TEXT)


def _render_transcript_row(
    pdf: ReportPDF,
    left: float,
    right: float,
    gap: float,
    index: int,
    response: InterviewResponse,
) -> None:  # Render Q&A row
    line = 5.5
    question = f"Q{index}: {response.question_text.strip() or '-'}"
    answer = f"A: {response.answer_text.strip() or '-'}"
    details = _response_details(response)
    text_height = _calc_text_height(pdf, left, question, line) + _calc_text_height(pdf, left, answer, line)
    highlight_height = _calc_text_height(pdf, right, "\n".join(details), line)
    block = max(text_height, highlight_height) + 6
    if pdf.get_y() + block > pdf.page_break_trigger:
        pdf.add_page()
        _render_transcript_header(pdf, left, right, gap)
    origin_x = pdf.l_margin
    origin_y = pdf.get_y()
    pdf.set_fill_color(248, 249, 255)
    pdf.rect(origin_x, origin_y, left, block, style="F")
    pdf.set_xy(origin_x + 2, origin_y + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.multi_cell(left - 4, line, question)
    pdf.set_x(origin_x + 2)
    pdf.set_text_color(60, 60, 60)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.multi_cell(left - 4, line, answer)
    pdf.set_xy(origin_x + left + gap, origin_y + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 9)
    pdf.multi_cell(right, line, details[0])
    for extra in details[1:]:
        pdf.set_x(origin_x + left + gap)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_regular, "", 9)
        pdf.multi_cell(right, line, extra)
    bottom = max(pdf.get_y(), origin_y + block - 2)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    pdf.line(origin_x, bottom + 1, origin_x + left + gap + right, bottom + 1)
    pdf.set_y(bottom + 4)
    pdf.set_text_color(*TEXT)


def _render_transcript(pdf: ReportPDF, responses: Sequence[InterviewResponse]) -> None:  # Render transcript section
    left, right, gap = _transcript_widths(pdf)
    _render_transcript_header(pdf, left, right, gap)
    if not responses:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No interview responses recorded.")
        pdf.set_text_color(*TEXT)
        pdf.ln(4)
        return
    for index, response in enumerate(responses, start=1):
        _render_transcript_row(pdf, left, right, gap, index, response)


def generate_report_pdf(view: ReportView) -> bytes:  # Build PDF payload for an evaluation report
    report = view.evaluation_report
    candidate = view.candidate.full_name if view.candidate else "Candidate"
    pdf = ReportPDF()
    pdf.use_unicode_font()
    pdf.alias_nb_pages()
    pdf.header_title = f"{view.job_title} - {candidate} - Evaluation Report"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    last_answer = view.interview_responses[-1].answered_at if view.interview_responses else None
    _section_title(pdf, "Overview")
    _meta_block(
        pdf,
        [
            ("Application ID", view.application_id),
            ("Candidate", candidate),
            ("Role", view.job_title),
            ("Suitability", RATING_LABELS.get(report.suitability_rating, report.suitability_rating)),
            ("Interview Completed", "Yes" if view.interview_completed else "No"),
            ("Last Answer", _format_datetime(last_answer)),
        ],
    )
    _render_score_callout(pdf, view)

    _section_title(pdf, "Scores")
    _render_score_table(pdf, view)

    _section_title(pdf, "Overall Assessment")
    _paragraph(pdf, report.overall_assessment)

    _section_title(pdf, "Strengths")
    _bullets(pdf, report.strengths, "No strengths recorded.")

    _section_title(pdf, "Areas for Improvement")
    _bullets(pdf, report.weaknesses, "No weaknesses recorded.")

    _section_title(pdf, "Recommendations")
    _paragraph(pdf, report.recommendations)

    _section_title(pdf, "Question & Answer Transcript")
    _render_transcript(pdf, view.interview_responses)

    return bytes(pdf.output())


__all__ = ["ReportPDF", "generate_report_pdf"]
