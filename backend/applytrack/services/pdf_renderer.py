"""Resume PDF layout engine (reportlab platypus).

The story is a flat list of flowables in a fixed section order:
header, contact line, summary, skills (two columns), projects, experience,
education, certifications. Each populated section is preceded by a thin rule;
empty sections emit nothing. reportlab decides page breaks.

Footers need the final page count, so ``NumberedCanvas`` buffers the state of
every finished page during layout and stamps "Page X of N" on each buffered
page in a second pass when the document is saved.
"""

from __future__ import annotations

import io
import logging
import math
from typing import Union
from xml.sax.saxutils import escape

from pydantic import ValidationError as SchemaValidationError
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    HRFlowable,
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from reportlab.platypus.doctemplate import LayoutError

from applytrack.exceptions import RenderError
from applytrack.schemas.resume import ResumeDocument

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = LETTER
MARGIN = 0.7 * inch
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
FOOTER_Y = MARGIN / 2
FOOTER_FONT = ("Helvetica", 8)

BULLET_INDENT = 12
BULLET_GAP = 2


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output until the total page count is known."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._page_states: list[dict] = []

    def showPage(self):
        # First pass: keep the finished page instead of emitting it.
        self._page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._page_states)
        for index in range(total):
            self.__dict__.update(self._page_states[index])
            self.draw_footer(index + 1, total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_footer(self, page_number: int, total: int) -> None:
        self.saveState()
        self.setFont(*FOOTER_FONT)
        self.setFillColor(colors.grey)
        self.drawCentredString(PAGE_WIDTH / 2, FOOTER_Y, f"Page {page_number} of {total}")
        self.restoreState()


def make_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "name": ParagraphStyle(
            "Name", parent=base["Title"], fontName="Helvetica-Bold", fontSize=20,
            leading=24, alignment=TA_CENTER, spaceAfter=4,
        ),
        "contact": ParagraphStyle(
            "Contact", parent=base["Normal"], fontName="Helvetica", fontSize=9,
            leading=12, alignment=TA_CENTER, spaceAfter=2,
        ),
        "section": ParagraphStyle(
            "Section", parent=base["Heading2"], fontName="Helvetica-Bold", fontSize=11,
            leading=14, spaceBefore=0, spaceAfter=4, keepWithNext=1,
        ),
        "body": ParagraphStyle(
            "Body", parent=base["Normal"], fontName="Helvetica", fontSize=9.5,
            leading=12.5, alignment=TA_LEFT,
        ),
        "entry": ParagraphStyle(
            "Entry", parent=base["Normal"], fontName="Helvetica", fontSize=10,
            leading=13, alignment=TA_LEFT,
        ),
        "dates": ParagraphStyle(
            "Dates", parent=base["Normal"], fontName="Helvetica", fontSize=9,
            leading=13, alignment=TA_RIGHT,
        ),
        "meta": ParagraphStyle(
            "Meta", parent=base["Normal"], fontName="Helvetica-Oblique", fontSize=9,
            leading=12, spaceAfter=2,
        ),
        "bullet": ParagraphStyle(
            "Bullet", parent=base["Normal"], fontName="Helvetica", fontSize=9.5,
            leading=12.5, spaceAfter=BULLET_GAP,
        ),
    }


def contact_line(document: ResumeDocument) -> str:
    c = document.contact
    parts = [c.location, c.phone, c.email, c.linkedin, c.github, c.portfolio]
    return " | ".join(p.strip() for p in parts if p and p.strip())


def split_columns(items: list[str]) -> tuple[list[str], list[str]]:
    """Split into two columns; the left one takes the extra item."""
    cut = math.ceil(len(items) / 2)
    return items[:cut], items[cut:]


def date_span(start: str, end: str) -> str:
    if start and end:
        return f"{start} - {end}"
    return start or end


def _text(value: str) -> str:
    return escape(value.strip())


def _rule() -> HRFlowable:
    return HRFlowable(width="100%", thickness=0.5, color=colors.grey, spaceBefore=6, spaceAfter=4)


def _heading_row(left: str, right: str, styles: dict) -> Table:
    table = Table(
        [[Paragraph(left, styles["entry"]), Paragraph(_text(right), styles["dates"])]],
        colWidths=[CONTENT_WIDTH * 0.72, CONTENT_WIDTH * 0.28],
    )
    table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), 0),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
    ]))
    return table


def _bullets(items: list[str], styles: dict) -> ListFlowable:
    return ListFlowable(
        [ListItem(Paragraph(_text(item), styles["bullet"]), leftIndent=BULLET_INDENT) for item in items],
        bulletType="bullet",
        start="•",
        leftIndent=BULLET_INDENT,
        bulletFontSize=8,
        spaceAfter=4,
    )


def _skills_table(skills: list[str], styles: dict) -> Table:
    left, right = split_columns(skills)
    rows = []
    for i, skill in enumerate(left):
        other = right[i] if i < len(right) else ""
        rows.append([
            Paragraph(f"• {_text(skill)}", styles["body"]),
            Paragraph(f"• {_text(other)}", styles["body"]) if other else "",
        ])
    table = Table(rows, colWidths=[CONTENT_WIDTH / 2, CONTENT_WIDTH / 2])
    table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 0),
        ("BOTTOMPADDING", (0, 0), (-1, -1), BULLET_GAP),
    ]))
    return table


def build_story(document: ResumeDocument) -> list:
    styles = make_styles()
    story: list = []

    def section(title: str) -> None:
        story.append(_rule())
        story.append(Paragraph(title, styles["section"]))

    # ── Header ──
    if document.name.strip():
        story.append(Paragraph(_text(document.name), styles["name"]))
    contact = contact_line(document)
    if contact:
        story.append(Paragraph(escape(contact), styles["contact"]))

    # ── Summary ──
    if document.summary.strip():
        section("SUMMARY")
        story.append(Paragraph(_text(document.summary), styles["body"]))

    # ── Skills ──
    if document.skills:
        section("SKILLS")
        story.append(_skills_table(document.skills, styles))

    # ── Projects ──
    if document.projects:
        section("PROJECTS")
        for project in document.projects:
            story.append(_heading_row(f"<b>{_text(project.title)}</b>", date_span(project.start, project.end), styles))
            if project.tech:
                story.append(Paragraph(_text("Tech: " + ", ".join(project.tech)), styles["meta"]))
            if project.bullets:
                story.append(_bullets(project.bullets, styles))
            else:
                story.append(Spacer(1, 4))

    # ── Experience ──
    if document.experience:
        section("EXPERIENCE")
        for job in document.experience:
            if job.role.strip() and job.company.strip():
                left = f"<b>{_text(job.role)}</b> | {_text(job.company)}"
            else:
                left = f"<b>{_text(job.role or job.company)}</b>"
            story.append(_heading_row(left, date_span(job.start, job.end), styles))
            if job.bullets:
                story.append(_bullets(job.bullets, styles))
            else:
                story.append(Spacer(1, 4))

    # ── Education ──
    if document.education:
        section("EDUCATION")
        for ed in document.education:
            degree = ", ".join(p.strip() for p in (ed.degree, ed.field) if p and p.strip())
            story.append(Paragraph(f"<b>{escape(degree)}</b>", styles["entry"]))
            where = " | ".join(p for p in (ed.institution.strip(), date_span(ed.start, ed.end)) if p)
            if where:
                story.append(Paragraph(escape(where), styles["meta"]))
            story.append(Spacer(1, 3))

    # ── Certifications ──
    titles = [c.title for c in document.certifications if c.title.strip()]
    if titles:
        section("CERTIFICATIONS")
        story.append(_bullets(titles, styles))

    if not story:
        story.append(Spacer(1, 1))
    return story


def render_resume_pdf(document: Union[ResumeDocument, dict]) -> bytes:
    """Lay out a resume document and return the PDF bytes."""
    if not isinstance(document, ResumeDocument):
        try:
            document = ResumeDocument.model_validate(document)
        except SchemaValidationError as e:
            raise RenderError(f"Resume content cannot be rendered: {e.error_count()} schema errors") from e

    buffer = io.BytesIO()
    template = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=document.name or "Resume",
        author=document.name,
    )
    try:
        template.build(build_story(document), canvasmaker=NumberedCanvas)
    except LayoutError as e:
        logger.error("PDF layout failed for %r: %s", document.name, e)
        raise RenderError(f"PDF layout failed: {e}") from e
    return buffer.getvalue()


def resume_pdf_filename(version: int) -> str:
    return f"resume-v{version}.pdf"
