import html
import os
from datetime import datetime
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Image as RLImage,
    ListFlowable,
    ListItem,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from reportlab.platypus.flowables import HRFlowable

MARGIN = 50
RATING_COL_WIDTH = 60

HEADER_GREY = colors.HexColor("#e5e7eb")
BOX_FILL = colors.HexColor("#f3f4f6")
ZEBRA_FILL = colors.HexColor("#f9fafb")
TEXT_DARK = colors.HexColor("#374151")
CATEGORY_BLUE = colors.HexColor("#1b1464")
RULE_GREY = colors.HexColor("#cccccc")


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so the footer can print the page total."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total):
        width = self._pagesize[0]
        self.saveState()
        self.setStrokeColor(RULE_GREY)
        self.line(MARGIN, 70, width - MARGIN, 70)
        self.setFillColor(colors.black)
        self.setFont("Helvetica", 8)
        self.drawCentredString(width / 2, 60, f"Page {self._pageNumber} of {total}")
        self.restoreState()


def _styles():
    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle", parent=styles["Heading1"], fontSize=20, alignment=TA_CENTER
        ),
        "generated": ParagraphStyle(
            "Generated", parent=styles["Normal"], fontSize=10, alignment=TA_CENTER
        ),
        "centered": ParagraphStyle(
            "Centered", parent=styles["Normal"], fontSize=14, leading=18, alignment=TA_CENTER
        ),
        "faculty": ParagraphStyle("Faculty", parent=styles["Heading1"], fontSize=18),
        "subject": ParagraphStyle("Subject", parent=styles["Heading2"], fontSize=14),
        "section": ParagraphStyle("Section", parent=styles["Heading3"], fontSize=12),
        "category": ParagraphStyle(
            "Category", parent=styles["Heading3"], fontSize=12, textColor=CATEGORY_BLUE
        ),
        "body": ParagraphStyle(
            "Body", parent=styles["Normal"], fontSize=10, textColor=TEXT_DARK
        ),
        "cell": ParagraphStyle(
            "Cell", parent=styles["Normal"], fontSize=9, leading=11, textColor=TEXT_DARK
        ),
        "comment": ParagraphStyle(
            "Comment", parent=styles["Italic"], fontSize=10, textColor=TEXT_DARK
        ),
    }


def _header(title, styles, logo_path=None):
    story = []
    if logo_path and os.path.exists(logo_path):
        story.append(RLImage(logo_path, width=50, height=50, hAlign="LEFT"))
    story.append(Paragraph(html.escape(title), styles["title"]))
    date_str = datetime.now().strftime("%Y-%m-%d")
    story.append(Paragraph(f"Report Generated: {date_str}", styles["generated"]))
    story.append(Spacer(1, 30))
    return story


def _summary_box(subject, styles, width):
    average = f"{subject['overall_average']:.2f}"
    cells = [
        [
            Paragraph(f"<b>Overall Average:</b> {average} / 5.00", styles["body"]),
            Paragraph(
                f"<b>Total Respondents:</b> {subject['total_evaluations']}", styles["body"]
            ),
        ]
    ]
    table = Table(cells, colWidths=[width / 2, width / 2])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), BOX_FILL),
                ("BOX", (0, 0), (-1, -1), 1, HEADER_GREY),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 12),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 12),
                ("LEFTPADDING", (0, 0), (-1, -1), 10),
            ]
        )
    )
    return [table, Spacer(1, 16)]


def _comments(comments, styles):
    if not comments:
        return []
    items = [
        ListItem(Paragraph(f"&quot;{html.escape(comment)}&quot;", styles["comment"]))
        for comment in comments
    ]
    return [
        Paragraph("Feedback Comments", styles["section"]),
        ListFlowable(items, bulletType="bullet", bulletFontSize=6, leftIndent=20),
        Spacer(1, 12),
    ]


def _category_table(category, styles, width):
    data = [["Question", "Rating"]]
    for question in category["questions"]:
        data.append(
            [
                Paragraph(html.escape(question["question_text"] or ""), styles["cell"]),
                f"{question['average_rating']:.2f}",
            ]
        )
    table = Table(data, colWidths=[width - RATING_COL_WIDTH, RATING_COL_WIDTH], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_GREY),
                ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                ("FONT", (1, 1), (1, -1), "Helvetica-Bold", 9),
                ("TEXTCOLOR", (0, 0), (-1, -1), TEXT_DARK),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ZEBRA_FILL]),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def _detailed_ratings(categories, styles, width):
    story = [Paragraph("Detailed Ratings", styles["section"]), Spacer(1, 6)]
    for category in categories:
        story.append(Paragraph(html.escape(category["category_name"]), styles["category"]))
        story.append(_category_table(category, styles, width))
        story.append(Spacer(1, 12))
    return story


def _subject_block(subject, styles, width):
    return (
        _summary_box(subject, styles, width)
        + _comments(subject["comments"], styles)
        + _detailed_ratings(subject["detailed_results"], styles, width)
    )


def _subject_heading(subject):
    return html.escape(f"Subject: {subject['subject_name']} ({subject['subject_code']})")


def _render(story):
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=90,
    )
    doc.build(story, canvasmaker=NumberedCanvas)
    pdf_data = buffer.getvalue()
    buffer.close()
    return pdf_data


def _content_width():
    return LETTER[0] - 2 * MARGIN


def build_consolidated_report(faculty_results, logo_path=None):
    """Render the admin-wide summary: one section per faculty member."""
    styles = _styles()
    width = _content_width()
    story = _header("Consolidated Evaluation Report", styles, logo_path)

    if not faculty_results:
        story.append(Paragraph("No evaluation data available.", styles["centered"]))
        return _render(story)

    for index, faculty in enumerate(faculty_results):
        if index > 0:
            story.append(PageBreak())
        story.append(
            Paragraph(html.escape(f"Faculty: {faculty['faculty_name']}"), styles["faculty"])
        )
        story.append(HRFlowable(width="100%", color=RULE_GREY, spaceAfter=10))
        for subject in faculty["subjects"]:
            story.append(Paragraph(_subject_heading(subject), styles["subject"]))
            story.extend(_subject_block(subject, styles, width))
            story.append(
                HRFlowable(
                    width="100%", color=RULE_GREY, dash=(3, 4), spaceBefore=6, spaceAfter=12
                )
            )
    return _render(story)


def build_faculty_report(faculty_name, subjects, logo_path=None):
    """Render one faculty member's report: one page per subject."""
    styles = _styles()
    width = _content_width()
    story = _header("Faculty Evaluation Report", styles, logo_path)
    story.append(Paragraph(html.escape(f"Faculty Member: {faculty_name}"), styles["centered"]))
    story.append(Spacer(1, 24))

    for index, subject in enumerate(subjects):
        if index > 0:
            story.append(PageBreak())
        story.append(Paragraph(_subject_heading(subject), styles["subject"]))
        story.append(HRFlowable(width="100%", color=RULE_GREY, spaceAfter=10))
        story.extend(_subject_block(subject, styles, width))
    return _render(story)
