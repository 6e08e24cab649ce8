"""
PDF export of a project budget
Renders the project header, budget items, priced tasks and a per-category summary
"""
import logging
from io import BytesIO
from xml.sax.saxutils import escape

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from .translations import get_pdf_translations, translate_category, format_currency

logger = logging.getLogger(__name__)

HEADER_COLOR = HexColor('#2c3e50')
ROW_ALT_COLOR = HexColor('#f5f5f5')
REPORT_FONT_NAME = 'ReportFont'


def _register_font():
    """Use a TTF font with Cyrillic glyphs when PDF_FONT_PATH is configured"""
    font_path = getattr(settings, 'PDF_FONT_PATH', None)
    if not font_path:
        return 'Helvetica', 'Helvetica-Bold'
    if REPORT_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(REPORT_FONT_NAME, font_path))
    return REPORT_FONT_NAME, REPORT_FONT_NAME


class BudgetReportGenerator:
    """Generate a budget report PDF in English or Ukrainian"""

    def __init__(self, lang='en'):
        self.lang = lang
        self.t = get_pdf_translations(lang)
        self.font, self.bold_font = _register_font()
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self.styles['Title'],
            fontSize=20,
            textColor=HEADER_COLOR,
            spaceAfter=12,
            alignment=TA_CENTER,
            fontName=self.bold_font,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeading',
            parent=self.styles['Normal'],
            fontSize=14,
            textColor=HEADER_COLOR,
            spaceBefore=12,
            spaceAfter=8,
            fontName=self.bold_font,
            keepWithNext=True,
        ))
        self.styles.add(ParagraphStyle(
            name='ReportBody',
            parent=self.styles['Normal'],
            fontSize=10,
            spaceAfter=4,
            fontName=self.font,
        ))

    def money(self, amount):
        return format_currency(amount, self.lang)

    def generate(self, budget, tasks, category_summary):
        """Build the report and return the PDF bytes"""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=0.75 * inch,
            rightMargin=0.75 * inch,
            topMargin=0.75 * inch,
            bottomMargin=0.75 * inch,
            title=f"{self.t['budget_report']} - {budget.project.name}",
        )

        story = []
        story.extend(self._header(budget))
        story.extend(self._items_section(budget.items.all()))
        story.extend(self._tasks_section(tasks))
        story.extend(self._summary_section(budget, category_summary))

        doc.build(story)
        pdf = buffer.getvalue()
        buffer.close()
        logger.info(f"Generated budget report for project {budget.project_id} ({len(pdf)} bytes, lang={self.lang})")
        return pdf

    def _header(self, budget):
        project = budget.project
        t = self.t
        body = self.styles['ReportBody']
        lines = [
            (t['project'], project.name),
            (t['client'], project.client_name),
            (t['email'], project.client_email or '-'),
            (t['phone'], project.client_phone or '-'),
            (t['total_budget'], self.money(budget.total_estimated)),
            (t['export_date'], timezone.localdate().isoformat()),
        ]
        elements = [Paragraph(escape(t['budget_report']), self.styles['ReportTitle'])]
        elements.extend(Paragraph(f"<b>{escape(label)}:</b> {escape(str(value))}", body) for label, value in lines)
        elements.append(Spacer(1, 0.2 * inch))
        return elements

    def _items_section(self, items):
        t = self.t
        rows = [[t['id'], t['name'], t['total_estimated'], t['total_actual'], t['variance']]]
        for index, item in enumerate(items, start=1):
            rows.append([
                str(index),
                f"{item.name} ({translate_category(item.category, t)})",
                self.money(item.estimated_cost),
                self.money(item.actual_cost),
                self.money(item.actual_cost - item.estimated_cost),
            ])
        if len(rows) == 1:
            return []
        return [
            Paragraph(t['budget_items'], self.styles['SectionHeading']),
            self._table(rows, [0.4, 2.6, 1.3, 1.3, 1.3]),
        ]

    def _tasks_section(self, tasks):
        t = self.t
        rows = [[t['id'], t['task'], t['amount'], t['unit'], t['price_per_unit'], t['price']]]
        for index, task in enumerate(tasks, start=1):
            rows.append([
                str(index),
                task.name,
                f"{task.amount.normalize():f}" if task.amount is not None else '-',
                task.unit or '-',
                self.money(task.price) if task.price is not None else '-',
                self.money(task.actual_price) if task.actual_price is not None else '-',
            ])
        if len(rows) == 1:
            return []
        return [
            Paragraph(t['tasks'], self.styles['SectionHeading']),
            self._table(rows, [0.4, 2.4, 0.8, 0.8, 1.2, 1.3]),
        ]

    def _summary_section(self, budget, category_summary):
        t = self.t
        rows = [[t['name'], t['total_estimated'], t['total_actual'], t['variance']]]
        for row in category_summary:
            rows.append([
                translate_category(row['category'], t),
                self.money(row['estimated']),
                self.money(row['actual']),
                self.money(row['variance']),
            ])
        rows.append([
            t['total_budget'],
            self.money(budget.total_estimated),
            self.money(budget.total_actual),
            self.money(budget.get_variance()),
        ])
        table = self._table(rows, [2.5, 1.5, 1.5, 1.4])
        table.setStyle(TableStyle([('FONTNAME', (0, -1), (-1, -1), self.bold_font)]))
        return [Paragraph(t['summary_by_category'], self.styles['SectionHeading']), table]

    def _table(self, rows, widths):
        table = Table(rows, colWidths=[w * inch for w in widths], repeatRows=1)
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), self.bold_font),
            ('FONTNAME', (0, 1), (-1, -1), self.font),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]
        for row_index in range(2, len(rows), 2):
            style.append(('BACKGROUND', (0, row_index), (-1, row_index), ROW_ALT_COLOR))
        table.setStyle(TableStyle(style))
        return table


def generate_budget_report(budget, tasks, category_summary, lang='en'):
    return BudgetReportGenerator(lang).generate(budget, tasks, category_summary)
