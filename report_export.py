"""
PDF export of conflict reports and group summaries,
Excel export of a month's rosters.
"""

from datetime import datetime
from io import BytesIO

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from conflict_scanner import ConflictReport
from entities import STANDARD_OPERATIONS, MonthKey, OperationSet, get_operation_by_code
from schedule_summary import GroupSummary, operation_statistics

WEEKDAY_NAMES = ["Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado", "Domingo"]

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro"
]

HEADER_COLOR = HexColor('#1e293b')
ALTERNATE_ROW_COLOR = HexColor('#f0f0f0')


def format_month(month: MonthKey) -> str:
    return f"{MONTH_NAMES[month.month - 1]} {month.year}"


def weekday_name(month: MonthKey, day: int) -> str:
    return WEEKDAY_NAMES[month.date_of(day).weekday()]


def _table_style(row_count: int) -> TableStyle:
    commands = [
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]
    for row in range(2, row_count, 2):
        commands.append(('BACKGROUND', (0, row), (-1, row), ALTERNATE_ROW_COLOR))
    return TableStyle(commands)


def _draw_footer(canvas, doc):
    canvas.saveState()
    canvas.setFont('Helvetica', 8)
    canvas.setFillColor(colors.grey)
    generated = datetime.now().strftime('%d/%m/%Y às %H:%M')
    canvas.drawCentredString(A4[0] / 2, 1 * cm, f"Página {doc.page} - Gerado em {generated}")
    canvas.restoreState()


def _build(elements) -> BytesIO:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=1.5*cm,
        rightMargin=1.5*cm,
        topMargin=1.5*cm,
        bottomMargin=2*cm
    )
    doc.build(elements, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    buffer.seek(0)
    return buffer


def build_conflict_report_pdf(report: ConflictReport) -> BytesIO:
    """
    Render a conflict report.

    Raises:
        ValueError: if the report could not be generated; an unavailable
            report is never printed as an empty one
    """
    if not report.is_available:
        raise ValueError(f"Cannot export an unavailable report: {report.error}")

    styles = getSampleStyleSheet()
    elements = [
        Paragraph("RELATÓRIO DE CONFLITOS DE ESCALA", styles['Title']),
        Paragraph(f"Mês de referência: {format_month(report.month)}", styles['Heading2']),
        Spacer(1, 0.3*cm),
    ]

    if not report.conflicts:
        elements.append(Paragraph("Nenhuma inconsistência encontrada.", styles['Normal']))
        return _build(elements)

    noun = "ocorrência" if len(report.conflicts) == 1 else "ocorrências"
    elements.append(Paragraph(f"{len(report.conflicts)} {noun}", styles['Normal']))
    elements.append(Spacer(1, 0.3*cm))

    table_data = [['Dia', 'Dia da Semana', 'Militar', 'Guarnição de Serviço', 'Operação Extra']]
    for conflict in report.conflicts:
        table_data.append([
            str(conflict.day),
            weekday_name(report.month, conflict.day),
            conflict.person,
            conflict.group,
            conflict.operation_label,
        ])

    table = Table(table_data, colWidths=[1.2*cm, 2.8*cm, 6*cm, 3.5*cm, 3.5*cm], repeatRows=1)
    table.setStyle(_table_style(len(table_data)))
    elements.append(table)
    return _build(elements)


def build_group_summary_pdf(summary: GroupSummary, operation: str, month: MonthKey) -> BytesIO:
    """Render one group's extraordinary assignments: totals, per-person days and per-day persons"""
    op = get_operation_by_code(operation)
    operation_name = op.name if op else operation
    styles = getSampleStyleSheet()

    elements = [
        Paragraph(f"EXTRAS {operation_name.upper()} - GUARNIÇÃO {summary.group}", styles['Title']),
        Paragraph(f"Mês de referência: {format_month(month)}", styles['Heading2']),
        Paragraph(f"Total de extras: {summary.total}", styles['Normal']),
        Paragraph(f"Dias com extras: {len(summary.days)}", styles['Normal']),
        Spacer(1, 0.4*cm),
        Paragraph("Militares e suas datas de extras", styles['Heading3']),
    ]

    person_rows = [['Militar', 'Total', 'Dias de Extras']]
    for name, days in summary.days_by_person().items():
        person_rows.append([name, str(len(days)), ", ".join(str(d) for d in days)])
    person_table = Table(person_rows, colWidths=[7*cm, 1.5*cm, 8.5*cm], repeatRows=1)
    person_table.setStyle(_table_style(len(person_rows)))
    elements.append(person_table)

    elements.append(Spacer(1, 0.5*cm))
    elements.append(Paragraph("Distribuição por dia", styles['Heading3']))

    day_rows = [['Dia', 'Dia da Semana', 'Militares']]
    for day in summary.days:
        day_rows.append([str(day), weekday_name(month, day), ", ".join(summary.persons_by_day[day])])
    day_table = Table(day_rows, colWidths=[1.5*cm, 3.5*cm, 12*cm], repeatRows=1)
    day_table.setStyle(_table_style(len(day_rows)))
    elements.append(day_table)

    return _build(elements)


THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)


def _style_header(ws):
    header_font = Font(bold=True, color="FFFFFF", size=10)
    header_fill = PatternFill(start_color="1E293B", end_color="1E293B", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = THIN_BORDER


def build_month_roster_workbook(operation_set: OperationSet) -> BytesIO:
    """
    Excel workbook with one sheet per operation (a row per day, a column
    per slot) and a totals sheet with each person's assignments.
    """
    month = operation_set.month
    wb = openpyxl.Workbook()
    wb.remove(wb.active)

    no_service_fill = PatternFill(start_color="E5E7EB", end_color="E5E7EB", fill_type="solid")

    for op in STANDARD_OPERATIONS:
        roster = operation_set.roster(op.code)
        ws = wb.create_sheet(title=op.report_label)
        ws.append(['Dia', 'Dia da Semana'] + [f'Vaga {i}' for i in range(1, op.slot_count + 1)])
        _style_header(ws)

        for day in month.days():
            if op.works_on_date(month.date_of(day)):
                slots = roster.row(day)
            else:
                slots = ['Sem expediente'] + [None] * (op.slot_count - 1)
            ws.append([day, weekday_name(month, day)] + slots)

            for cell in ws[ws.max_row]:
                cell.border = THIN_BORDER
                cell.font = Font(size=9)
                if not op.works_on_date(month.date_of(day)):
                    cell.fill = no_service_fill

        ws.column_dimensions['A'].width = 6
        ws.column_dimensions['B'].width = 14
        for col_idx in range(3, op.slot_count + 3):
            ws.column_dimensions[get_column_letter(col_idx)].width = 28
        ws.freeze_panes = 'A2'

    stats = operation_statistics(operation_set)
    ws = wb.create_sheet(title='Totais')
    ws.append(['Militar'] + [op.report_label for op in STANDARD_OPERATIONS] + ['Total'])
    _style_header(ws)
    for name, counts in stats['persons'].items():
        ws.append([name] + [counts[op.code] for op in STANDARD_OPERATIONS] + [counts['total']])
        for cell in ws[ws.max_row]:
            cell.border = THIN_BORDER
    ws.column_dimensions['A'].width = 30

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer
