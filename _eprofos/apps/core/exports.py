"""
core/exports.py
Utilitaires communs aux exportations CSV, Excel et PDF
"""
import csv
from io import BytesIO

from django.http import HttpResponse
from django.utils import timezone
import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, TableStyle, Paragraph, Spacer


def export_filename(prefix, extension):
    return f'{prefix}_{timezone.now().strftime("%Y%m%d_%H%M%S")}.{extension}'


def get_csv_response(filename):
    """Crée une réponse HTTP pour CSV avec encodage UTF-8 BOM"""
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    response.write('\ufeff'.encode('utf8'))  # BOM pour Excel
    return response


def get_excel_response(filename):
    response = HttpResponse(
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def get_pdf_response(filename):
    """Crée une réponse HTTP pour PDF"""
    response = HttpResponse(content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def write_csv(filename, headers, rows, delimiter=';'):
    """Construit une réponse CSV à partir d'en-têtes et de lignes"""
    response = get_csv_response(filename)
    writer = csv.writer(response, delimiter=delimiter)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return response


def write_excel(filename, sheet_title, headers, rows, column_width=18):
    """Construit une réponse Excel avec en-tête stylé"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_title[:31]

    header_fill = PatternFill(start_color="1d4ed8", end_color="1d4ed8", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', vertical='center')

    for row_index, row in enumerate(rows, 2):
        for col, value in enumerate(row, 1):
            ws.cell(row_index, col, value)

    for col in range(1, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = column_width

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    response = get_excel_response(filename)
    response.write(buffer.read())
    return response


# Charte graphique des documents EPROFOS
PDF_PRIMARY = colors.HexColor('#1d4ed8')
PDF_TEXT = colors.HexColor('#111827')
PDF_MUTED = colors.HexColor('#6b7280')
PDF_STRIPE = colors.HexColor('#eff6ff')
PDF_RULE = colors.HexColor('#d1d5db')


def create_pdf_document(buffer, title, landscape_mode=False):
    """Document A4 (paysage pour les plannings) aux marges EPROFOS"""
    return SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4) if landscape_mode else A4,
        title=title,
        author='EPROFOS',
        leftMargin=1.8 * cm,
        rightMargin=1.8 * cm,
        topMargin=1.8 * cm,
        bottomMargin=1.8 * cm,
    )


def get_pdf_styles():
    """Feuille de styles : EprofosTitle, EprofosSection, EprofosBody"""
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        'EprofosTitle', parent=styles['Title'], fontSize=17, textColor=PDF_PRIMARY, spaceAfter=14
    ))
    styles.add(ParagraphStyle(
        'EprofosSection', parent=styles['Heading2'], fontSize=13, textColor=PDF_TEXT,
        spaceBefore=14, spaceAfter=8
    ))
    styles.add(ParagraphStyle(
        'EprofosBody', parent=styles['Normal'], fontSize=9.5, leading=13, textColor=PDF_TEXT
    ))
    styles.add(ParagraphStyle(
        'EprofosMeta', parent=styles['Normal'], fontSize=8.5, textColor=PDF_MUTED
    ))
    return styles


def create_table_style(header=True):
    """Tableau à lignes alternées, première ligne en en-tête si `header`"""
    commands = [
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('TEXTCOLOR', (0, 0), (-1, -1), PDF_TEXT),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        ('LINEBELOW', (0, 0), (-1, -1), 0.4, PDF_RULE),
        ('ROWBACKGROUNDS', (0, 1 if header else 0), (-1, -1), [colors.white, PDF_STRIPE]),
    ]
    if header:
        commands += [
            ('BACKGROUND', (0, 0), (-1, 0), PDF_PRIMARY),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ]
    return TableStyle(commands)


def add_pdf_header(elements, title, styles, subtitle=None):
    elements.append(Paragraph(title, styles['EprofosTitle']))
    if subtitle:
        elements.append(Paragraph(subtitle, styles['EprofosBody']))
    generated = timezone.localtime().strftime('%d/%m/%Y à %H:%M')
    elements.append(Paragraph(f"EPROFOS, document généré le {generated}", styles['EprofosMeta']))
    elements.append(Spacer(1, 16))


def build_pdf(title, elements_builder, landscape_mode=False):
    """Construit un PDF en mémoire et retourne son contenu binaire"""
    buffer = BytesIO()
    doc = create_pdf_document(buffer, title, landscape_mode=landscape_mode)
    elements = []
    elements_builder(elements, get_pdf_styles())
    doc.build(elements)
    return buffer.getvalue()
