from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from io import BytesIO

from scolarite.utils.formatting import format_date


def create_styled_workbook(title, headers, data, column_widths=None):
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    header_fill = PatternFill(start_color="3498DB", end_color="3498DB", fill_type="solid")
    header_font = Font(name='Arial', size=12, bold=True, color="FFFFFF")
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    data_font = Font(name='Arial', size=11)
    data_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num)
        cell.value = header
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = header_alignment
        cell.border = thin_border

    row_colors = [
        PatternFill(start_color="FFFFFF", end_color="FFFFFF", fill_type="solid"),
        PatternFill(start_color="ECF0F1", end_color="ECF0F1", fill_type="solid")
    ]

    for row_num, row_data in enumerate(data, 2):
        fill_color = row_colors[(row_num - 2) % 2]
        for col_num, value in enumerate(row_data, 1):
            cell = ws.cell(row=row_num, column=col_num)
            cell.value = value
            cell.font = data_font
            cell.alignment = data_alignment
            cell.border = thin_border
            cell.fill = fill_color

    widths = column_widths or [20] * len(headers)
    for col_num, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = width

    ws.freeze_panes = 'A2'

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    return output


def export_grades_to_excel(summaries):
    title = "Notes"

    headers = [
        "Élève",
        "Matière",
        "Date de l'examen",
        "Note /20",
    ]

    data = []
    for summary in summaries:
        data.append([
            summary.student_name,
            summary.subject_name,
            summary.date_label,
            summary.valeur,
        ])

    column_widths = [30, 25, 18, 12]

    return create_styled_workbook(title, headers, data, column_widths)


def export_students_to_excel(students):
    title = "Élèves"

    headers = [
        "ID",
        "Nom",
        "Prénom",
        "Niveau",
        "Inscrit le",
    ]

    data = []
    for student in students:
        data.append([
            student.id,
            student.nom,
            student.prenom,
            student.classe,
            format_date(student.created_at, default=""),
        ])

    column_widths = [8, 25, 25, 12, 15]

    return create_styled_workbook(title, headers, data, column_widths)
