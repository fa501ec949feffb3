import unittest

from openpyxl import load_workbook

from scolarite.models import Eleve, Note
from scolarite.services.joins import GradeSummary
from scolarite.utils.excel_export import create_styled_workbook, export_grades_to_excel, export_students_to_excel


class TestExcelExport(unittest.TestCase):
    def test_grades_workbook(self):
        summaries = [
            GradeSummary(grade=Note(id=1, eleve_id=1, examen_id=1, valeur=15),
                         student_name='Marie Dupont', subject_name='Mathématiques', date_label='15/01/2024'),
            GradeSummary(grade=Note(id=2, eleve_id=2, examen_id=1, valeur=12.5),
                         student_name='Lucas Martin', subject_name='Mathématiques', date_label='15/01/2024'),
        ]
        ws = load_workbook(export_grades_to_excel(summaries)).active
        self.assertEqual(ws.title, 'Notes')
        self.assertEqual([cell.value for cell in ws[1]], ['Élève', 'Matière', "Date de l'examen", 'Note /20'])
        self.assertEqual([cell.value for cell in ws[3]], ['Lucas Martin', 'Mathématiques', '15/01/2024', 12.5])
        self.assertEqual(ws.freeze_panes, 'A2')

    def test_students_workbook(self):
        eleves = [Eleve.model_validate({'id': 1, 'nom': 'Dupont', 'prenom': 'Marie', 'classe': 'L1',
                                        'createdAt': '2024-09-02T08:30:00'}),
                  Eleve(id=2, nom='Martin', prenom='Lucas', classe='L2')]
        ws = load_workbook(export_students_to_excel(eleves)).active
        self.assertEqual(ws.max_row, 3)
        self.assertEqual([cell.value for cell in ws[2]], [1, 'Dupont', 'Marie', 'L1', '02/09/2024'])
        self.assertIn(ws[3][4].value, (None, ''))

    def test_title_is_truncated(self):
        output = create_styled_workbook('x' * 40, ['A'], [[1]])
        self.assertEqual(load_workbook(output).active.title, 'x' * 31)


if __name__ == '__main__':
    unittest.main()
