import unittest

from scolarite.models import Eleve
from scolarite.services.joins import GradeSummary
from scolarite.utils.filters import filter_by_class, filter_by_text, filter_grades, filter_students


class TestFilters(unittest.TestCase):
    def setUp(self):
        self.eleves = [
            Eleve(id=1, nom='Dupont', prenom='Marie', classe='L1'),
            Eleve(id=2, nom='Martin', prenom='Lucas', classe='L2'),
            Eleve(id=3, nom='Bernard', prenom='Chloé', classe='L1'),
        ]

    def test_all_levels_keep_everything(self):
        for level in ('All', 'Tous', '', None):
            self.assertEqual(len(filter_by_class(self.eleves, level)), 3)

    def test_filter_by_class(self):
        self.assertEqual([eleve.id for eleve in filter_by_class(self.eleves, 'L1')], [1, 3])
        self.assertEqual(filter_by_class(self.eleves, 'M2'), [])

    def test_text_filter_ignores_case(self):
        matches = filter_students(self.eleves, 'All', 'MAR')
        self.assertEqual([eleve.id for eleve in matches], [1, 2])

    def test_class_and_text_combined(self):
        matches = filter_students(self.eleves, 'L1', 'chlo')
        self.assertEqual([eleve.id for eleve in matches], [3])

    def test_blank_text_keeps_everything(self):
        self.assertEqual(len(filter_by_text(self.eleves, '   ', lambda eleve: eleve.nom)), 3)

    def test_grades_match_student_or_subject(self):
        summaries = [
            GradeSummary(grade=None, student_name='Marie Dupont', subject_name='Physique', date_label='-'),
            GradeSummary(grade=None, student_name='Lucas Martin', subject_name='Mathématiques', date_label='-'),
        ]
        self.assertEqual(len(filter_grades(summaries, 'physique')), 1)
        self.assertEqual(len(filter_grades(summaries, 'martin')), 1)
        self.assertEqual(len(filter_grades(summaries, 'ma')), 2)
        self.assertEqual(filter_grades(summaries, 'histoire'), [])


if __name__ == '__main__':
    unittest.main()
