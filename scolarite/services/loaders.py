"""Fetch cycles feeding the screens.

The primary list of a screen must load, its failure is the screen's
failure. Related lists and records only decorate it: when one of them
fails it is logged and replaced, so the join layer falls back to its
placeholder labels.
"""
import asyncio
import logging
from dataclasses import dataclass, field

from scolarite.services.api import API_ERRORS
from scolarite.services.joins import (
    summarize_exams, summarize_grades, summarize_subjects,
)

logger = logging.getLogger(__name__)


async def fetch_dependent(coro, what, placeholder=None):
    try:
        return await coro
    except API_ERRORS as e:
        logger.error(f"Failed to fetch {what}: {e}")
        return placeholder


async def fetch_list(coro, what):
    return await fetch_dependent(coro, what, placeholder=[])


async def gather_primary(primary, *dependents):
    results = await asyncio.gather(primary, *dependents, return_exceptions=True)
    if isinstance(results[0], BaseException):
        raise results[0]
    return results


def _present(*records):
    return [record for record in records if record is not None]


async def load_students(api, skip=0, limit=None):
    return await api.eleves.list(skip=skip, limit=limit)


async def load_subjects(api, skip=0, limit=None):
    subjects, exams, grades = await gather_primary(
        api.matieres.list(skip=skip, limit=limit),
        fetch_list(api.examens.list_all(), 'examens'),
        fetch_list(api.notes.list_all(), 'notes'),
    )
    return summarize_subjects(subjects, exams, grades)


async def load_exams(api, skip=0, limit=None):
    exams, subjects, grades = await gather_primary(
        api.examens.list(skip=skip, limit=limit),
        fetch_list(api.matieres.list_all(), 'matieres'),
        fetch_list(api.notes.list_all(), 'notes'),
    )
    return summarize_exams(exams, subjects, grades)


async def load_grades(api, skip=0, limit=None):
    grades, students, exams, subjects = await gather_primary(
        api.notes.list(skip=skip, limit=limit),
        fetch_list(api.eleves.list_all(), 'eleves'),
        fetch_list(api.examens.list_all(), 'examens'),
        fetch_list(api.matieres.list_all(), 'matieres'),
    )
    return summarize_grades(grades, students, exams, subjects)


async def load_grade_report(api):
    grades, students, exams, subjects = await gather_primary(
        api.notes.list_all(),
        fetch_list(api.eleves.list_all(), 'eleves'),
        fetch_list(api.examens.list_all(), 'examens'),
        fetch_list(api.matieres.list_all(), 'matieres'),
    )
    return summarize_grades(grades, students, exams, subjects)


async def load_all_students(api):
    return await api.eleves.list_all()


async def load_student_detail(api, eleve_id):
    return await api.eleves.get(eleve_id)


async def load_subject_detail(api, matiere_id):
    subject, exams, grades = await gather_primary(
        api.matieres.get(matiere_id),
        fetch_list(api.examens.list_all(), 'examens'),
        fetch_list(api.notes.list_all(), 'notes'),
    )
    return summarize_subjects([subject], exams, grades)[0]


async def load_exam_detail(api, examen_id):
    exam = await api.examens.get(examen_id)
    lookups = [fetch_list(api.notes.list_all(), 'notes')]
    if exam.matiere_id:
        lookups.append(fetch_dependent(api.matieres.get(exam.matiere_id), f'matiere {exam.matiere_id}'))
    grades, *subject = await asyncio.gather(*lookups)
    grades = [grade for grade in grades if grade.examen_id == exam.id]
    return summarize_exams([exam], _present(*subject), grades)[0]


async def load_grade_detail(api, note_id):
    grade = await api.notes.get(note_id)
    student, exam = await asyncio.gather(
        fetch_dependent(api.eleves.get(grade.eleve_id), f'eleve {grade.eleve_id}'),
        fetch_dependent(api.examens.get(grade.examen_id), f'examen {grade.examen_id}'),
    )
    subject_id = exam.matiere_id if exam is not None and exam.matiere_id else grade.matiere_id
    subject = None
    if subject_id:
        subject = await fetch_dependent(api.matieres.get(subject_id), f'matiere {subject_id}')
    return summarize_grades([grade], _present(student), _present(exam), _present(subject))[0]


@dataclass
class FormChoices:
    """Options offered by the pickers of a form, as (id, label) pairs."""
    options: dict = field(default_factory=dict)
    exam_subjects: dict = field(default_factory=dict)

    def label(self, name, value):
        for option_id, option_label in self.options.get(name, []):
            if str(option_id) == str(value):
                return option_label
        return None


async def load_form_choices(api, kind, class_options=()):
    choices = FormChoices()
    if kind == 'eleves':
        choices.options['classe'] = [(level, level) for level in class_options]
    elif kind == 'examens':
        subjects = await api.matieres.list_all()
        choices.options['matiere_id'] = [(subject.id, subject.nom) for subject in subjects]
    elif kind == 'notes':
        exams, students, subjects = await gather_primary(
            api.examens.list_all(),
            api.eleves.list_all(),
            fetch_list(api.matieres.list_all(), 'matieres'),
        )
        if isinstance(students, BaseException):
            raise students
        summaries = summarize_exams(exams, subjects)
        choices.options['examen_id'] = [
            (summary.id, f'{summary.subject_name} - {summary.date_label}') for summary in summaries
        ]
        choices.options['eleve_id'] = [(student.id, student.full_name) for student in students]
        choices.exam_subjects = {exam.id: exam.matiere_id for exam in exams}
    return choices


async def load_record(api, kind, item_id):
    return await api.resource(kind).get(item_id)
