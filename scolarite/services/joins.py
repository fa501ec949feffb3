"""Client-side association of independently fetched lists.

Each ``summarize_*`` function builds its lookup tables in one pass over the
related lists, then decorates the primary list in one more pass. A foreign
key that cannot be resolved gets a placeholder label; no record is dropped.
Nothing is memoized, every call starts from the lists it is given.
"""
from collections import defaultdict
from dataclasses import dataclass

from scolarite.utils.formatting import (
    NO_SUBJECT, UNKNOWN_DATE, UNKNOWN_SUBJECT, format_date, student_name,
)


@dataclass
class ExamSummary:
    exam: object
    subject_name: str
    participant_count: int
    date_label: str

    @property
    def id(self):
        return self.exam.id


@dataclass
class SubjectSummary:
    subject: object
    exam_count: int
    grade_count: int

    @property
    def id(self):
        return self.subject.id

    @property
    def name(self):
        return self.subject.nom or UNKNOWN_SUBJECT


@dataclass
class GradeSummary:
    grade: object
    student_name: str
    subject_name: str
    date_label: str

    @property
    def id(self):
        return self.grade.id

    @property
    def valeur(self):
        return self.grade.valeur


def index_by_id(records):
    return {record.id: record for record in records}


def group_by(records, attr):
    groups = defaultdict(list)
    for record in records:
        groups[getattr(record, attr)].append(record)
    return groups


def subject_label(subject_id, subjects_by_id, fallback=None):
    if not subject_id:
        return NO_SUBJECT
    subject = subjects_by_id.get(subject_id) or fallback
    if subject is None or not subject.nom:
        return UNKNOWN_SUBJECT
    return subject.nom


def summarize_exams(exams, subjects=(), grades=()):
    subjects_by_id = index_by_id(subjects)
    grades_by_exam = group_by(grades, 'examen_id')

    return [
        ExamSummary(
            exam=exam,
            subject_name=subject_label(exam.matiere_id, subjects_by_id, exam.matiere),
            participant_count=len(grades_by_exam.get(exam.id) or exam.notes),
            date_label=format_date(exam.date, default='N/A'),
        )
        for exam in exams
    ]


def grade_subject_id(grade, exams_by_id):
    exam = exams_by_id.get(grade.examen_id)
    if exam is not None and exam.matiere_id:
        return exam.matiere_id
    return grade.matiere_id


def summarize_subjects(subjects, exams=(), grades=()):
    exams_by_subject = group_by(exams, 'matiere_id')
    exams_by_id = index_by_id(exams)
    grades_by_subject = defaultdict(list)
    for grade in grades:
        grades_by_subject[grade_subject_id(grade, exams_by_id)].append(grade)

    return [
        SubjectSummary(
            subject=subject,
            exam_count=len(exams_by_subject.get(subject.id) or subject.examens),
            grade_count=len(grades_by_subject.get(subject.id) or subject.notes),
        )
        for subject in subjects
    ]


def summarize_grades(grades, students=(), exams=(), subjects=()):
    students_by_id = index_by_id(students)
    exams_by_id = index_by_id(exams)
    subjects_by_id = index_by_id(subjects)

    summaries = []
    for grade in grades:
        exam = exams_by_id.get(grade.examen_id)
        subject_id = grade_subject_id(grade, exams_by_id)
        summaries.append(GradeSummary(
            grade=grade,
            student_name=student_name(students_by_id.get(grade.eleve_id)),
            subject_name=subject_label(subject_id, subjects_by_id) if subject_id else UNKNOWN_SUBJECT,
            date_label=format_date(exam.date) if exam is not None else UNKNOWN_DATE,
        ))
    return summaries
