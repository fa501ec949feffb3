ALL_LEVELS = ('All', 'Tous')


def filter_by_class(students, level):
    if not level or level in ALL_LEVELS:
        return list(students)
    return [student for student in students if student.classe == level]


def filter_by_text(records, text, *getters):
    """Keep records where any getter's value contains ``text``, ignoring case."""
    search = (text or '').strip().lower()
    if not search:
        return list(records)

    matches = []
    for record in records:
        for getter in getters:
            value = getter(record) or ''
            if search in str(value).lower():
                matches.append(record)
                break
    return matches


def filter_students(students, level=None, text=None):
    return filter_by_text(filter_by_class(students, level), text, lambda student: student.full_name)


def filter_subjects(summaries, text=None):
    return filter_by_text(summaries, text, lambda summary: summary.name)


def filter_grades(summaries, text=None):
    return filter_by_text(
        summaries, text,
        lambda summary: summary.student_name,
        lambda summary: summary.subject_name,
    )


def filter_exams(summaries, text=None):
    return filter_by_text(summaries, text, lambda summary: summary.subject_name)
