from datetime import date, datetime

UNKNOWN_SUBJECT = 'Matière inconnue'
NO_SUBJECT = 'Sans matière'
UNKNOWN_STUDENT = 'Élève inconnu'
UNKNOWN_DATE = 'Date inconnue'


def parse_date(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()
    except ValueError:
        return None


def format_date(value, default=UNKNOWN_DATE):
    parsed = parse_date(value)
    if parsed is None:
        return default
    return parsed.strftime('%d/%m/%Y')


def format_valeur(valeur):
    if valeur is None:
        return '-'
    if float(valeur).is_integer():
        return f'{int(valeur)}/20'
    return f'{valeur:g}/20'


def student_name(eleve):
    if eleve is None:
        return UNKNOWN_STUDENT
    return eleve.full_name or UNKNOWN_STUDENT
