"""Messages and keyboards of the Telegram front-end.

Everything here is pure: it turns screen state into ``(text, markup)``
pairs that the handlers in ``bot.py`` send or edit in place.
"""
from dataclasses import dataclass, field
from html import escape
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, KeyboardButton, ReplyKeyboardMarkup

from scolarite.services.api import get_setting, with_api
from scolarite.services.fetch import RemoteList
from scolarite.services.loaders import load_exams, load_grades, load_students, load_subjects
from scolarite.utils.filters import filter_exams, filter_grades, filter_students, filter_subjects
from scolarite.utils.formatting import format_date, format_valeur

KINDS = ('eleves', 'matieres', 'examens', 'notes')

MENU_BUTTONS = {
    '👨‍🎓 Élèves': 'eleves',
    '📚 Matières': 'matieres',
    '📝 Examens': 'examens',
    '🎯 Notes': 'notes',
}

TITLES = {
    'eleves': '👨‍🎓 Élèves',
    'matieres': '📚 Matières',
    'examens': '📝 Examens',
    'notes': '🎯 Notes',
}

EMPTY_MESSAGES = {
    'eleves': 'Aucun élève trouvé',
    'matieres': 'Aucune matière trouvée',
    'examens': 'Aucun examen trouvé',
    'notes': 'Aucune note trouvée',
}

LIST_ERRORS = {
    'eleves': 'Échec du chargement des élèves',
    'matieres': 'Échec du chargement des matières',
    'examens': 'Échec du chargement des examens',
    'notes': 'Échec du chargement des notes',
}

LIST_LOADERS = {
    'eleves': load_students,
    'matieres': load_subjects,
    'examens': load_exams,
    'notes': load_grades,
}

DELETE_PROMPTS = {
    'eleves': 'Voulez-vous vraiment supprimer cet élève ?',
    'matieres': 'Voulez-vous vraiment supprimer cette matière ?\n'
                'Les examens et notes associés seront également supprimés.',
    'examens': 'Voulez-vous vraiment supprimer cet examen ?\n'
               'Toutes les notes associées seront également supprimées.',
    'notes': 'Voulez-vous vraiment supprimer cette note ?',
}

DELETED_MESSAGES = {
    'eleves': 'Élève supprimé avec succès',
    'matieres': 'Matière supprimée',
    'examens': 'Examen supprimé avec succès',
    'notes': 'Note supprimée avec succès',
}

DELETE_ERRORS = {
    'eleves': "Échec de la suppression de l'élève",
    'matieres': 'Suppression échouée',
    'examens': "Échec de la suppression de l'examen",
    'notes': 'Échec de la suppression de la note',
}

DETAIL_ERRORS = {
    'eleves': "Impossible de charger l'élève",
    'matieres': 'Impossible de charger la matière',
    'examens': "Impossible de charger l'examen",
    'notes': 'Échec du chargement des détails de la note',
}

SUBMIT_ERRORS = {
    ('eleves', 'create'): "Échec de la création de l'élève",
    ('eleves', 'edit'): "Échec de la mise à jour de l'élève",
    ('matieres', 'create'): 'Échec de la création de la matière',
    ('matieres', 'edit'): 'Échec de la mise à jour',
    ('examens', 'create'): 'Échec de la création',
    ('examens', 'edit'): "Échec de la mise à jour de l'examen",
    ('notes', 'create'): 'Échec de la création de la note',
    ('notes', 'edit'): 'Échec de la mise à jour de la note',
}

SAVED_MESSAGES = {
    ('eleves', 'create'): 'Élève créé avec succès',
    ('eleves', 'edit'): 'Élève mis à jour avec succès',
    ('matieres', 'create'): 'Matière créée avec succès',
    ('matieres', 'edit'): 'Mise à jour réussie',
    ('examens', 'create'): 'Examen créé avec succès',
    ('examens', 'edit'): 'Examen mis à jour avec succès',
    ('notes', 'create'): 'Note créée avec succès',
    ('notes', 'edit'): 'Note mise à jour avec succès',
}

PICKER_PAGE_SIZE = 20


def main_menu_markup():
    keyboard = [
        [KeyboardButton('👨‍🎓 Élèves'), KeyboardButton('📚 Matières')],
        [KeyboardButton('📝 Examens'), KeyboardButton('🎯 Notes')],
        [KeyboardButton('ℹ️ Aide')],
    ]
    return ReplyKeyboardMarkup(keyboard, resize_keyboard=True)


class ListScreen:
    """One list tab of a chat: its fetch state, page and filters."""

    def __init__(self, kind, config):
        self.kind = kind
        self.config = config
        self.skip = 0
        self.limit = get_setting(config, 'API_DEFAULT_LIMIT', 20)
        self.level = 'All'
        self.text = ''
        self.remote = RemoteList(self.fetch, LIST_ERRORS[kind])

    async def fetch(self):
        return await with_api(self.config, LIST_LOADERS[self.kind], skip=self.skip, limit=self.limit)()

    def visible(self):
        records = self.remote.data
        if self.kind == 'eleves':
            return filter_students(records, self.level, self.text)
        if self.kind == 'matieres':
            return filter_subjects(records, self.text)
        if self.kind == 'examens':
            return filter_exams(records, self.text)
        return filter_grades(records, self.text)

    def class_options(self):
        return ['All'] + list(get_setting(self.config, 'CLASS_OPTIONS', []))


def item_label(kind, record):
    if kind == 'eleves':
        return f'{record.full_name} ({record.classe})'
    if kind == 'matieres':
        return f'{record.name} · {record.exam_count} examens · {record.grade_count} notes'
    if kind == 'examens':
        return f'{record.subject_name} · {record.date_label} · {record.participant_count} participants'
    return f'{record.student_name} · {record.subject_name} · {format_valeur(record.valeur)}'


def loading_view(kind):
    return f'⏳ {TITLES[kind]} : chargement…', None


def error_view(error, retry_data):
    keyboard = [
        [InlineKeyboardButton('🔄 Réessayer', callback_data=retry_data)],
        [InlineKeyboardButton('🏠 Menu', callback_data='menu')],
    ]
    return f'❌ {escape(error)}', InlineKeyboardMarkup(keyboard)


def list_view(screen):
    if screen.remote.error:
        return error_view(screen.remote.error, f'refresh:{screen.kind}')

    records = screen.visible()
    page = screen.skip // screen.limit + 1 if screen.limit else 1
    lines = [f'<b>{TITLES[screen.kind]}</b> (page {page})']

    filters = []
    if screen.kind == 'eleves' and screen.level not in ('All', 'Tous'):
        filters.append(f'niveau {escape(screen.level)}')
    if screen.text:
        filters.append(f'texte « {escape(screen.text)} »')
    if filters:
        lines.append('Filtre : ' + ', '.join(filters))

    if not records:
        empty = EMPTY_MESSAGES[screen.kind]
        if screen.kind == 'eleves' and screen.level not in ('All', 'Tous'):
            empty += f' en {escape(screen.level)}'
        lines.append('')
        lines.append(empty)

    keyboard = [
        [InlineKeyboardButton(item_label(screen.kind, record)[:60],
                              callback_data=f'show:{screen.kind}:{record.id}')]
        for record in records
    ]

    if screen.kind == 'eleves':
        keyboard.append([
            InlineKeyboardButton(('• ' if level == screen.level else '') + level,
                                 callback_data=f'class:{level}')
            for level in screen.class_options()
        ])

    nav = []
    if screen.skip > 0:
        nav.append(InlineKeyboardButton('◀️', callback_data=f'list:{screen.kind}:{max(screen.skip - screen.limit, 0)}'))
    if len(screen.remote.data) >= screen.limit:
        nav.append(InlineKeyboardButton('▶️', callback_data=f'list:{screen.kind}:{screen.skip + screen.limit}'))
    if nav:
        keyboard.append(nav)

    keyboard.append([
        InlineKeyboardButton('🔄 Actualiser', callback_data=f'refresh:{screen.kind}'),
        InlineKeyboardButton('➕ Ajouter', callback_data=f'create:{screen.kind}'),
    ])
    return '\n'.join(lines), InlineKeyboardMarkup(keyboard)


def detail_text(kind, record):
    if kind == 'eleves':
        lines = [
            f'👨‍🎓 <b>{escape(record.full_name)}</b>',
            f'Niveau : {escape(record.classe)}',
        ]
        if record.created_at:
            lines.append(f'Inscrit le : {format_date(record.created_at)}')
        return '\n'.join(lines)
    if kind == 'matieres':
        return (f'📚 <b>{escape(record.name)}</b>\n'
                f'{record.exam_count} examens\n'
                f'{record.grade_count} notes')
    if kind == 'examens':
        return (f'📝 <b>{escape(record.subject_name)}</b>\n'
                f'Date : {record.date_label}\n'
                f'{record.participant_count} participants')
    return (f'🎯 <b>{escape(record.student_name)}</b>\n'
            f'{escape(record.subject_name)} - {format_valeur(record.valeur)}\n'
            f'Date : {record.date_label}')


def detail_view(kind, remote, item_id, back_skip=0):
    if remote.error:
        return error_view(remote.error, f'show:{kind}:{item_id}')

    record = remote.data
    keyboard = [
        [
            InlineKeyboardButton('✏️ Modifier', callback_data=f'edit:{kind}:{record.id}'),
            InlineKeyboardButton('🗑 Supprimer', callback_data=f'del:{kind}:{record.id}'),
        ],
        [InlineKeyboardButton('⬅️ Retour', callback_data=f'list:{kind}:{back_skip}')],
    ]
    return detail_text(kind, record), InlineKeyboardMarkup(keyboard)


def delete_confirm_view(kind, item_id):
    keyboard = [[
        InlineKeyboardButton('✅ Confirmer', callback_data=f'delok:{kind}:{item_id}'),
        InlineKeyboardButton('❌ Annuler', callback_data=f'show:{kind}:{item_id}'),
    ]]
    return f'⚠️ {DELETE_PROMPTS[kind]}', InlineKeyboardMarkup(keyboard)


@dataclass
class FormField:
    name: str
    label: str
    picker: Optional[str] = None
    hint: str = ''


FORM_FIELDS = {
    'eleves': [
        FormField('nom', 'Nom'),
        FormField('prenom', 'Prénom'),
        FormField('classe', 'Classe', picker='classe'),
    ],
    'matieres': [
        FormField('nom', 'Nom de la matière'),
    ],
    'examens': [
        FormField('matiere_id', 'Matière', picker='matiere_id'),
        FormField('date', 'Date', hint='format AAAA-MM-JJ'),
    ],
    'notes': [
        FormField('examen_id', 'Examen', picker='examen_id'),
        FormField('eleve_id', 'Élève', picker='eleve_id'),
        FormField('valeur', 'Note', hint='entre 0 et 20'),
    ],
}


@dataclass
class FormSession:
    """A create or edit form being filled in, one field per message."""
    kind: str
    mode: str = 'create'
    item_id: Optional[int] = None
    values: dict = field(default_factory=dict)
    current: dict = field(default_factory=dict)
    choices: object = None
    screen: object = None
    index: int = 0
    page: int = 0

    @property
    def fields(self):
        return FORM_FIELDS[self.kind]

    @property
    def field(self):
        return self.fields[self.index]

    @property
    def finished(self):
        return self.index >= len(self.fields)

    def next_field(self):
        self.index += 1
        self.page = 0

    def options(self, form_field):
        if self.choices is None or not form_field.picker:
            return []
        return self.choices.options.get(form_field.picker, [])

    def page_count(self, form_field):
        return max((len(self.options(form_field)) + PICKER_PAGE_SIZE - 1) // PICKER_PAGE_SIZE, 1)

    def go_to_page(self, page):
        self.page = min(max(page, 0), self.page_count(self.field) - 1)

    def page_options(self, form_field):
        """Options of the current page, with their position in the full list."""
        start = self.page * PICKER_PAGE_SIZE
        options = self.options(form_field)[start:start + PICKER_PAGE_SIZE]
        return list(enumerate(options, start))

    def match_option(self, form_field, text):
        """Resolve a typed answer on a picker step to an option id.

        Returns ``(value, error)``; an id or a full label wins over a
        partial label, which must then be unambiguous.
        """
        search = (text or '').strip().lower()
        if not search:
            return None, 'Choisissez une option ci-dessous'

        options = self.options(form_field)
        for option_id, option_label in options:
            if search == str(option_id).lower() or search == str(option_label).lower():
                return option_id, None

        matches = [option_id for option_id, option_label in options if search in str(option_label).lower()]
        if len(matches) == 1:
            return matches[0], None
        if matches:
            return None, f'Plusieurs choix correspondent à « {text.strip()} », précisez'
        return None, f'Aucun choix ne correspond à « {text.strip()} »'

    def set_value(self, name, value):
        self.values[name] = value
        if self.kind == 'notes' and name == 'examen_id' and self.choices is not None:
            matiere_id = self.choices.exam_subjects.get(value)
            if matiere_id:
                self.values['matiere_id'] = matiere_id

    def display_value(self, form_field, value):
        if value is None:
            return '-'
        if form_field.picker and self.choices is not None:
            label = self.choices.label(form_field.picker, value)
            if label:
                return label
        if form_field.name == 'valeur':
            return format_valeur(value)
        return str(value)


def field_prompt_view(session, error=None):
    form_field = session.field
    title = 'Nouvel enregistrement' if session.mode == 'create' else 'Modification'
    lines = [f'<b>{TITLES[session.kind]} · {title}</b>']
    if error:
        lines.append(f'❌ {escape(error)}')

    current = session.current.get(form_field.name)
    if session.mode == 'edit' and current is not None:
        lines.append(f'Valeur actuelle : {escape(session.display_value(form_field, current))}')

    keyboard = []
    if form_field.picker:
        lines.append(f'Choisissez : {form_field.label} (ou saisissez son nom)')
        if not session.options(form_field):
            lines.append('Aucun choix disponible.')
        row = []
        for position, (_, option_label) in session.page_options(form_field):
            row.append(InlineKeyboardButton(str(option_label)[:40], callback_data=f'pick:{position}'))
            if len(row) == 2:
                keyboard.append(row)
                row = []
        if row:
            keyboard.append(row)

        pages = session.page_count(form_field)
        if pages > 1:
            lines.append(f'Page {session.page + 1}/{pages}')
            nav = []
            if session.page > 0:
                nav.append(InlineKeyboardButton('◀️', callback_data=f'page:{session.page - 1}'))
            if session.page < pages - 1:
                nav.append(InlineKeyboardButton('▶️', callback_data=f'page:{session.page + 1}'))
            keyboard.append(nav)
    else:
        hint = f' ({form_field.hint})' if form_field.hint else ''
        lines.append(f'Saisissez : {form_field.label}{hint}')

    footer = []
    if session.mode == 'edit':
        footer.append(InlineKeyboardButton('⏭ Garder', callback_data='keep'))
    footer.append(InlineKeyboardButton('❌ Annuler', callback_data='form:cancel'))
    keyboard.append(footer)
    return '\n'.join(lines), InlineKeyboardMarkup(keyboard)


def form_summary_view(session, error=None):
    lines = [f'<b>{TITLES[session.kind]} · Récapitulatif</b>']
    for form_field in session.fields:
        value = session.values.get(form_field.name, session.current.get(form_field.name))
        lines.append(f'{form_field.label} : {escape(session.display_value(form_field, value))}')
    if error:
        lines.append('')
        lines.append(f'❌ {escape(error)}')

    submit_label = '🔄 Réessayer' if error else '✅ Enregistrer'
    keyboard = [[
        InlineKeyboardButton(submit_label, callback_data='form:submit'),
        InlineKeyboardButton('❌ Annuler', callback_data='form:cancel'),
    ]]
    return '\n'.join(lines), InlineKeyboardMarkup(keyboard)
