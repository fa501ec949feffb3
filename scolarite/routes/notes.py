import asyncio
import logging

from flask import Blueprint, render_template, request, flash, redirect, url_for, send_file

from scolarite.routes import run_cycle, api_action, bind, abort_if_missing, page_args
from scolarite.services.api import API_ERRORS
from scolarite.services.fetch import RemoteList, RemoteItem, ScreenState
from scolarite.services.loaders import (
    FormChoices, load_grades, load_grade_detail, load_grade_report, load_form_choices,
)
from scolarite.utils.excel_export import export_grades_to_excel
from scolarite.utils.filters import filter_grades
from scolarite.utils.forms import validate_create

logger = logging.getLogger(__name__)

bp = Blueprint('notes', __name__, url_prefix='/notes')


def note_choices():
    try:
        return api_action(load_form_choices, 'notes')
    except API_ERRORS as e:
        logger.error(f"Failed to load choices for the grade form: {e}")
        flash('Échec du chargement des données', 'warning')
        return FormChoices()


def note_form(choices, matiere_id=None):
    """Submitted form, with the subject taken from the chosen exam.

    ``matiere_id`` is used when the exam cannot be resolved, such as the
    subject already stored on the grade being edited.
    """
    form = request.form.to_dict()
    if not form.get('matiere_id'):
        examen_id = form.get('examen_id', '')
        if examen_id.isdigit():
            form['matiere_id'] = choices.exam_subjects.get(int(examen_id)) or ''
        if not form.get('matiere_id') and matiere_id:
            form['matiere_id'] = matiere_id
    return form

@bp.route('/')
def index():
    skip, limit = page_args()
    q = request.args.get('q', '')

    screen = run_cycle(RemoteList(bind(load_grades, skip=skip, limit=limit),
                                  'Échec du chargement des notes'))

    return render_template('notes/index.html',
                           screen=screen,
                           notes=filter_grades(screen.data, q),
                           q=q,
                           skip=skip,
                           limit=limit)

@bp.route('/create', methods=['GET', 'POST'])
def create():
    errors = {}
    form = {'valeur': 10}
    choices = note_choices()

    if request.method == 'POST':
        form = note_form(choices)
        payload, errors = validate_create('notes', form)
        if payload is not None:
            try:
                api_action(lambda api: api.notes.create(payload))
            except API_ERRORS as e:
                logger.error(f"Échec de la création de la note: {e}")
                flash('Échec de la création de la note', 'danger')
            else:
                flash('Note créée avec succès', 'success')
                return redirect(url_for('notes.index'))
        errors = errors or {}

    return render_template('notes/create.html', form=form, errors=errors, choices=choices)

@bp.route('/<int:note_id>', methods=['GET', 'POST'])
def detail(note_id):
    errors = {}
    form = {}
    screen = run_cycle(RemoteItem(bind(load_grade_detail, note_id),
                                  'Échec du chargement des détails de la note'))
    abort_if_missing(screen)

    if screen.loaded and (request.method == 'POST' or request.args.get('edit') == '1'):
        screen.begin_edit()

    choices = note_choices() if screen.state == ScreenState.EDITING else FormChoices()

    if request.method == 'POST' and screen.state == ScreenState.EDITING:
        form = note_form(choices, screen.data.grade.matiere_id)
        payload, errors = validate_create('notes', form)
        if payload is not None:
            saved = asyncio.run(screen.submit(
                bind(lambda api: api.notes.update(note_id, payload)),
                'Échec de la mise à jour de la note'))
            if saved:
                flash('Note mise à jour avec succès', 'success')
                return redirect(url_for('notes.detail', note_id=note_id))
            flash(screen.error, 'danger')
        errors = errors or {}

    return render_template('notes/detail.html',
                           screen=screen,
                           summary=screen.data,
                           form=form,
                           errors=errors,
                           choices=choices)

@bp.route('/<int:note_id>/delete', methods=['POST'])
def delete(note_id):
    try:
        api_action(lambda api: api.notes.delete(note_id))
    except API_ERRORS as e:
        logger.error(f"Failed to delete grade {note_id}: {e}")
        flash('Échec de la suppression de la note', 'danger')
        return redirect(url_for('notes.detail', note_id=note_id))

    flash('Note supprimée avec succès', 'success')
    return redirect(url_for('notes.index'))

@bp.route('/export')
def export():
    try:
        summaries = api_action(load_grade_report)
    except API_ERRORS as e:
        logger.error(f"Failed to export grades: {e}")
        flash("Échec de l'export des notes", 'danger')
        return redirect(url_for('notes.index'))

    output = export_grades_to_excel(filter_grades(summaries, request.args.get('q', '')))
    return send_file(output,
                     mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
                     as_attachment=True,
                     download_name='notes.xlsx')
