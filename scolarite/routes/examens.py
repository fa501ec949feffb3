import asyncio
import logging

from flask import Blueprint, render_template, request, flash, redirect, url_for

from scolarite.routes import run_cycle, api_action, bind, abort_if_missing, page_args
from scolarite.services.api import API_ERRORS
from scolarite.services.fetch import RemoteList, RemoteItem, ScreenState
from scolarite.services.loaders import FormChoices, load_exams, load_exam_detail, load_form_choices
from scolarite.utils.filters import filter_exams
from scolarite.utils.forms import validate_create

logger = logging.getLogger(__name__)

bp = Blueprint('examens', __name__, url_prefix='/examens')


def exam_choices():
    try:
        return api_action(load_form_choices, 'examens')
    except API_ERRORS as e:
        logger.error(f"Failed to load subjects for the exam form: {e}")
        flash('Impossible de charger les matières', 'warning')
        return FormChoices()

@bp.route('/')
def index():
    skip, limit = page_args()
    q = request.args.get('q', '')

    screen = run_cycle(RemoteList(bind(load_exams, skip=skip, limit=limit),
                                  'Échec du chargement des examens'))

    return render_template('examens/index.html',
                           screen=screen,
                           examens=filter_exams(screen.data, q),
                           q=q,
                           skip=skip,
                           limit=limit)

@bp.route('/create', methods=['GET', 'POST'])
def create():
    errors = {}
    form = {}

    if request.method == 'POST':
        form = request.form
        payload, errors = validate_create('examens', form)
        if payload is not None:
            try:
                api_action(lambda api: api.examens.create(payload))
            except API_ERRORS as e:
                logger.error(f"Failed to create exam: {e}")
                flash('Échec de la création', 'danger')
            else:
                flash('Examen créé avec succès', 'success')
                return redirect(url_for('examens.index'))
        errors = errors or {}

    return render_template('examens/create.html',
                           form=form,
                           errors=errors,
                           choices=exam_choices())

@bp.route('/<int:examen_id>', methods=['GET', 'POST'])
def detail(examen_id):
    errors = {}
    screen = run_cycle(RemoteItem(bind(load_exam_detail, examen_id),
                                  "Impossible de charger l'examen"))
    abort_if_missing(screen)

    if screen.loaded and (request.method == 'POST' or request.args.get('edit') == '1'):
        screen.begin_edit()

    if request.method == 'POST' and screen.state == ScreenState.EDITING:
        payload, errors = validate_create('examens', request.form)
        if payload is not None:
            saved = asyncio.run(screen.submit(
                bind(lambda api: api.examens.update(examen_id, payload)),
                "Échec de la mise à jour de l'examen"))
            if saved:
                flash('Examen mis à jour avec succès', 'success')
                return redirect(url_for('examens.detail', examen_id=examen_id))
            flash(screen.error, 'danger')
        errors = errors or {}

    choices = exam_choices() if screen.state == ScreenState.EDITING else FormChoices()

    return render_template('examens/detail.html',
                           screen=screen,
                           summary=screen.data,
                           form=request.form if request.method == 'POST' else {},
                           errors=errors,
                           choices=choices)

@bp.route('/<int:examen_id>/delete', methods=['POST'])
def delete(examen_id):
    try:
        api_action(lambda api: api.examens.delete(examen_id))
    except API_ERRORS as e:
        logger.error(f"Failed to delete exam {examen_id}: {e}")
        flash("Échec de la suppression de l'examen", 'danger')
        return redirect(url_for('examens.detail', examen_id=examen_id))

    flash('Examen supprimé avec succès', 'success')
    return redirect(url_for('examens.index'))
