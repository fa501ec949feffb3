import asyncio
import logging

from flask import Blueprint, render_template, request, flash, redirect, url_for

from scolarite.routes import run_cycle, api_action, bind, abort_if_missing, page_args
from scolarite.services.api import API_ERRORS
from scolarite.services.fetch import RemoteList, RemoteItem, ScreenState
from scolarite.services.loaders import load_subjects, load_subject_detail
from scolarite.utils.filters import filter_subjects
from scolarite.utils.forms import validate_create

logger = logging.getLogger(__name__)

bp = Blueprint('matieres', __name__, url_prefix='/matieres')

@bp.route('/')
def index():
    skip, limit = page_args()
    q = request.args.get('q', '')

    screen = run_cycle(RemoteList(bind(load_subjects, skip=skip, limit=limit),
                                  'Échec du chargement des matières'))

    return render_template('matieres/index.html',
                           screen=screen,
                           matieres=filter_subjects(screen.data, q),
                           q=q,
                           skip=skip,
                           limit=limit)

@bp.route('/create', methods=['GET', 'POST'])
def create():
    errors = {}
    form = {}

    if request.method == 'POST':
        form = request.form
        payload, errors = validate_create('matieres', form)
        if payload is not None:
            try:
                api_action(lambda api: api.matieres.create(payload))
            except API_ERRORS as e:
                logger.error(f"Failed to create subject: {e}")
                flash('Échec de la création de la matière', 'danger')
            else:
                flash('Matière créée avec succès', 'success')
                return redirect(url_for('matieres.index'))
        errors = errors or {}

    return render_template('matieres/create.html', form=form, errors=errors)

@bp.route('/<int:matiere_id>', methods=['GET', 'POST'])
def detail(matiere_id):
    errors = {}
    screen = run_cycle(RemoteItem(bind(load_subject_detail, matiere_id),
                                  'Impossible de charger la matière'))
    abort_if_missing(screen)

    if screen.loaded and (request.method == 'POST' or request.args.get('edit') == '1'):
        screen.begin_edit()

    if request.method == 'POST' and screen.state == ScreenState.EDITING:
        payload, errors = validate_create('matieres', request.form)
        if payload is not None:
            saved = asyncio.run(screen.submit(
                bind(lambda api: api.matieres.update(matiere_id, payload)),
                'Échec de la mise à jour'))
            if saved:
                flash('Mise à jour réussie', 'success')
                return redirect(url_for('matieres.detail', matiere_id=matiere_id))
            flash(screen.error, 'danger')
        errors = errors or {}

    return render_template('matieres/detail.html',
                           screen=screen,
                           summary=screen.data,
                           form=request.form if request.method == 'POST' else {},
                           errors=errors)

@bp.route('/<int:matiere_id>/delete', methods=['POST'])
def delete(matiere_id):
    try:
        api_action(lambda api: api.matieres.delete(matiere_id))
    except API_ERRORS as e:
        logger.error(f"Failed to delete subject {matiere_id}: {e}")
        flash('Suppression échouée', 'danger')
        return redirect(url_for('matieres.detail', matiere_id=matiere_id))

    flash('Matière supprimée', 'success')
    return redirect(url_for('matieres.index'))
