import asyncio
import logging

from flask import Blueprint, render_template, request, flash, redirect, url_for, send_file, current_app

from scolarite.routes import run_cycle, api_action, bind, abort_if_missing, page_args
from scolarite.services.api import API_ERRORS
from scolarite.services.fetch import RemoteList, RemoteItem, ScreenState
from scolarite.services.loaders import load_students, load_student_detail, load_all_students
from scolarite.utils.excel_export import export_students_to_excel
from scolarite.utils.filters import filter_students
from scolarite.utils.forms import validate_create

logger = logging.getLogger(__name__)

bp = Blueprint('eleves', __name__, url_prefix='/eleves')

@bp.route('/')
def index():
    skip, limit = page_args()
    classe = request.args.get('classe', 'All')
    q = request.args.get('q', '')

    screen = run_cycle(RemoteList(bind(load_students, skip=skip, limit=limit),
                                  'Échec du chargement des élèves'))
    eleves = filter_students(screen.data, classe, q)

    return render_template('eleves/index.html',
                           screen=screen,
                           eleves=eleves,
                           classe=classe,
                           q=q,
                           class_options=['All'] + current_app.config['CLASS_OPTIONS'],
                           skip=skip,
                           limit=limit)

@bp.route('/create', methods=['GET', 'POST'])
def create():
    errors = {}
    form = {}

    if request.method == 'POST':
        form = request.form
        payload, errors = validate_create('eleves', form)
        if payload is not None:
            try:
                api_action(lambda api: api.eleves.create(payload))
            except API_ERRORS as e:
                logger.error(f"Failed to create student: {e}")
                flash("Échec de la création de l'élève", 'danger')
            else:
                flash('Élève créé avec succès', 'success')
                return redirect(url_for('eleves.index'))
        errors = errors or {}

    return render_template('eleves/create.html',
                           form=form,
                           errors=errors,
                           class_options=current_app.config['CLASS_OPTIONS'])

@bp.route('/<int:eleve_id>', methods=['GET', 'POST'])
def detail(eleve_id):
    errors = {}
    screen = run_cycle(RemoteItem(bind(load_student_detail, eleve_id),
                                  "Impossible de charger l'élève"))
    abort_if_missing(screen)

    if screen.loaded and (request.method == 'POST' or request.args.get('edit') == '1'):
        screen.begin_edit()

    if request.method == 'POST' and screen.state == ScreenState.EDITING:
        payload, errors = validate_create('eleves', request.form)
        if payload is not None:
            saved = asyncio.run(screen.submit(
                bind(lambda api: api.eleves.update(eleve_id, payload)),
                "Échec de la mise à jour de l'élève"))
            if saved:
                flash('Élève mis à jour avec succès', 'success')
                return redirect(url_for('eleves.detail', eleve_id=eleve_id))
            flash(screen.error, 'danger')
        errors = errors or {}

    return render_template('eleves/detail.html',
                           screen=screen,
                           eleve=screen.data,
                           form=request.form if request.method == 'POST' else {},
                           errors=errors,
                           class_options=current_app.config['CLASS_OPTIONS'])

@bp.route('/<int:eleve_id>/delete', methods=['POST'])
def delete(eleve_id):
    try:
        api_action(lambda api: api.eleves.delete(eleve_id))
    except API_ERRORS as e:
        logger.error(f"Failed to delete student {eleve_id}: {e}")
        flash("Échec de la suppression de l'élève", 'danger')
        return redirect(url_for('eleves.detail', eleve_id=eleve_id))

    flash('Élève supprimé avec succès', 'success')
    return redirect(url_for('eleves.index'))

@bp.route('/export')
def export():
    try:
        students = api_action(load_all_students)
    except API_ERRORS as e:
        logger.error(f"Failed to export students: {e}")
        flash("Échec de l'export des élèves", 'danger')
        return redirect(url_for('eleves.index'))

    classe = request.args.get('classe', 'All')
    q = request.args.get('q', '')
    output = export_students_to_excel(filter_students(students, classe, q))
    return send_file(output,
                     mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
                     as_attachment=True,
                     download_name='eleves.xlsx')
