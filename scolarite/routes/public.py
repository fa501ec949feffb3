from flask import Blueprint, render_template, current_app

bp = Blueprint('public', __name__)

TABS = [
    ('eleves.index', 'Élèves', 'Liste des élèves par niveau'),
    ('matieres.index', 'Matières', 'Matières, examens et notes associés'),
    ('examens.index', 'Examens', 'Examens et nombre de participants'),
    ('notes.index', 'Notes', 'Notes sur 20 par élève et matière'),
]

@bp.route('/')
def index():
    return render_template('public/index.html', tabs=TABS, api_url=current_app.config['API_URL'])
