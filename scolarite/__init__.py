from flask import Flask, render_template
from config import Config
from scolarite.utils.formatting import format_valeur
import logging

logger = logging.getLogger(__name__)

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    from scolarite.routes import public, eleves, matieres, examens, notes

    app.register_blueprint(public.bp)
    app.register_blueprint(eleves.bp)
    app.register_blueprint(matieres.bp)
    app.register_blueprint(examens.bp)
    app.register_blueprint(notes.bp)

    app.add_template_filter(format_valeur, 'valeur')

    @app.errorhandler(404)
    def not_found(e):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(e):
        logger.error(f"Unhandled error: {e}")
        return render_template('errors/500.html'), 500

    logger.info(f"Web front-end ready, API at {app.config['API_URL']}")
    return app
