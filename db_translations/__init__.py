from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
migrate = Migrate()

from db_translations.extension import Translations, get_translator, trans, trans_json  # noqa: E402

translations = Translations()


def create_app(config_name='development', test_config=None):
    app = Flask(__name__, instance_relative_config=True)

    # Config
    from db_translations.config import get_config
    app.config.from_object(get_config(config_name))
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    translations.init_app(app)

    # Create tables with error handling
    with app.app_context():
        from db_translations import models  # noqa: F401
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning(f"Could not create database tables: {e}")

    # Register routes
    from db_translations.routes import register_routes
    register_routes(app)

    # Health check
    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    return app


__all__ = [
    'db',
    'migrate',
    'translations',
    'create_app',
    'Translations',
    'get_translator',
    'trans',
    'trans_json',
]
