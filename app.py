from __future__ import annotations
import os
from flask import Flask
from config import config_map
from extensions import db, migrate, cors
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # the table may not exist yet (before alembic upgrade etc.)
        if not inspect(db.engine).has_table("classification"):
            return

        from models import Classification  # local import to avoid cycles
        created = 0
        for c in app.config.get("DEFAULT_CLASSIFICATIONS", []):
            lang = c["language_name"].strip().lower()
            exists = Classification.query.filter_by(
                congregation_id=c["congregation_id"], language_name=lang
            ).first()
            if exists:
                continue
            db.session.add(Classification(
                congregation_id=c["congregation_id"],
                language_name=lang,
                pin_color=c.get("pin_color"),
                pin_image=c.get("pin_image"),
            ))
            created += 1
        if created:
            db.session.commit()

def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp
    from blueprints.aggregates import api_bp as aggregates_api_bp

    # core without prefix -> '/health' at the root
    app.register_blueprint(core_bp)
    app.register_blueprint(aggregates_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest always sets PYTEST_CURRENT_TEST: keep every test on its own in-memory DB
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    # any origin may call the API
    cors.init_app(app, resources={r"/*": {"origins": "*"}})
    register_blueprints(app)
    _seed_from_config(app)
    return app
