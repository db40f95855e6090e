# backend/backoffice/__init__.py
from flask import Flask, jsonify

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401
    # Register approval decision handlers
    from . import services  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.inventory import inventory_bp
    from .routes.procurement import procurement_bp
    from .routes.approvals import approvals_bp
    from .routes.sales import sales_bp
    from .routes.finance import finance_bp
    from .routes.hr import hr_bp
    from .routes.projects import projects_bp
    from .routes.organization import organization_bp
    from .routes.reporting import reporting_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(procurement_bp)
    app.register_blueprint(approvals_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(finance_bp)
    app.register_blueprint(hr_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(organization_bp)
    app.register_blueprint(reporting_bp)

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"ok": False, "error_kind": "NotFound", "message": "Not found", "details": {}}), 404

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
