# bachelor_expenses/app.py

import logging
import os
import sqlite3
from datetime import timedelta

import click
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

from . import auth, categories, db, friends, migrate, reports, salary, transactions
from .balance_engine import DataIntegrityError
from .categorizer import DEFAULT_CATEGORIES

# ---------------- Configuration ----------------
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("bachelor-expenses")

DB_PATH = os.environ.get("DB_PATH", os.path.join(os.path.dirname(__file__), "..", "data", "expenses.db"))
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_ROWS_PER_UPLOAD = 5000


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


def _error(message, status):
    return jsonify({"error": message}), status


# ---------------- Flask App Factory ----------------
def create_app(config=None):
    app = Flask(__name__)

    app.config.update(
        JWT_SECRET_KEY=os.environ.get('JWT_SECRET_KEY', "dev-key-change-in-production"),
        JWT_ACCESS_TOKEN_EXPIRES=timedelta(days=int(os.environ.get('JWT_EXPIRES_DAYS', 7))),
        CORS_ORIGINS=os.environ.get('CORS_ORIGINS', '*'),
        DB_PATH=DB_PATH,
        REQUIRE_AUTH=_env_flag('REQUIRE_AUTH', 'true'),
        MAX_UPLOAD_BYTES=MAX_UPLOAD_BYTES,
        MAX_ROWS_PER_UPLOAD=MAX_ROWS_PER_UPLOAD,
    )
    if config:
        app.config.update(config)

    # JWT
    jwt = JWTManager(app)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error("Unauthorized - Please log in", 401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _error(f"Invalid token: {reason}", 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error("Token has expired", 401)

    # CORS
    origins = [o.strip() for o in app.config['CORS_ORIGINS'].split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=origins != ['*'])

    # Blueprints
    app.register_blueprint(auth.auth_bp, url_prefix='/auth')
    app.register_blueprint(auth.password_bp)
    app.register_blueprint(transactions.bp)
    app.register_blueprint(friends.bp)
    app.register_blueprint(salary.bp)
    app.register_blueprint(categories.bp)
    app.register_blueprint(reports.bp)
    app.register_blueprint(migrate.bp)

    # Initialize DB
    db.init_db(app.config['DB_PATH'])
    logger.info(f"Database initialized at {app.config['DB_PATH']}")

    app.teardown_appcontext(db.close_db)

    # ---------------- Error handlers ----------------
    @app.errorhandler(HTTPException)
    def http_error(e):
        return _error(e.description or e.name, e.code)

    @app.errorhandler(sqlite3.Error)
    def database_error(e):
        logger.exception("Database error")
        return jsonify({"error": "Database error", "details": str(e)}), 500

    @app.errorhandler(DataIntegrityError)
    def integrity_error(e):
        logger.error(f"Stored data failed integrity check: {e}")
        return jsonify({"error": "Data integrity error", "details": str(e)}), 500

    # ---------------- Core Endpoints ----------------
    @app.route('/')
    def root():
        return jsonify({"msg": "Bachelor expenses backend root"})

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})

    @app.route('/categories/defaults')
    def default_categories():
        return jsonify({"categories": DEFAULT_CATEGORIES})

    @app.cli.command("init-db")
    def init_db_command():
        """Create the sqlite schema."""
        db.init_db(app.config['DB_PATH'])
        click.echo(f"Database initialized at {app.config['DB_PATH']}")

    return app


# ---------------- Run ----------------
if __name__ == '__main__':
    app = create_app()
    debug_mode = os.environ.get('FLASK_DEBUG', '').lower() in ('1', 'true', 'yes', 'on')
    app.run(debug=debug_mode, host='0.0.0.0', port=5000)
