# bachelor_expenses/auth.py
import logging
import sqlite3
import uuid
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import (
    create_access_token, get_jwt_identity, jwt_required, verify_jwt_in_request
)
from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .models import User

logger = logging.getLogger("bachelor-expenses")

auth_bp = Blueprint("auth", __name__)
password_bp = Blueprint("password", __name__)

# namespace used before accounts existed; see migrate.py
LEGACY_USER_ID = "default_user"
MIN_PASSWORD_LENGTH = 6


# ---------------- Identity ----------------
def user_required(fn):
    """
    Resolve the caller's user id into g.user_id.

    With REQUIRE_AUTH on, a valid bearer token is mandatory. In legacy mode a
    token still wins when present, otherwise the userId query string is used.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if current_app.config.get('REQUIRE_AUTH', True):
            verify_jwt_in_request()
            g.user_id = get_jwt_identity()
        else:
            verify_jwt_in_request(optional=True)
            g.user_id = get_jwt_identity() or request.args.get('userId') or LEGACY_USER_ID
        return fn(*args, **kwargs)
    return wrapper


def current_user_id():
    return g.user_id


def find_user_by_email(email):
    row = db.query_db("SELECT * FROM users WHERE email=?", (email.strip().lower(),), one=True)
    return User.from_row(row) if row else None


def find_user(user_id):
    row = db.query_db("SELECT * FROM users WHERE id=?", (user_id,), one=True)
    return User.from_row(row) if row else None


# ---------------- Endpoints ----------------
@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')
    name = str(data.get('name') or '').strip()

    if not email or not password or not name:
        return jsonify({"error": "Email, password, and name are required"}), 400

    if find_user_by_email(email):
        return jsonify({"error": "User with this email already exists"}), 400

    user = User(f"user_{uuid.uuid4().hex[:16]}", email, name, generate_password_hash(password))
    try:
        db.execute_db(
            "INSERT INTO users (id, email, name, password_hash) VALUES (?,?,?,?)",
            (user.id, user.email, user.name, user.password_hash)
        )
    except sqlite3.IntegrityError:
        return jsonify({"error": "User with this email already exists"}), 400

    user = find_user(user.id)
    logger.info(f"Registered user {user.id}")
    token = create_access_token(identity=user.id)
    return jsonify({"success": True, "token": token, "user": user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    user = find_user_by_email(email)
    if not user or not check_password_hash(user.password_hash, password):
        logger.info("Failed login attempt")
        return jsonify({"error": "Invalid email or password"}), 401

    token = create_access_token(identity=user.id)
    return jsonify({"success": True, "token": token, "user": user.to_dict()})


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    user = find_user(get_jwt_identity())
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"success": True, "user": user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    # tokens are stateless; the client just forgets it
    return jsonify({"success": True, "message": "Logged out"})


ACTIONS = {
    ('register', 'POST'): register,
    ('login', 'POST'): login,
    ('me', 'GET'): me,
    ('logout', 'POST'): logout,
}


@auth_bp.route('', methods=['GET', 'POST'])
def dispatch_action():
    """Older clients call /auth?action=<name> instead of the sub-paths."""
    view = ACTIONS.get((request.args.get('action'), request.method))
    if view is None:
        return jsonify({"error": "Invalid action"}), 404
    return view()


@password_bp.route('/reset-password', methods=['POST'])
def reset_password():
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip()
    new_password = str(data.get('newPassword') or '')

    if not email or not new_password:
        return jsonify({"error": "Email and new password are required"}), 400

    if len(new_password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    user = find_user_by_email(email)
    if not user:
        return jsonify({"error": "User not found with this email"}), 404

    db.execute_db(
        "UPDATE users SET password_hash=? WHERE id=?",
        (generate_password_hash(new_password), user.id)
    )
    logger.info(f"Password reset for user {user.id}")
    return jsonify({"success": True, "message": "Password reset successfully"})
