# bachelor_expenses/friends.py
import logging
import sqlite3

from flask import Blueprint, jsonify, request

from . import db
from .auth import current_user_id, user_required
from .models import ME

logger = logging.getLogger("bachelor-expenses")

bp = Blueprint("friends", __name__, url_prefix="/friends")


def load_friends(user_id):
    rows = db.query_db("SELECT name FROM friends WHERE user_id=? ORDER BY rowid", (user_id,))
    return [r['name'] for r in rows]


@bp.route("", methods=["GET"])
@user_required
def list_friends():
    return jsonify(load_friends(current_user_id()))


@bp.route("", methods=["POST"])
@user_required
def add_friend():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    name = str(data.get('name') or '').strip()

    if not name:
        return jsonify({"error": "Friend name required"}), 400
    if name == ME:
        return jsonify({"error": f"'{ME}' is reserved for you"}), 400

    try:
        db.execute_db("INSERT INTO friends (user_id, name) VALUES (?, ?)", (user_id, name))
    except sqlite3.IntegrityError:
        return jsonify({"error": "Friend already exists"}), 400

    logger.info(f"User {user_id} added friend '{name}'")
    return jsonify({"name": name}), 201


@bp.route("", methods=["DELETE"])
@user_required
def delete_friend():
    user_id = current_user_id()
    name = request.args.get('name', '')

    deleted = db.execute_db("DELETE FROM friends WHERE user_id=? AND name=?", (user_id, name))
    if not deleted:
        return jsonify({"error": "Friend not found"}), 404

    logger.info(f"User {user_id} removed friend '{name}'")
    return jsonify({"message": "Friend deleted"})
