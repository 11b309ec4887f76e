# bachelor_expenses/categories.py
import json
import logging

from flask import Blueprint, jsonify, request

from . import db
from .auth import current_user_id, user_required
from .categorizer import CategorySet, categorize

logger = logging.getLogger("bachelor-expenses")

bp = Blueprint("categories", __name__, url_prefix="/categories")


def load_category_set(user_id):
    """The user's category set; users who never edited it get the default list."""
    row = db.query_db("SELECT names FROM category_sets WHERE user_id=?", (user_id,), one=True)
    if row is None:
        return CategorySet()
    return CategorySet(json.loads(row['names']))


def save_category_set(user_id, categories):
    db.execute_db(
        """INSERT INTO category_sets (user_id, names) VALUES (?, ?)
           ON CONFLICT(user_id) DO UPDATE SET names = excluded.names""",
        (user_id, json.dumps(categories.to_list()))
    )


@bp.route("", methods=["GET"])
@user_required
def list_categories():
    return jsonify(load_category_set(current_user_id()).to_list())


@bp.route("", methods=["POST"])
@user_required
def add_category():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    name = str(data.get('name') or '').strip()
    if not name:
        return jsonify({"error": "Category name required"}), 400

    categories = load_category_set(user_id)
    if not categories.add(name):
        return jsonify({"error": "Category already exists"}), 400

    save_category_set(user_id, categories)
    logger.info(f"User {user_id} added category '{name}'")
    return jsonify({"name": name}), 201


@bp.route("", methods=["DELETE"])
@user_required
def delete_category():
    user_id = current_user_id()
    name = request.args.get('name', '')

    categories = load_category_set(user_id)
    if not categories.remove(name):
        return jsonify({"error": "Category not found"}), 404

    save_category_set(user_id, categories)
    return jsonify({"message": "Category deleted"})


@bp.route("/suggest", methods=["POST"])
@user_required
def suggest_category():
    data = request.get_json(silent=True) or {}
    desc = str(data.get('desc') or data.get('description') or '').strip()
    if not desc:
        return jsonify({"error": "Description required"}), 400

    category, confidence = categorize(desc)
    return jsonify({
        "desc": desc,
        "category": load_category_set(current_user_id()).normalize(category),
        "confidence": confidence,
    })
