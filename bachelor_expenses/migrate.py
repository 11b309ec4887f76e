# bachelor_expenses/migrate.py
import logging

from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from . import db
from .auth import LEGACY_USER_ID

logger = logging.getLogger("bachelor-expenses")

bp = Blueprint("migrate", __name__)


@bp.route("/migrate", methods=["POST"])
@jwt_required()
def migrate_legacy_data():
    """
    Copy everything stored under the pre-accounts namespace into the
    caller's namespace. Transactions, salary and the id counter are
    overwritten when legacy data exists; friends are merged.
    """
    user_id = get_jwt_identity()
    if user_id == LEGACY_USER_ID:
        return jsonify({"error": "Nothing to migrate"}), 400

    tx_count = db.query_db(
        "SELECT COUNT(*) AS count FROM transactions WHERE user_id=?", (LEGACY_USER_ID,), one=True
    )['count']
    friend_count = db.query_db(
        "SELECT COUNT(*) AS count FROM friends WHERE user_id=?", (LEGACY_USER_ID,), one=True
    )['count']
    has_salary = db.query_db("SELECT 1 FROM salary WHERE user_id=?", (LEGACY_USER_ID,), one=True) is not None
    has_counter = db.query_db(
        "SELECT 1 FROM transaction_counters WHERE user_id=?", (LEGACY_USER_ID,), one=True
    ) is not None

    statements = []
    if tx_count:
        statements += [
            ("DELETE FROM transactions WHERE user_id=?", (user_id,)),
            ("""INSERT INTO transactions (user_id, id, date, description, amount, category, paid_by,
                    split_among, split_type, custom_splits)
                SELECT ?, id, date, description, amount, category, paid_by, split_among, split_type, custom_splits
                FROM transactions WHERE user_id=?""", (user_id, LEGACY_USER_ID)),
        ]
    if friend_count:
        statements.append((
            "INSERT OR IGNORE INTO friends (user_id, name) SELECT ?, name FROM friends WHERE user_id=?",
            (user_id, LEGACY_USER_ID)
        ))
    if has_salary:
        statements.append((
            """INSERT OR REPLACE INTO salary (user_id, amount, received_date, previous_balance)
               SELECT ?, amount, received_date, previous_balance FROM salary WHERE user_id=?""",
            (user_id, LEGACY_USER_ID)
        ))
    if has_counter:
        statements.append((
            # the counter only moves forward, otherwise new ids collide with kept ones
            """INSERT INTO transaction_counters (user_id, value)
               SELECT ?, value FROM transaction_counters WHERE user_id=?
               ON CONFLICT(user_id) DO UPDATE SET value = MAX(value, excluded.value)""",
            (user_id, LEGACY_USER_ID)
        ))

    db.execute_many(statements)
    logger.info(f"Migrated legacy data into {user_id}: {tx_count} transactions, {friend_count} friends")

    return jsonify({
        "success": True,
        "message": "Data migrated successfully",
        "migrated": {
            "transactions": tx_count,
            "friends": friend_count,
            "salary": has_salary
        }
    })
