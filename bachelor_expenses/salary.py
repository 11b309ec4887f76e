# bachelor_expenses/salary.py
import logging
import math
from datetime import date

from flask import Blueprint, jsonify, request

from . import db
from .auth import current_user_id, user_required
from .models import Salary
from .transactions import parse_date

logger = logging.getLogger("bachelor-expenses")

bp = Blueprint("salary", __name__, url_prefix="/salary")


def load_salary(user_id):
    row = db.query_db("SELECT * FROM salary WHERE user_id=?", (user_id,), one=True)
    return Salary.from_row(row)


def _number(value, default=0.0):
    if value is None or value == '':
        return default
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value}")
    return number


@bp.route("", methods=["GET"])
@user_required
def get_salary():
    return jsonify(load_salary(current_user_id()).to_dict())


@bp.route("", methods=["POST", "PUT"])
@user_required
def set_salary():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}

    try:
        amount = _number(data.get('amount'))
        previous_balance = _number(data.get('previousBalance'))
    except (TypeError, ValueError):
        return jsonify({"error": "amount and previousBalance must be numbers"}), 400
    if amount < 0:
        return jsonify({"error": "Salary amount cannot be negative"}), 400

    received = data.get('receivedDate')
    received_date = parse_date(received) if received else date.today()
    if received_date is None:
        return jsonify({"error": "Invalid receivedDate"}), 400

    salary = Salary(amount, received_date.isoformat(), previous_balance)
    db.execute_db(
        """INSERT INTO salary (user_id, amount, received_date, previous_balance) VALUES (?,?,?,?)
           ON CONFLICT(user_id) DO UPDATE SET amount = excluded.amount,
               received_date = excluded.received_date, previous_balance = excluded.previous_balance""",
        (user_id, salary.amount, salary.received_date, salary.previous_balance)
    )
    logger.info(f"User {user_id} set salary {salary.amount}")
    return jsonify(salary.to_dict())


@bp.route("", methods=["DELETE"])
@user_required
def clear_salary():
    db.execute_db("DELETE FROM salary WHERE user_id=?", (current_user_id(),))
    return jsonify({"message": "Salary data cleared"})
