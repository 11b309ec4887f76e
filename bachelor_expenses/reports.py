# bachelor_expenses/reports.py
import logging
import sqlite3

from flask import Blueprint, Response, jsonify, request

from . import balance_engine
from .auth import current_user_id, user_required
from .balance_engine import LedgerState
from .friends import load_friends
from .salary import load_salary
from .settlement import build_settlement
from .transactions import insert_transaction, load_transactions

logger = logging.getLogger("bachelor-expenses")

bp = Blueprint("reports", __name__)

RECENT_TRANSACTIONS = 10


def load_state(user_id):
    return LedgerState(
        transactions=load_transactions(user_id),
        friends=load_friends(user_id),
        salary=load_salary(user_id),
    )


def _money(value):
    return round(float(value), 2)


@bp.route("/summary", methods=["GET"])
@user_required
def summary():
    state = load_state(current_user_id())
    result = balance_engine.compute_summary(state)

    recent = sorted(state.transactions, key=lambda tx: tx.id, reverse=True)[:RECENT_TRANSACTIONS]

    return jsonify({
        "balances": {friend: _money(v) for friend, v in result["balances"].items()},
        "total_spent_by_me": _money(result["total_spent_by_me"]),
        "total_paid_out": _money(result["total_paid_out"]),
        "total_income": _money(result["total_income"]),
        "total_owed_to_me": _money(result["total_owed_to_me"]),
        "total_i_owe": _money(result["total_i_owe"]),
        "net_balance": _money(result["net_balance"]),
        "by_category": [{"category": c, "total": _money(t)} for c, t in result["categories"]],
        "top_categories": [{"category": c, "total": _money(t)} for c, t in result["top_categories"]],
        "timeline": [{"date": d, "amount": _money(a)} for d, a in result["timeline"]],
        "recent_transactions": [tx.to_dict() for tx in recent],
    })


@bp.route("/statement", methods=["GET"])
@user_required
def statement():
    state = load_state(current_user_id())
    frame = balance_engine.monthly_statement_frame(state.transactions, state.salary)

    if request.args.get('format') == 'csv':
        return Response(
            frame.round(2).to_csv(index=False),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=statement.csv"},
        )

    months = [
        {key: (value if key == "month" else _money(value)) for key, value in row.items()}
        for row in frame.to_dict(orient="records")
    ]
    return jsonify({"monthly_statement": months, "salary": state.salary.to_dict()})


@bp.route("/settlements", methods=["GET"])
@user_required
def list_settlements():
    state = load_state(current_user_id())
    balances = balance_engine.compute_balances(state.transactions, state.friends)
    pending = balance_engine.outstanding_settlements(balances)
    for item in pending:
        item["amount"] = _money(item["amount"])
    return jsonify({"settlements": pending, "all_settled": not pending})


@bp.route("/settlements", methods=["POST"])
@user_required
def record_settlement():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    friend = str(data.get('friend') or '').strip()
    if not friend:
        return jsonify({"error": "friend required"}), 400

    state = load_state(user_id)
    balances = balance_engine.compute_balances(state.transactions, state.friends)
    if friend not in balances:
        return jsonify({"error": "Friend not found"}), 404

    balance = _money(balances[friend])
    if balance == 0:
        return jsonify({"error": f"Nothing to settle with {friend}"}), 400

    tx = build_settlement(friend, balance)
    try:
        insert_transaction(user_id, tx)
    except sqlite3.Error as e:
        logger.exception("Settlement insert failed")
        return jsonify({"error": "Database error", "details": str(e)}), 500

    logger.info(f"User {user_id} settled {balance} with {friend} (transaction {tx.id})")
    return jsonify({"settlement": tx.to_dict(), "settled_balance": balance}), 201
