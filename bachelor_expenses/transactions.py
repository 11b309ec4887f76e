# bachelor_expenses/transactions.py

import csv
import io
import json
import logging
import math
import re
import sqlite3
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from . import db
from .auth import current_user_id, user_required
from .categories import load_category_set
from .categorizer import categorize
from .models import ME, SPLIT_CUSTOM, SPLIT_EQUAL, Transaction

logger = logging.getLogger("bachelor-expenses")

bp = Blueprint("transactions", __name__, url_prefix="/transactions")

DATE_FORMATS = ["%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d", "%d/%m/%Y"]
MAX_AMOUNT = 10000000  # 1 crore
SPLIT_SEPARATORS = re.compile(r"[;|,]")
CURRENCY_PREFIX = re.compile(r"^\s*([+-]?)\s*[₹$€£]")
DECIMAL_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")

INSERT_SQL = (
    "INSERT INTO transactions (user_id, id, date, description, amount, category, paid_by, "
    "split_among, split_type, custom_splits) VALUES (?,?,?,?,?,?,?,?,?,?)"
)


# ---------------- Helpers ----------------
def parse_date(s):
    """Try multiple date formats"""
    if not s:
        return None
    s = str(s).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value):
    """Accept a number or a plain decimal string; a leading currency symbol, spaces and commas are dropped."""
    if isinstance(value, bool):
        return None, "Invalid amount format"
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        amount_str = CURRENCY_PREFIX.sub(r"\1", str(value if value is not None else ""), count=1)
        amount_str = re.sub(r'[\s,]', '', amount_str)
        if not DECIMAL_RE.fullmatch(amount_str):
            return None, "Invalid amount format"
        amount = float(amount_str)
    if not math.isfinite(amount):
        return None, "Amount must be a finite number"
    if abs(amount) > MAX_AMOUNT:
        return None, f"Amount too large: {amount}"
    if amount == 0:
        return None, "Amount cannot be zero"
    return amount, None


def parse_participants(value):
    if isinstance(value, str):
        value = SPLIT_SEPARATORS.split(value)
    if not isinstance(value, (list, tuple)):
        return None
    participants = []
    for name in value:
        name = str(name).strip()
        if name and name not in participants:
            participants.append(name)
    return participants


def parse_custom_splits(value, split_among, amount):
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return None, "customSplits must be a JSON object"
    if not isinstance(value, dict) or not value:
        return None, "customSplits required when splitType is custom"

    splits = {}
    for person, raw in value.items():
        if person not in split_among:
            return None, f"customSplits names '{person}' who is not in splitAmong"
        try:
            share = float(raw)
        except (TypeError, ValueError):
            return None, f"Invalid custom share for '{person}'"
        if not math.isfinite(share) or share < 0:
            return None, f"Invalid custom share for '{person}'"
        splits[person] = share

    if abs(sum(splits.values()) - abs(amount)) > 0.01:
        logger.warning(f"Custom splits sum to {sum(splits.values())}, transaction amount is {abs(amount)}")
    return splits, None


def handle_transaction_data(data, categories):
    """Validate one incoming transaction (JSON body or CSV row)."""
    date_val = parse_date(data.get('date'))
    if not date_val:
        return None, "Invalid or missing date"

    amount, error = parse_amount(data.get('amount'))
    if error:
        return None, error

    desc = str(data.get('desc') or data.get('description') or '').strip()[:1000]
    paid_by = str(data.get('paidBy') or ME).strip()

    split_among = parse_participants(data.get('splitAmong', [ME]))
    if not split_among:
        return None, "splitAmong must list at least one participant"

    split_type = str(data.get('splitType') or SPLIT_EQUAL).strip().lower()
    if split_type not in (SPLIT_EQUAL, SPLIT_CUSTOM):
        return None, "splitType must be 'equal' or 'custom'"

    custom_splits = None
    if split_type == SPLIT_CUSTOM:
        custom_splits, error = parse_custom_splits(data.get('customSplits'), split_among, amount)
        if error:
            return None, error

    category = str(data.get('category') or '').strip()
    if not category:
        category, _ = categorize(desc)

    return Transaction(
        id=None,
        date=date_val.isoformat(),
        desc=desc,
        amount=amount,
        category=categories.normalize(category),
        paid_by=paid_by,
        split_among=split_among,
        split_type=split_type,
        custom_splits=custom_splits,
    ), None


def load_transactions(user_id):
    rows = db.query_db(
        "SELECT * FROM transactions WHERE user_id=? ORDER BY date DESC, id DESC",
        (user_id,)
    )
    return [Transaction.from_row(r) for r in rows]


def insert_transaction(user_id, tx):
    """Assign the next per-user id and store the transaction."""
    conn = db.get_db()
    try:
        tx.id = db.next_transaction_id(user_id)
        conn.execute(INSERT_SQL, tx.to_row(user_id))
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    return tx


# ---------------- Endpoints ----------------
@bp.route("", methods=["GET"])
@user_required
def list_transactions():
    return jsonify([tx.to_dict() for tx in load_transactions(current_user_id())])


@bp.route("", methods=["POST"])
@user_required
def add_transaction():
    user_id = current_user_id()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON body required"}), 400

    tx, error = handle_transaction_data(data, load_category_set(user_id))
    if error:
        return jsonify({"error": error}), 400

    try:
        insert_transaction(user_id, tx)
    except sqlite3.Error as e:
        logger.exception("DB insert failed")
        return jsonify({"error": "Database error", "details": str(e)}), 500

    logger.info(f"User {user_id} added transaction {tx.id} ({tx.amount} {tx.category})")
    return jsonify(tx.to_dict()), 201


@bp.route("", methods=["DELETE"])
@bp.route("/<int:tx_id>", methods=["DELETE"])
@user_required
def delete_transaction(tx_id=None):
    user_id = current_user_id()
    if tx_id is None:
        try:
            tx_id = int(request.args.get('id', ''))
        except ValueError:
            return jsonify({"error": "Transaction id required"}), 400

    deleted = db.execute_db("DELETE FROM transactions WHERE user_id=? AND id=?", (user_id, tx_id))
    if not deleted:
        return jsonify({"error": "Transaction not found"}), 404

    logger.info(f"User {user_id} deleted transaction {tx_id}")
    return jsonify({"message": "Transaction deleted"})


@bp.route("/bulk", methods=["POST"])
@user_required
def upload_csv():
    user_id = current_user_id()
    if 'file' not in request.files:
        return jsonify({"error": "file required"}), 400

    file = request.files['file']
    raw = file.read()
    if not raw or len(raw) > current_app.config['MAX_UPLOAD_BYTES']:
        return jsonify({"error": "Empty file or too large"}), 400

    content = None
    for enc in ("utf-8-sig", "latin-1"):
        try:
            content = raw.decode(enc)
            break
        except UnicodeDecodeError:
            continue
    if not content:
        return jsonify({"error": "Could not decode file"}), 400

    categories = load_category_set(user_id)
    reader = csv.DictReader(io.StringIO(content))
    max_rows = current_app.config['MAX_ROWS_PER_UPLOAD']
    inserted, errors = 0, []

    for i, row in enumerate(reader, start=1):
        if inserted >= max_rows:
            break

        tx, error = handle_transaction_data(row, categories)
        if error:
            errors.append({"row": i, "reason": error})
            continue

        try:
            insert_transaction(user_id, tx)
            inserted += 1
        except sqlite3.Error as e:
            errors.append({"row": i, "reason": "db error", "error": str(e)})

    logger.info(f"User {user_id} bulk upload: {inserted} inserted, {len(errors)} rejected")
    return jsonify({
        "msg": "uploaded",
        "filename": secure_filename(file.filename or "upload.csv"),
        "inserted": inserted,
        "errors": errors
    })
