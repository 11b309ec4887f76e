# bachelor_expenses/db.py
import os
import sqlite3

from flask import current_app, g

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), "init_db.sql")


def get_db():
    db = getattr(g, '_database', None)
    if db is None:
        db_path = current_app.config['DB_PATH']
        # ensure directory exists
        os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        db = g._database = sqlite3.connect(db_path, check_same_thread=False)
        db.row_factory = sqlite3.Row
    return db


def close_db(exception=None):
    db = g.pop('_database', None)
    if db is not None:
        db.close()


def query_db(query, args=(), one=False):
    cur = get_db().execute(query, args)
    rv = cur.fetchall()
    cur.close()
    return (rv[0] if rv else None) if one else rv


def execute_db(query, args=()):
    conn = get_db()
    cur = conn.cursor()
    try:
        cur.execute(query, args)
        conn.commit()
        count = cur.rowcount
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        cur.close()
    return count


def execute_many(statements):
    """
    Run several (query, args) pairs in one transaction.
    Either all of them are committed or none are.
    """
    conn = get_db()
    try:
        for query, args in statements:
            conn.execute(query, args)
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise


def next_transaction_id(user_id):
    """Bump and return the per-user transaction counter."""
    conn = get_db()
    conn.execute(
        """INSERT INTO transaction_counters (user_id, value) VALUES (?, 1)
           ON CONFLICT(user_id) DO UPDATE SET value = value + 1""",
        (user_id,)
    )
    row = conn.execute("SELECT value FROM transaction_counters WHERE user_id=?", (user_id,)).fetchone()
    return row['value']


def init_db(db_path):
    """
    Create the schema from init_db.sql next to this module.
    Idempotent (IF NOT EXISTS everywhere) so it is safe at app startup.
    """
    if not os.path.exists(SCHEMA_FILE):
        raise FileNotFoundError(f"init_db.sql not found at expected path: {SCHEMA_FILE}")

    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        with open(SCHEMA_FILE, 'r', encoding='utf-8') as f:
            sql = f.read()
        conn.executescript(sql)
        conn.commit()
    finally:
        conn.close()
