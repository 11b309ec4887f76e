# bachelor_expenses/balance_engine.py
"""
Balance engine.

Every dashboard number is derived here from the raw transaction, friend and
salary records. The functions are pure: nothing is cached, callers simply
recompute whenever the records change.

Sign conventions:
- transaction amount < 0 is an expense, > 0 is income
- balance > 0 means the friend owes me, < 0 means I owe the friend
"""

import logging
import math

import pandas as pd

from .models import ME, SPLIT_CUSTOM, Salary

logger = logging.getLogger("bachelor-expenses")

TIMELINE_DAYS = 30
TOP_CATEGORIES = 5
SETTLED_THRESHOLD = 1.0

STATEMENT_COLUMNS = [
    "month", "starting_balance", "salary", "income", "expenses",
    "my_expense_share", "ending_balance", "savings",
]


class DataIntegrityError(ValueError):
    """A stored transaction cannot be aggregated (empty split, NaN amount...)."""


class LedgerState:
    """Everything the engine needs for one user, already loaded in memory."""

    def __init__(self, transactions=None, friends=None, salary=None):
        self.transactions = list(transactions or [])
        self.friends = list(friends or [])
        self.salary = salary if salary is not None else Salary()


def check_transaction(tx):
    if not tx.split_among:
        raise DataIntegrityError(f"Transaction {tx.id} has no participants in splitAmong")
    if not math.isfinite(tx.amount):
        raise DataIntegrityError(f"Transaction {tx.id} has a non-finite amount: {tx.amount}")


def share(tx, person=ME):
    """One participant's portion of a transaction."""
    check_transaction(tx)
    if tx.split_type == SPLIT_CUSTOM:
        return float((tx.custom_splits or {}).get(person, 0.0))
    return abs(tx.amount) / len(tx.split_among)


def my_share(tx):
    """My share, or 0 when I'm not part of the split."""
    return share(tx, ME) if ME in tx.split_among else 0.0


def compute_balances(transactions, friends):
    balances = {name: 0.0 for name in friends}

    for tx in transactions:
        check_transaction(tx)
        # income never moves money between people
        if not tx.is_expense:
            continue

        if tx.paid_by == ME:
            for person in tx.split_among:
                if person == ME:
                    continue
                balances[person] = balances.get(person, 0.0) + share(tx, person)
        elif ME in tx.split_among:
            balances[tx.paid_by] = balances.get(tx.paid_by, 0.0) - share(tx, ME)

    return balances


def compute_totals(transactions, balances, salary):
    total_spent_by_me = 0.0
    total_paid_out = 0.0
    total_income = 0.0

    for tx in transactions:
        check_transaction(tx)
        if tx.is_expense:
            total_spent_by_me += my_share(tx)
            if tx.paid_by == ME:
                total_paid_out += abs(tx.amount)
        elif tx.is_income:
            total_income += my_share(tx)

    total_owed_to_me = sum(v for v in balances.values() if v > 0)
    total_i_owe = sum(-v for v in balances.values() if v < 0)

    # friend debts stay out of the cash estimate until a settlement is recorded
    net_balance = salary.previous_balance + salary.amount + total_income - total_paid_out

    return {
        "total_spent_by_me": total_spent_by_me,
        "total_paid_out": total_paid_out,
        "total_income": total_income,
        "total_owed_to_me": total_owed_to_me,
        "total_i_owe": total_i_owe,
        "net_balance": net_balance,
    }


def _my_expense_totals(transactions, key):
    totals = {}
    for tx in transactions:
        check_transaction(tx)
        if tx.is_expense and ME in tx.split_among:
            k = key(tx)
            totals[k] = totals.get(k, 0.0) + share(tx, ME)
    return totals


def category_breakdown(transactions):
    """[(category, my total)] highest first, zero totals dropped."""
    totals = _my_expense_totals(transactions, lambda tx: tx.category)
    items = [(cat, total) for cat, total in totals.items() if total != 0]
    return sorted(items, key=lambda item: item[1], reverse=True)


def top_categories(transactions, limit=TOP_CATEGORIES):
    return category_breakdown(transactions)[:limit]


def spending_timeline(transactions, days=TIMELINE_DAYS):
    """[(date, my total)] for the most recent `days` dates that have spending, oldest first."""
    totals = _my_expense_totals(transactions, lambda tx: tx.date)
    recent = sorted(totals)[-days:] if days > 0 else []
    return [(d, totals[d]) for d in recent]


def monthly_statement_frame(transactions, salary):
    """
    Month-by-month running balance as a DataFrame (one row per YYYY-MM).

    ending_balance = starting_balance + salary + income - expenses, and each
    month starts where the previous one ended. The first month starts at the
    salary record's previous_balance.
    """
    rows = []
    for tx in transactions:
        check_transaction(tx)
        rows.append({
            "month": tx.month,
            "income": my_share(tx) if tx.is_income else 0.0,
            "expenses": abs(tx.amount) if tx.is_expense and tx.paid_by == ME else 0.0,
            "my_expense_share": my_share(tx) if tx.is_expense else 0.0,
        })

    if not rows:
        return pd.DataFrame(columns=STATEMENT_COLUMNS)

    df = (
        pd.DataFrame(rows)
        .groupby("month", sort=True)[["income", "expenses", "my_expense_share"]]
        .sum()
        .reset_index()
    )
    df["salary"] = float(salary.amount)

    net = df["salary"] + df["income"] - df["expenses"]
    running = pd.concat([pd.Series([float(salary.previous_balance)]), net], ignore_index=True).cumsum()
    df["starting_balance"] = running.iloc[:-1].to_numpy()
    df["ending_balance"] = running.iloc[1:].to_numpy()
    df["savings"] = df["ending_balance"]

    return df[STATEMENT_COLUMNS]


def monthly_statement(transactions, salary):
    return monthly_statement_frame(transactions, salary).to_dict(orient="records")


def outstanding_settlements(balances, threshold=SETTLED_THRESHOLD):
    """Balances still worth settling, largest first."""
    pending = []
    for friend, amount in balances.items():
        if abs(amount) < threshold:
            continue
        pending.append({
            "friend": friend,
            "amount": abs(amount),
            "direction": "owes_you" if amount >= 0 else "you_owe",
        })
    return sorted(pending, key=lambda p: p["amount"], reverse=True)


def compute_summary(state):
    balances = compute_balances(state.transactions, state.friends)
    totals = compute_totals(state.transactions, balances, state.salary)
    categories = category_breakdown(state.transactions)

    logger.debug(f"Summary computed over {len(state.transactions)} transactions, {len(balances)} balances")

    return {
        "balances": balances,
        **totals,
        "categories": categories,
        "top_categories": categories[:TOP_CATEGORIES],
        "timeline": spending_timeline(state.transactions),
    }
