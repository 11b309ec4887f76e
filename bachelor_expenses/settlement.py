# bachelor_expenses/settlement.py
from datetime import date

from .models import ME, Transaction

SETTLE_CATEGORY = "Settle"


def build_settlement(friend, balance, today=None):
    """
    Synthetic transaction recording a real-world payment with `friend`.

    A non-negative balance (friend owed me) becomes an inflow paid by the
    friend; a negative one becomes an outflow paid by me. The split is always
    just me, so the record never re-enters the per-friend balances.
    """
    today = today or date.today()
    if balance >= 0:
        amount, paid_by = abs(balance), friend
    else:
        amount, paid_by = -abs(balance), ME

    return Transaction(
        id=None,
        date=today.isoformat(),
        desc=f"Settlement with {friend}",
        amount=amount,
        category=SETTLE_CATEGORY,
        paid_by=paid_by,
        split_among=[ME],
    )
