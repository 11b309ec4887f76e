# bachelor_expenses/models.py
# lightweight model classes (not DB-bound ORM)
import json

ME = "Me"
SPLIT_EQUAL = "equal"
SPLIT_CUSTOM = "custom"


class User:
    def __init__(self, id, email, name, password_hash=None, created_at=None):
        self.id = id
        self.email = email
        self.name = name
        self.password_hash = password_hash
        self.created_at = created_at

    @classmethod
    def from_row(cls, row):
        return cls(row['id'], row['email'], row['name'], row['password_hash'], row['created_at'])

    def to_dict(self):
        return {"id": self.id, "email": self.email, "name": self.name, "createdAt": self.created_at}


class Transaction:
    def __init__(self, id, date, desc, amount, category, paid_by=ME, split_among=None,
                 split_type=SPLIT_EQUAL, custom_splits=None):
        self.id = id
        self.date = date
        self.desc = desc
        self.amount = amount
        self.category = category
        self.paid_by = paid_by
        self.split_among = list(split_among or [])
        self.split_type = split_type
        self.custom_splits = custom_splits if split_type == SPLIT_CUSTOM else None

    @property
    def is_expense(self):
        return self.amount < 0

    @property
    def is_income(self):
        return self.amount > 0

    @property
    def month(self):
        return self.date[:7]

    @classmethod
    def from_row(cls, row):
        custom = row['custom_splits']
        return cls(
            id=row['id'],
            date=row['date'],
            desc=row['description'],
            amount=float(row['amount']),
            category=row['category'],
            paid_by=row['paid_by'],
            split_among=json.loads(row['split_among']),
            split_type=row['split_type'],
            custom_splits=json.loads(custom) if custom else None,
        )

    def to_row(self, user_id):
        return (
            user_id, self.id, self.date, self.desc, self.amount, self.category, self.paid_by,
            json.dumps(self.split_among), self.split_type,
            json.dumps(self.custom_splits) if self.custom_splits is not None else None,
        )

    def to_dict(self):
        data = {
            "id": self.id,
            "date": self.date,
            "desc": self.desc,
            "amount": self.amount,
            "category": self.category,
            "paidBy": self.paid_by,
            "splitAmong": self.split_among,
            "splitType": self.split_type,
        }
        if self.custom_splits is not None:
            data["customSplits"] = self.custom_splits
        return data

    def __repr__(self):
        return f"<Transaction {self.id} {self.date} {self.amount} paid_by={self.paid_by}>"


class Salary:
    def __init__(self, amount=0.0, received_date=None, previous_balance=0.0):
        self.amount = amount
        self.received_date = received_date
        self.previous_balance = previous_balance

    @classmethod
    def from_row(cls, row):
        if row is None:
            return cls()
        return cls(float(row['amount']), row['received_date'], float(row['previous_balance']))

    def to_dict(self):
        return {
            "amount": self.amount,
            "receivedDate": self.received_date,
            "previousBalance": self.previous_balance,
        }
