from datetime import datetime
from decimal import Decimal

from lms.extensions import db


class User(db.Model):
    """Patron account. Identity and roles are owned elsewhere; this core only moves `balance`."""

    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    balance = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("500.00"))
    version_id = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def can_afford(self, amount) -> bool:
        return Decimal(self.balance or 0) >= Decimal(amount)

    def debit(self, amount):
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError("Debit amount must not be negative")
        if not self.can_afford(amount):
            raise ValueError("Insufficient balance")
        self.balance = Decimal(self.balance) - amount

    def credit(self, amount):
        amount = Decimal(amount)
        if amount <= 0:
            raise ValueError("Amount must be positive")
        self.balance = Decimal(self.balance or 0) + amount
