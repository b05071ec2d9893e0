from decimal import Decimal, InvalidOperation

from flask import current_app

from lms.errors import NotFoundError
from lms.repositories.user_repo import UserRepo
from lms.utils.transaction import run_atomic


class LedgerService:
    @staticmethod
    def get_balance(user_id: int) -> Decimal:
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFoundError("user", user_id)
        return Decimal(user.balance)

    @staticmethod
    def add_balance(user_id: int, amount) -> Decimal:
        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValueError("Amount must be a number") from None
        if not amount.is_finite() or amount <= 0:
            raise ValueError("Amount must be positive")
        amount = amount.quantize(Decimal("0.01"))

        def _top_up():
            user = UserRepo.get_for_update(user_id)
            if not user:
                raise NotFoundError("user", user_id)
            user.credit(amount)
            return Decimal(user.balance)

        balance = run_atomic(_top_up, label="ledger")
        current_app.logger.info(f"[ledger] user={user_id} credited={amount} balance={balance}")
        return balance
