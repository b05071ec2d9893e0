from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from flask import current_app

from lms.errors import NotFoundError
from lms.models.borrow import Borrow, BorrowState, ReturnRequestStatus
from lms.repositories.book_repo import BookRepo
from lms.repositories.borrow_repo import BorrowRepo
from lms.repositories.user_repo import UserRepo
from lms.utils.transaction import run_atomic


@dataclass
class OperationResult:
    """
    Outcome of a lending operation.

    Policy rejections (no funds, already borrowed, out of stock...) are normal
    results with success=False and a message for the patron, not errors.
    """

    success: bool
    message: str
    code: str = "ok"
    borrow: Optional[Borrow] = None

    @classmethod
    def ok(cls, message: str, borrow: Borrow = None):
        return cls(True, message, "ok", borrow)

    @classmethod
    def rejected(cls, code: str, message: str, borrow: Borrow = None):
        return cls(False, message, code, borrow)


class BorrowService:
    @staticmethod
    def _policy():
        cfg = current_app.config
        return Decimal(cfg.get("BORROW_FEE", 20)), int(cfg.get("LOAN_DAYS", 7))

    @staticmethod
    def borrow_book(user_id: int, book_id: int, now: datetime = None) -> OperationResult:
        fee, loan_days = BorrowService._policy()

        def _borrow():
            issued_at = now or datetime.utcnow()

            user = UserRepo.get_for_update(user_id)
            if not user:
                raise NotFoundError("user", user_id)

            book = BookRepo.get_for_update(book_id)
            if not book:
                raise NotFoundError("book", book_id)

            if not user.can_afford(fee):
                return OperationResult.rejected(
                    "insufficient_balance", "Insufficient balance. Please add funds."
                )

            if BorrowRepo.has_active(user.id, book.id):
                return OperationResult.rejected(
                    "already_borrowed",
                    "You have already borrowed this book and must return it before borrowing again.",
                )

            if book.available_copies < 1:
                return OperationResult.rejected(
                    "out_of_stock", f'The book "{book.title}" is out of stock!'
                )

            book.take_copy()
            user.debit(fee)
            borrow = BorrowRepo.add(Borrow(
                user_id=user.id,
                book_id=book.id,
                issue_date=issued_at,
                due_date=issued_at + timedelta(days=loan_days),
                fine=Decimal("0.00"),
                state=BorrowState.BORROWED,
            ))
            return OperationResult.ok(
                f'{user.name} has borrowed one copy of "{book.title}"!', borrow
            )

        result = run_atomic(_borrow, label="borrow")
        if result.success:
            current_app.logger.info(
                f"[borrow] user={user_id} book={book_id} borrow={result.borrow.id} fee={fee}"
            )
        else:
            current_app.logger.info(f"[borrow] user={user_id} book={book_id} rejected: {result.code}")
        return result

    @staticmethod
    def request_return(borrow_id: int) -> OperationResult:
        def _request():
            borrow = BorrowRepo.get_for_update(borrow_id)
            if not borrow:
                raise NotFoundError("borrow record", borrow_id)

            status = borrow.return_request_status
            if status == ReturnRequestStatus.PENDING:
                return OperationResult.rejected(
                    "already_pending", "Return request is already pending.", borrow
                )
            if status == ReturnRequestStatus.APPROVED:
                return OperationResult.rejected(
                    "already_returned", "This book has already been returned.", borrow
                )

            borrow.request_return()
            return OperationResult.ok("Return request sent to admin for approval.", borrow)

        result = run_atomic(_request, label="request_return")
        current_app.logger.info(f"[borrow] request_return borrow={borrow_id} -> {result.code}")
        return result

    @staticmethod
    def approve_return(borrow_id: int, now: datetime = None) -> OperationResult:
        def _approve():
            borrow = BorrowRepo.get_for_update(borrow_id)
            if not borrow:
                raise NotFoundError("borrow record", borrow_id)

            if not borrow.is_active:
                return OperationResult.rejected(
                    "already_approved", "Return has already been approved.", borrow
                )

            book = BookRepo.get_for_update(borrow.book_id)
            if not book:
                raise NotFoundError("book", borrow.book_id)

            book.restore_copy()
            borrow.approve_return(now or datetime.utcnow())
            return OperationResult.ok(
                "Return request approved. The book has been returned.", borrow
            )

        result = run_atomic(_approve, label="approve_return")
        current_app.logger.info(f"[borrow] approve_return borrow={borrow_id} -> {result.code}")
        return result

    @staticmethod
    def reject_return(borrow_id: int) -> OperationResult:
        def _reject():
            borrow = BorrowRepo.get_for_update(borrow_id)
            if not borrow:
                raise NotFoundError("borrow record", borrow_id)

            if borrow.return_request_status != ReturnRequestStatus.PENDING:
                return OperationResult.rejected(
                    "not_pending", "There is no pending return request to reject.", borrow
                )

            borrow.reject_return()
            return OperationResult.ok("Return request rejected.", borrow)

        result = run_atomic(_reject, label="reject_return")
        current_app.logger.info(f"[borrow] reject_return borrow={borrow_id} -> {result.code}")
        return result

    # ---- read side ----

    @staticmethod
    def get_borrow(borrow_id: int) -> Borrow:
        borrow = BorrowRepo.get(borrow_id)
        if not borrow:
            raise NotFoundError("borrow record", borrow_id)
        return borrow

    @staticmethod
    def list_overdue(now: datetime = None):
        return BorrowRepo.find_overdue(now or datetime.utcnow())

    @staticmethod
    def count_overdue(now: datetime = None) -> int:
        return BorrowRepo.count_overdue(now or datetime.utcnow())

    @staticmethod
    def count_unreturned() -> int:
        return BorrowRepo.count_unreturned()

    @staticmethod
    def list_pending_returns():
        return [
            {
                "borrow_id": b.id,
                "user_id": b.user_id,
                "user_name": user_name,
                "book_id": b.book_id,
                "book_title": book_title,
                "return_request_status": b.return_request_status.value,
            }
            for b, user_name, book_title in BorrowRepo.find_pending_with_names()
        ]

    @staticmethod
    def history_for_user(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFoundError("user", user_id)
        return BorrowRepo.list_by_user(user_id)

    @staticmethod
    def history_for_book(book_id: int):
        if not BookRepo.get(book_id):
            raise NotFoundError("book", book_id)
        return BorrowRepo.list_by_book(book_id)

    @staticmethod
    def list_all():
        return BorrowRepo.list_all()
