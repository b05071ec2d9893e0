from datetime import datetime

from lms.extensions import db
from lms.models.book import Book
from lms.models.borrow import Borrow, BorrowState, ReturnRequestStatus, ReturnStatus
from lms.models.user import User


class BorrowRepo:
    @staticmethod
    def get(borrow_id: int):
        return db.session.get(Borrow, borrow_id)

    @staticmethod
    def get_for_update(borrow_id: int):
        return db.session.get(Borrow, borrow_id, with_for_update=True, populate_existing=True)

    @staticmethod
    def add(borrow: Borrow):
        db.session.add(borrow)
        return borrow

    @staticmethod
    def has_active(user_id: int, book_id: int) -> bool:
        q = Borrow.query.filter(
            Borrow.user_id == user_id,
            Borrow.book_id == book_id,
            Borrow.state.in_(BorrowState.active()),
        )
        return db.session.query(q.exists()).scalar()

    @staticmethod
    def list_all():
        return Borrow.query.order_by(Borrow.id.desc()).all()

    @staticmethod
    def list_by_user(user_id: int):
        return Borrow.query.filter_by(user_id=user_id).order_by(Borrow.id.desc()).all()

    @staticmethod
    def list_by_book(book_id: int):
        return Borrow.query.filter_by(book_id=book_id).order_by(Borrow.id.desc()).all()

    @staticmethod
    def find_overdue(now: datetime):
        return (
            Borrow.query.filter(
                Borrow.due_date < now,
                Borrow.state != BorrowState.RETURNED,
            )
            .order_by(Borrow.due_date)
            .all()
        )

    @staticmethod
    def count_overdue(now: datetime) -> int:
        return Borrow.query.filter(
            Borrow.due_date < now,
            Borrow.state != BorrowState.RETURNED,
        ).count()

    @staticmethod
    def count_unreturned() -> int:
        return Borrow.query.filter(Borrow.state != BorrowState.RETURNED).count()

    @staticmethod
    def find_pending_with_names():
        """(Borrow, user name, book title) rows waiting for staff approval."""
        return (
            db.session.query(Borrow, User.name, Book.title)
            .join(User, Borrow.user_id == User.id)
            .join(Book, Borrow.book_id == Book.id)
            .filter(Borrow.state.in_(BorrowState.with_request_status(ReturnRequestStatus.PENDING)))
            .order_by(Borrow.id)
            .all()
        )

    @staticmethod
    def find_fine_candidate_ids(now: datetime):
        # ids only: each record is re-read inside its own transaction
        rows = (
            db.session.query(Borrow.id)
            .filter(
                Borrow.due_date < now,
                Borrow.state.in_(BorrowState.with_return_status(ReturnStatus.BORROWED)),
            )
            .order_by(Borrow.due_date)
            .all()
        )
        return [r.id for r in rows]
