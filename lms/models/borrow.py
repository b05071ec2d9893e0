from datetime import datetime
from decimal import Decimal
from enum import Enum

from lms.extensions import db


class ReturnStatus(str, Enum):
    BORROWED = "BORROWED"
    OVERDUE = "OVERDUE"
    RETURNED = "RETURNED"


class ReturnRequestStatus(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BorrowState(Enum):
    """
    Closed set of states a checkout can be in.

    Custody (BORROWED/OVERDUE/RETURNED) and the return-approval workflow
    (NONE/PENDING/APPROVED/REJECTED) are stored together, so a record can
    never be RETURNED without being APPROVED or the other way around.
    """

    BORROWED = (ReturnStatus.BORROWED, ReturnRequestStatus.NONE)
    RETURN_PENDING = (ReturnStatus.BORROWED, ReturnRequestStatus.PENDING)
    RETURN_REJECTED = (ReturnStatus.BORROWED, ReturnRequestStatus.REJECTED)
    OVERDUE = (ReturnStatus.OVERDUE, ReturnRequestStatus.NONE)
    OVERDUE_RETURN_PENDING = (ReturnStatus.OVERDUE, ReturnRequestStatus.PENDING)
    OVERDUE_RETURN_REJECTED = (ReturnStatus.OVERDUE, ReturnRequestStatus.REJECTED)
    RETURNED = (ReturnStatus.RETURNED, ReturnRequestStatus.APPROVED)

    @property
    def return_status(self) -> ReturnStatus:
        return self.value[0]

    @property
    def return_request_status(self) -> ReturnRequestStatus:
        return self.value[1]

    @property
    def is_active(self) -> bool:
        return self is not BorrowState.RETURNED

    @classmethod
    def of(cls, return_status, return_request_status) -> "BorrowState":
        try:
            return cls((ReturnStatus(return_status), ReturnRequestStatus(return_request_status)))
        except ValueError:
            raise ValueError(
                f"Invalid borrow state: {return_status}/{return_request_status}"
            ) from None

    @classmethod
    def active(cls):
        return [s for s in cls if s.is_active]

    @classmethod
    def with_return_status(cls, status):
        return [s for s in cls if s.return_status == status]

    @classmethod
    def with_request_status(cls, status):
        return [s for s in cls if s.return_request_status == status]


class Borrow(db.Model):
    __tablename__ = "borrows"
    __table_args__ = (
        db.Index("ix_borrows_user_book_state", "user_id", "book_id", "state"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # plain references: the catalog and identity tables are owned elsewhere
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    issue_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    return_date = db.Column(db.DateTime, nullable=True)

    fine = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    state = db.Column(
        db.Enum(BorrowState, name="borrow_state"),
        nullable=False,
        default=BorrowState.BORROWED,
        index=True,
    )
    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    user = db.relationship("User", backref="borrows")
    book = db.relationship("Book", backref="borrows")

    @property
    def return_status(self) -> ReturnStatus:
        return self.state.return_status

    @property
    def return_request_status(self) -> ReturnRequestStatus:
        return self.state.return_request_status

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    def _move(self, return_status=None, return_request_status=None):
        self.state = BorrowState.of(
            return_status or self.return_status,
            return_request_status or self.return_request_status,
        )

    def request_return(self):
        self._move(return_request_status=ReturnRequestStatus.PENDING)

    def reject_return(self):
        self._move(return_request_status=ReturnRequestStatus.REJECTED)

    def approve_return(self, when: datetime):
        self.return_date = when
        self.state = BorrowState.RETURNED

    def mark_overdue(self, fine):
        self.fine = Decimal(fine)
        self._move(return_status=ReturnStatus.OVERDUE)

    def overdue_days(self, now: datetime) -> int:
        if not self.due_date or self.due_date >= now:
            return 0
        # timedelta.days floors to whole days
        return (now - self.due_date).days
