from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from lms.models.book import Book
from lms.models.borrow import Borrow, BorrowState, ReturnRequestStatus, ReturnStatus
from lms.models.user import User


def test_state_projections_cover_both_fields():
    assert BorrowState.BORROWED.return_status == ReturnStatus.BORROWED
    assert BorrowState.BORROWED.return_request_status == ReturnRequestStatus.NONE
    assert BorrowState.OVERDUE_RETURN_PENDING.return_status == ReturnStatus.OVERDUE
    assert BorrowState.OVERDUE_RETURN_PENDING.return_request_status == ReturnRequestStatus.PENDING
    assert BorrowState.RETURNED.return_request_status == ReturnRequestStatus.APPROVED


def test_returned_only_pairs_with_approved():
    with pytest.raises(ValueError):
        BorrowState.of(ReturnStatus.RETURNED, ReturnRequestStatus.PENDING)
    with pytest.raises(ValueError):
        BorrowState.of(ReturnStatus.BORROWED, ReturnRequestStatus.APPROVED)
    assert BorrowState.of("RETURNED", "APPROVED") is BorrowState.RETURNED


def test_active_states_exclude_only_returned():
    active = BorrowState.active()
    assert BorrowState.RETURNED not in active
    assert len(active) == len(BorrowState) - 1
    assert set(BorrowState.with_request_status(ReturnRequestStatus.PENDING)) == {
        BorrowState.RETURN_PENDING,
        BorrowState.OVERDUE_RETURN_PENDING,
    }


def test_borrow_transitions_keep_custody():
    b = Borrow(state=BorrowState.OVERDUE)
    b.request_return()
    assert b.state is BorrowState.OVERDUE_RETURN_PENDING
    b.reject_return()
    assert b.state is BorrowState.OVERDUE_RETURN_REJECTED
    b.request_return()
    assert b.state is BorrowState.OVERDUE_RETURN_PENDING

    when = datetime(2024, 5, 1, 12, 0)
    b.approve_return(when)
    assert b.state is BorrowState.RETURNED
    assert b.return_date == when
    assert not b.is_active


def test_mark_overdue_sets_fine():
    b = Borrow(state=BorrowState.RETURN_PENDING)
    b.mark_overdue(Decimal("30"))
    assert b.fine == Decimal("30")
    assert b.state is BorrowState.OVERDUE_RETURN_PENDING


def test_overdue_days_is_floored():
    now = datetime(2024, 5, 10, 0, 0)
    b = Borrow(due_date=now - timedelta(days=3, hours=23))
    assert b.overdue_days(now) == 3
    b.due_date = now + timedelta(hours=1)
    assert b.overdue_days(now) == 0
    b.due_date = now - timedelta(hours=5)
    assert b.overdue_days(now) == 0


def test_user_debit_is_all_or_nothing():
    u = User(username="x", name="X", balance=Decimal("25.00"))
    assert u.can_afford(20)
    u.debit(20)
    assert u.balance == Decimal("5.00")
    with pytest.raises(ValueError):
        u.debit(10)
    assert u.balance == Decimal("5.00")
    with pytest.raises(ValueError):
        u.credit(0)


def test_book_never_goes_negative():
    book = Book(title="Dune", author="Frank Herbert", available_copies=1)
    book.take_copy()
    assert book.available_copies == 0
    with pytest.raises(ValueError):
        book.take_copy()
    assert book.available_copies == 0
    book.restore_copy()
    assert book.available_copies == 1
