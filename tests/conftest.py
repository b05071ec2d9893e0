from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from lms import create_app
from lms.config import TestConfig
from lms.extensions import db
from lms.models.book import Book
from lms.models.borrow import Borrow, BorrowState
from lms.models.user import User


@pytest.fixture
def app(tmp_path):
    # file database: concurrency tests need separate connections
    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'lms_test.db'}"

    app = create_app(_Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(balance="100.00", name=None, email="reader@example.com"):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            username=f"reader{n}",
            name=name or f"Reader {n}",
            email=email,
            balance=Decimal(balance),
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_book(app):
    def _make(copies=1, title="Dune", author="Frank Herbert"):
        book = Book(title=title, author=author, genre="Sci-Fi", available_copies=copies)
        db.session.add(book)
        db.session.commit()
        return book

    return _make


@pytest.fixture
def make_borrow(app):
    """Inserts a checkout directly, bypassing fees and stock (for scheduler/read tests)."""

    def _make(user, book, days_overdue=0, state=BorrowState.BORROWED, now=None):
        now = now or datetime.utcnow()
        due = now - timedelta(days=days_overdue, hours=1) if days_overdue else now + timedelta(days=7)
        borrow = Borrow(
            user_id=user.id,
            book_id=book.id,
            issue_date=due - timedelta(days=7),
            due_date=due,
            state=state,
        )
        db.session.add(borrow)
        db.session.commit()
        return borrow

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user_id, role="user"):
        token = create_access_token(identity=str(user_id), additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def fresh(app):
    """Re-reads a row, ignoring whatever this session cached."""

    def _fresh(model, pk):
        db.session.expire_all()
        return db.session.get(model, pk)

    return _fresh
