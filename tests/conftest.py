import os
from datetime import date
from decimal import Decimal

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from library_api.database import Base, get_db
from library_api.main import app
from library_api.models.book import Book
from library_api.models.loan import Loan, LoanStatus
from library_api.models.member import Member, MemberType, lending_terms_for


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth/signup", json={
        "first_name": "Ada",
        "last_name": "Desk",
        "email": "desk@library.org",
        "password": "circulation",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def make_book(db):
    counter = {"n": 0}

    def _make_book(total_copies=2, available_copies=None, daily_fine_rate=Decimal("2.00"),
                   active=True, title=None, category="Fiction"):
        counter["n"] += 1
        book = Book(
            isbn=f"978000000{counter['n']:04d}",
            title=title or f"Book {counter['n']}",
            author="Machado de Assis",
            total_copies=total_copies,
            available_copies=total_copies if available_copies is None else available_copies,
            daily_fine_rate=daily_fine_rate,
            category=category,
            active=active,
        )
        db.add(book)
        db.commit()
        db.refresh(book)
        return book

    return _make_book


@pytest.fixture
def make_member(db):
    counter = {"n": 0}

    def _make_member(member_type=MemberType.STUDENT, active=True, name=None):
        counter["n"] += 1
        member = Member(
            name=name or f"Member {counter['n']}",
            email=f"member{counter['n']}@library.org",
            national_id=f"{counter['n']:011d}",
            member_type=member_type.value,
            active=active,
            borrow_limit=lending_terms_for(member_type).borrow_limit,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _make_member


@pytest.fixture
def make_loan(db):
    """Insert a loan row directly, taking a copy off the shelf."""

    def _make_loan(book, member, loan_date: date, due_date: date, status=LoanStatus.ACTIVE):
        loan = Loan(
            book_id=book.book_id,
            member_id=member.member_id,
            loan_date=loan_date,
            due_date=due_date,
            status=status.value,
            daily_fine_rate=book.daily_fine_rate,
        )
        book.available_copies -= 1
        db.add(loan)
        db.commit()
        db.refresh(loan)
        return loan

    return _make_loan
