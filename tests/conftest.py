"""
Pytest fixtures for the PackControl test suite.

Every test gets a fresh in-memory SQLite database (foreign keys on, so
cascades behave as in production) and, for API tests, a TestClient whose
``get_db`` dependency is bound to that database.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import packcontrol.models  # noqa: F401
from packcontrol.database import Base, enable_sqlite_foreign_keys, get_db
from packcontrol.db_guards import register_ledger_guards
from packcontrol.main import app
from packcontrol.models.product import Product
from packcontrol.models.stock import MovementType
from packcontrol.models.users import User, ROLE_ADMIN, ROLE_OPERATOR, ROLE_VIEWER
from packcontrol.services import ledger
from packcontrol.utils.hashing import get_password_hash
from packcontrol.utils.tokenJWT import create_access_token

TEST_PASSWORD = "secret123"
# bcrypt is slow on purpose; hash once for all fixture users
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture(autouse=True, scope="session")
def _ledger_guards():
    register_ledger_guards()
    yield


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(session, email, role):
    user = User(email=email, password_hash=TEST_PASSWORD_HASH, role=role, full_name=role.title())
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session):
    return _make_user(session, "admin@example.com", ROLE_ADMIN)


@pytest.fixture
def operator(session):
    return _make_user(session, "operator@example.com", ROLE_OPERATOR)


@pytest.fixture
def viewer(session):
    return _make_user(session, "viewer@example.com", ROLE_VIEWER)


def auth_headers(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def operator_headers(operator):
    return auth_headers(operator)


@pytest.fixture
def viewer_headers(viewer):
    return auth_headers(viewer)


@pytest.fixture
def make_product(session, admin):
    """Create a product; a ``stock`` value is booked as an opening adjustment."""
    counter = {"n": 0}

    def _make(code=None, name=None, stock=None, minimum="0", price=None, **fields):
        counter["n"] += 1
        product = Product(
            code=code or f"P{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            minimum_stock=Decimal(minimum),
            price=Decimal(price) if price is not None else None,
            current_stock=0,
            **fields,
        )
        session.add(product)
        session.commit()
        if stock is not None:
            ledger.record_movement(session, product.id, MovementType.ADJUSTMENT, stock, admin.id)
        session.refresh(product)
        return product

    return _make
