"""
conftest.py — Shared Test Fixtures for SwagSuite

Provides an in-memory SQLite database, FastAPI TestClient with auth
overrides, and factory fixtures for core models (User, Company, Contact,
Supplier, Product, Order).

Business Rules:
- All tests run against isolated in-memory DB (no prod data risk)
- Auth is overridden so tests don't need a session cookie
- Each test function gets a fresh DB (tables created and dropped per test)

Called by: all test files via pytest autodiscovery
Depends on: swagsuite.models (Base), swagsuite.database (get_db), swagsuite.dependencies
"""

import os
os.environ["TESTING"] = "1"  # Must be set before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")  # suite exceeds the per-IP default

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from swagsuite.models import (
    Base, Company, Contact, Order, OrderItem, Product, Supplier, User,
)

# ── In-memory SQLite engine ──────────────────────────────────────────

TEST_DB_URL = "sqlite://"  # in-memory, fresh per session

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db: Session, email: str, first: str, role: str) -> User:
    user = User(
        email=email,
        username=email.split("@")[0],
        first_name=first,
        last_name="Tester",
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """A standard sales rep."""
    return _make_user(db_session, "rep@swagsuite.test", "Rita", "user")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """An admin-role user for privileged operations."""
    return _make_user(db_session, "admin@swagsuite.test", "Alex", "admin")


@pytest.fixture()
def manager_user(db_session: Session) -> User:
    """A manager-role user for approval workflows."""
    return _make_user(db_session, "manager@swagsuite.test", "Morgan", "manager")


@pytest.fixture()
def test_company(db_session: Session) -> Company:
    """A sample customer company."""
    co = Company(
        name="Acme Events",
        email="hello@acme-events.com",
        industry="Events",
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(co)
    db_session.commit()
    db_session.refresh(co)
    return co


@pytest.fixture()
def test_contact(db_session: Session, test_company: Company) -> Contact:
    """Primary contact at test_company."""
    c = Contact(
        company_id=test_company.id,
        first_name="Jane",
        last_name="Doe",
        email="jane@acme-events.com",
        is_primary=True,
    )
    db_session.add(c)
    db_session.commit()
    db_session.refresh(c)
    return c


@pytest.fixture()
def test_supplier(db_session: Session) -> Supplier:
    """A regular (orderable) supplier."""
    s = Supplier(name="Bright Promo Supply", email="orders@brightpromo.com", is_preferred=True)
    db_session.add(s)
    db_session.commit()
    db_session.refresh(s)
    return s


@pytest.fixture()
def blocked_supplier(db_session: Session) -> Supplier:
    """A supplier flagged do-not-order."""
    s = Supplier(name="Sketchy Swag Co", do_not_order=True)
    db_session.add(s)
    db_session.commit()
    db_session.refresh(s)
    return s


@pytest.fixture()
def test_product(db_session: Session, test_supplier: Supplier) -> Product:
    """A catalog product from test_supplier."""
    p = Product(
        supplier_id=test_supplier.id,
        name="Classic Cotton Tee",
        sku="TEE-100",
        base_price=Decimal("8.50"),
        colors='["Black", "White"]',
        product_type="apparel",
    )
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


@pytest.fixture()
def test_order(
    db_session: Session,
    test_company: Company,
    test_contact: Contact,
    test_user: User,
    test_product: Product,
) -> Order:
    """An order with one item: 100 x 12.50 = 1250.00, cost 7.50/unit."""
    order = Order(
        order_number=f"ORD-{datetime.now(timezone.utc).year}-001",
        company_id=test_company.id,
        contact_id=test_contact.id,
        assigned_user_id=test_user.id,
        status="quote",
        subtotal=Decimal("1250.00"),
        total=Decimal("1250.00"),
        created_at=datetime.now(timezone.utc),
    )
    order.items.append(
        OrderItem(
            product_id=test_product.id,
            supplier_id=test_product.supplier_id,
            quantity=100,
            unit_price=Decimal("12.50"),
            cost=Decimal("7.50"),
            total_price=Decimal("1250.00"),
        )
    )
    db_session.add(order)
    db_session.commit()
    db_session.refresh(order)
    return order


@pytest.fixture()
def client(db_session: Session, test_user: User) -> TestClient:
    """FastAPI TestClient with auth overridden to return test_user.

    Overrides get_db to use the test session and require_user to
    skip session-cookie auth entirely.
    """
    from swagsuite.database import get_db
    from swagsuite.dependencies import require_user
    from swagsuite.main import app

    def _override_db():
        yield db_session

    def _override_user():
        return test_user

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[require_user] = _override_user

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def client_as():
    """Build a TestClient authenticated as a specific user."""
    from swagsuite.database import get_db
    from swagsuite.dependencies import require_user
    from swagsuite.main import app

    clients = []

    def _factory(db: Session, user: User) -> TestClient:
        def _override_db():
            yield db

        app.dependency_overrides[get_db] = _override_db
        app.dependency_overrides[require_user] = lambda: user
        c = TestClient(app)
        clients.append(c)
        return c

    yield _factory
    app.dependency_overrides.clear()
