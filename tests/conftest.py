"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database, and a fake Increase sandbox so tests
never touch the network. Environment overrides are applied
before the application is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SETUP_SETTLE_DELAY_SECONDS"] = "0"
os.environ["STATIC_DIR"] = "./tests/no-frontend-build"
os.environ["INCREASE_BASE_URL"] = "https://sandbox.increase.com"
os.environ["INCREASE_API_KEY"] = ""
os.environ["DEFAULT_COMPANY_NAME"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fake_increase import FakeIncrease
from increase_demo.clients.increase import get_client_factory
from increase_demo.main import app
from increase_demo.models.base import Base, get_db
from increase_demo.models.enums import Product
from increase_demo.schemas.session import SessionCreate
from increase_demo.services.session_service import SessionService


# SQLite keeps the tests free of database infrastructure.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def fake_increase():
    """A fresh fake sandbox per test."""
    return FakeIncrease()


@pytest.fixture
def client(db_session, fake_increase):
    """
    Provide a test client wired to the test database and
    the fake sandbox.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_client_factory] = lambda: fake_increase.client_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_session(db_session, fake_increase, product):
    service = SessionService(db_session, fake_increase.client_factory, settle_delay=0)
    session = service.create_session(SessionCreate(
        api_key="test_api_key",
        company_name="Acme Co",
        end_user_name="Wile E. Coyote",
        product=product,
    ))
    db_session.commit()
    fake_increase.calls.clear()
    return session


@pytest.fixture
def bill_pay_session(db_session, fake_increase):
    """A provisioned Bill Pay session; setup calls are cleared from the fake."""
    return _create_session(db_session, fake_increase, Product.BILL_PAY)


@pytest.fixture
def banking_session(db_session, fake_increase):
    """A provisioned Banking session with seeded history."""
    return _create_session(db_session, fake_increase, Product.BANKING)
