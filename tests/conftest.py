"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import Generator
from decimal import Decimal
from uuid import uuid4

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DEBUG"] = "false"
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="shopfloor-media-")
os.environ["PRODUCTION_TIMEZONE"] = "UTC"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shopfloor.auth.utils import get_password_hash
from shopfloor.db.models import (
    Base,
    Item,
    Machine,
    OperatorAssignment,
    User,
    UserRole,
)

# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Start every test without a cached label configuration."""
    from shopfloor.labels.service import config_cache

    config_cache.clear()
    yield
    config_cache.clear()


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    # Import here to ensure env vars are set
    from shopfloor.dependencies import get_db
    from shopfloor.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_operator(db: Session) -> User:
    """Create an operator with a short employee code."""
    user = User(
        id=str(uuid4()),
        email="operator@example.com",
        password_hash=get_password_hash("operatorpass123"),
        full_name="Olu Operator",
        employee_code="07",
        role=UserRole.OPERATOR,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def second_operator(db: Session) -> User:
    """Create another operator."""
    user = User(
        id=str(uuid4()),
        email="second@example.com",
        password_hash=get_password_hash("secondpass123"),
        full_name="Second Operator",
        employee_code="12",
        role=UserRole.OPERATOR,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_manager(db: Session) -> User:
    """Create a production manager."""
    user = User(
        id=str(uuid4()),
        email="manager@example.com",
        password_hash=get_password_hash("managerpass123"),
        full_name="Mina Manager",
        role=UserRole.PRODUCTION_MANAGER,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_item(db: Session) -> Item:
    """Create a product expected to weigh 10 kg +/- 5%."""
    item = Item(
        id=str(uuid4()),
        product_code="2770",
        product_name="Fusible Interlining",
        color="Normal White",
        length_yards=65,
        width_inches=40,
        expected_weight_kg=Decimal("10.000"),
        weight_tolerance_percentage=Decimal("5"),
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def test_machine(db: Session) -> Machine:
    """Create a machine."""
    machine = Machine(id=str(uuid4()), machine_code="M2", machine_name="Line 2", is_active=True)
    db.add(machine)
    db.commit()
    db.refresh(machine)
    return machine


@pytest.fixture
def test_assignment(db: Session, test_operator: User, test_item: Item) -> OperatorAssignment:
    """Assign three units of the test item to the operator."""
    assignment = OperatorAssignment(
        id=str(uuid4()),
        operator_id=test_operator.id,
        item_id=test_item.id,
        quantity_assigned=3,
        quantity_produced=0,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def _client_as(user: User):
    from shopfloor.dependencies import get_current_user
    from shopfloor.main import app

    def override_get_current_user():
        return user

    app.dependency_overrides[get_current_user] = override_get_current_user
    return get_current_user, app


@pytest.fixture
def operator_client(client: TestClient, test_operator: User) -> TestClient:
    """Create a client authenticated as the operator."""
    get_current_user, app = _client_as(test_operator)
    yield client
    if get_current_user in app.dependency_overrides:
        del app.dependency_overrides[get_current_user]


@pytest.fixture
def manager_client(client: TestClient, test_manager: User) -> TestClient:
    """Create a client authenticated as the production manager."""
    get_current_user, app = _client_as(test_manager)
    yield client
    if get_current_user in app.dependency_overrides:
        del app.dependency_overrides[get_current_user]
