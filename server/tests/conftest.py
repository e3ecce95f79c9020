from __future__ import annotations

import os
from collections.abc import Callable, Generator

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENABLE_SCHEDULER", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mealplanner.auth.deps import get_current_user
from mealplanner.auth.security import hash_password
from mealplanner.core.db import Base, get_db
from mealplanner.main import app
from mealplanner.models.resident import Resident
from mealplanner.models.user import User

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def authorize(client: TestClient):
    def _apply(user: User):
        app.dependency_overrides[get_current_user] = lambda: user

    yield _apply
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make(email: str, role: str, *, password: str | None = None, name: str | None = None, is_active: bool = True) -> User:
        user = User(
            email=email,
            name=name or email.split("@")[0].title(),
            role=role,
            hashed_password=hash_password(password) if password else "hash",
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def admin_user(make_user) -> User:
    return make_user("admin@example.com", "admin", name="Admin")


@pytest.fixture()
def caregiver_user(make_user) -> User:
    return make_user("caregiver@example.com", "caregiver", name="Caregiver")


@pytest.fixture()
def kitchen_user(make_user) -> User:
    return make_user("kitchen@example.com", "kitchen", name="Kitchen")


@pytest.fixture()
def sample_resident(db_session: Session) -> Resident:
    resident = Resident(
        name="Margarete Vogel",
        room_number="104",
        table_number="3",
        station="Nord",
        dietary_restrictions=["diabetic", "lactose-free"],
        high_calorie=False,
        active=True,
    )
    db_session.add(resident)
    db_session.commit()
    db_session.refresh(resident)
    return resident


@pytest.fixture()
def inactive_resident(db_session: Session) -> Resident:
    resident = Resident(name="Heinz Keller", room_number="210", active=False)
    db_session.add(resident)
    db_session.commit()
    db_session.refresh(resident)
    return resident
