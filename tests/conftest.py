"""Shared pytest fixtures."""

from __future__ import annotations

import os

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from collections.abc import Callable, Iterator
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.core.database import Base, configure_sqlite, get_db
from app.main import app
from app.models.user import UserRole
from app.schemas.auth import UserCreate
from app.services.auth import AuthService
from app.services.store import ResultStore


@dataclass(frozen=True, slots=True)
class SeededUser:
    id: int
    email: str
    password: str


@pytest.fixture()
def engine() -> Iterator[Engine]:
    """A fresh in-memory database per test."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture()
def store(db: Session) -> ResultStore:
    return ResultStore(db)


@pytest.fixture()
def client(session_factory: sessionmaker[Session]) -> Iterator[TestClient]:
    """Test client whose requests run against the per-test database."""

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _seed_user(
    session_factory: sessionmaker[Session],
    email: str,
    password: str,
    role: UserRole,
) -> SeededUser:
    with session_factory() as session:
        user = AuthService(session).register_user(
            UserCreate(email=email, full_name=email.split("@")[0], password=password, role=role)
        )
        session.commit()
    return SeededUser(id=user.id, email=email, password=password)


@pytest.fixture()
def admin_user(session_factory: sessionmaker[Session]) -> SeededUser:
    return _seed_user(session_factory, "admin@example.com", "admin-pass-123", UserRole.ADMIN)


@pytest.fixture()
def regular_user(session_factory: sessionmaker[Session]) -> SeededUser:
    return _seed_user(session_factory, "student@example.com", "student-pass-123", UserRole.USER)


@pytest.fixture()
def login(client: TestClient) -> Callable[[SeededUser], dict[str, str]]:
    """Sign a seeded user in and return their auth headers."""

    def _login(user: SeededUser) -> dict[str, str]:
        response = client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": user.password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture()
def admin_headers(
    admin_user: SeededUser,
    login: Callable[[SeededUser], dict[str, str]],
) -> dict[str, str]:
    return login(admin_user)
