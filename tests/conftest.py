"""
Shared fixtures: an in-memory database, a frozen reference-zone clock and
a TestClient wired to both.
"""

from datetime import datetime, timezone

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.api.clients.employee_service import EmployeeServiceClient
from app.api.dependencies import (
    SessionDep,
    get_day_normalizer,
    get_employee_directory,
)
from app.core.config import settings
from app.core.database import get_session
from app.core.days import DayNormalizer
from app.core.employee_service import EmployeeDirectory
from app.main import app
from app.models.employee import EmployeeCache

# 2025-03-12 09:00 in Asia/Kolkata
FROZEN_NOW = datetime(2025, 3, 12, 3, 30, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = FROZEN_NOW):
        self.current = now

    def set(self, now: datetime) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def days(clock):
    return DayNormalizer("Asia/Kolkata", clock=clock)


def _unreachable_directory(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, json={"msg": "not found"})


@pytest.fixture
def directory_client():
    """Employee service client that never leaves the process."""
    return EmployeeServiceClient(
        base_url="http://employee-service",
        transport=httpx.MockTransport(_unreachable_directory),
    )


@pytest.fixture
def client(engine, days, directory_client):
    def override_session():
        with Session(engine) as session:
            yield session

    def override_directory(session: SessionDep):
        return EmployeeDirectory(session, client=directory_client)

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_day_normalizer] = lambda: days
    app.dependency_overrides[get_employee_directory] = override_directory
    # No context manager: the lifespan (Kafka, startup purge) is not run
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def employees(session):
    """Two active employees and one who has left."""
    rows = [
        EmployeeCache(id=1, email="asha@example.com", full_name="Asha Rao", employee_code="EM001"),
        EmployeeCache(id=2, email="ravi@example.com", full_name="Ravi Kumar", employee_code="EM002"),
        EmployeeCache(
            id=3,
            email="old@example.com",
            full_name="Former Employee",
            employee_code="EM003",
            status="terminated",
        ),
    ]
    for row in rows:
        session.add(row)
    session.commit()
    return rows


def make_token(employee_id=None, admin=False, **claims) -> str:
    payload = {"sub": f"user-{employee_id or 'admin'}", **claims}
    if employee_id is not None:
        payload["employeeId"] = employee_id
    if admin:
        payload["admin"] = True
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def auth_headers():
    """Build an Authorization header for an employee or an admin."""

    def build(employee_id=None, admin=False, **claims) -> dict:
        return {"Authorization": f"Bearer {make_token(employee_id, admin, **claims)}"}

    return build
