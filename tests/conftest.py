"""Pytest fixtures and configuration for taskengine tests."""

import os

# Keep the app's own engine in memory and the reminder thread off under test.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REMINDERS_ENABLED", "false")

import uuid
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskengine.database.database import Base
from taskengine.database.repository import TaskRepository
from taskengine.models.task import Task, TaskKind, TaskPriority, TaskStatus
from taskengine.services.task_service import TaskService


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Monday 2025-03-10 09:00 UTC
FIXED_NOW = datetime(2025, 3, 10, 9, 0, 0)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    """Mutable clock; tests may advance it with clock.now = ..."""

    class _Clock:
        now = fixed_now

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture(scope="function")
def session_factory():
    """Session factory over a fresh in-memory database.

    StaticPool keeps a single connection so every session sees the same data.
    """
    # Register the table on Base.metadata
    from taskengine.database import models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def task_service(db_session: Session, clock):
    """TaskService bound to the test session and fixed clock."""
    return TaskService(db_session, clock=clock)


@pytest.fixture
def test_owner_id():
    """Owner ID for tenancy-scoped tests."""
    return "owner-123"


@pytest.fixture
def other_owner_id():
    return "owner-456"


@pytest.fixture
def sample_task_base(test_owner_id, fixed_now):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    Default: a pending one-hour span starting an hour from now.
    """
    return {
        "id": str(uuid.uuid4()),
        "owner_id": test_owner_id,
        "title": "Test Task",
        "kind": TaskKind.SPAN,
        "priority": TaskPriority.MEDIUM,
        "start": fixed_now + timedelta(hours=1),
        "deadline": fixed_now + timedelta(hours=2),
        "status": TaskStatus.PENDING,
        "reminder_enabled": False,
        "reminders_fired": [],
        "recurrence": None,
        "depends_on": [],
        "parent_task_id": None,
        "project_id": None,
        "created_at": fixed_now,
        "updated_at": fixed_now,
    }


@pytest.fixture
def make_task(sample_task_base):
    """Factory: make_task(title=..., start=..., ...) with a fresh id each call."""

    def _make(**overrides):
        data = {**sample_task_base, "id": str(uuid.uuid4())}
        if overrides.get("kind") == TaskKind.INSTANT and "deadline" not in overrides:
            data["deadline"] = None
        data.update(overrides)
        return Task(**data)

    return _make


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def test_client(db_session: Session, clock):
    """Create a FastAPI test client with overridden database and clock dependencies."""
    from taskengine.api.app import app, get_clock
    from taskengine.database.database import get_db

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as client:
        client.headers["X-Owner-Id"] = "owner-123"
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
