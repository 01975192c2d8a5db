# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from task_api.database import create_tables, get_db
from task_api.main import app
from task_api.models import Task, TaskPriority, TaskStatus, User

NOW = datetime(2030, 1, 15, 12, 0, 0)


@pytest.fixture()
def engine():
    """Fresh in-memory SQLite database per test, shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: startup would touch the configured database.
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(username: Optional[str] = None, deleted: bool = False, **fields) -> User:
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password="not-a-real-hash",
            first_name=fields.pop("first_name", username.title()),
            last_name=fields.pop("last_name", "Tester"),
            deleted_at=NOW if deleted else None,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_task(db):
    """Insert a task row directly, bypassing the mutation engine."""
    counter = {"n": 0}

    def _make_task(title: Optional[str] = None, deleted: bool = False, **fields) -> Task:
        counter["n"] += 1
        status = TaskStatus(fields.pop("status", TaskStatus.PENDING))
        created_at = fields.pop("created_at", NOW + timedelta(minutes=counter["n"]))
        task = Task(
            title=title or f"Task {counter['n']}",
            status=status,
            priority=TaskPriority(fields.pop("priority", TaskPriority.MEDIUM)),
            completed_at=fields.pop("completed_at", created_at if status is TaskStatus.COMPLETED else None),
            created_at=created_at,
            updated_at=created_at,
            deleted_at=NOW if deleted else None,
            **fields,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make_task
