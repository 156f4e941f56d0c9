from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from opus_coach.db.deps import get_db
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.task import Task
from opus_coach.db.models.user import User
from opus_coach.main import app


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    User.__table__.create(bind=engine)
    Goal.__table__.create(bind=engine)
    Task.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app), TestingSessionLocal
    app.dependency_overrides.clear()


def _seed_user(session_factory):
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(User(id=user_id, program_week=1, program_start_date=datetime.now(timezone.utc)))
        session.commit()
        return user_id
    finally:
        session.close()


def _create_goal(test_client, user_id, **overrides):
    payload = {"user_id": str(user_id), "title": "Write a personal mission statement", "week_number": 1}
    payload.update(overrides)
    response = test_client.post("/goals", json=payload)
    assert response.status_code == 201
    return response.json()


def test_create_and_list_goals_by_week(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    created = _create_goal(test_client, user_id, source="ai", category="professional")
    _create_goal(test_client, user_id, title="Map your network", week_number=3)

    assert created["progress"] == 0
    assert created["source"] == "ai"
    assert created["category"] == "professional"

    week_one = test_client.get("/goals", params={"user_id": str(user_id), "week": 1}).json()
    everything = test_client.get("/goals", params={"user_id": str(user_id)}).json()

    assert [goal["title"] for goal in week_one["goals"]] == ["Write a personal mission statement"]
    assert len(everything["goals"]) == 2
    assert week_one["request_id"]


def test_create_goal_for_unknown_user_is_404(client):
    test_client, _ = client

    response = test_client.post("/goals", json={"user_id": str(uuid4()), "title": "Orphan"})

    assert response.status_code == 404


def test_create_goal_rejects_unknown_category(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)

    response = test_client.post("/goals", json={"user_id": str(user_id), "title": "X", "category": "hobby"})

    assert response.status_code == 422


def test_completing_tasks_updates_goal_progress(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    goal = _create_goal(test_client, user_id)
    task_ids = []
    for title in ("Draft values", "Share with a friend", "Post on the fridge"):
        response = test_client.post(
            f"/goals/{goal['id']}/tasks",
            json={"user_id": str(user_id), "title": title, "recommended_schedule": "Morning"},
        )
        assert response.status_code == 201
        task_ids.append(response.json()["id"])

    response = test_client.patch(f"/tasks/{task_ids[0]}", json={"user_id": str(user_id), "completed": True})

    assert response.status_code == 200
    body = response.json()
    assert body["completed"] is True
    assert body["completed_at"] is not None
    assert body["goal_progress"] == 33

    body = test_client.patch(f"/tasks/{task_ids[0]}", json={"user_id": str(user_id), "completed": False}).json()
    assert body["completed_at"] is None
    assert body["goal_progress"] == 0


def test_rename_task_keeps_completion(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    goal = _create_goal(test_client, user_id)
    task = test_client.post(f"/goals/{goal['id']}/tasks", json={"user_id": str(user_id), "title": "Old"}).json()

    body = test_client.patch(f"/tasks/{task['id']}", json={"user_id": str(user_id), "title": "New"}).json()

    assert body["title"] == "New"
    assert body["completed"] is False


def test_task_endpoints_hide_other_users_data(client):
    test_client, session_factory = client
    owner = _seed_user(session_factory)
    other = _seed_user(session_factory)
    goal = _create_goal(test_client, owner)
    task = test_client.post(f"/goals/{goal['id']}/tasks", json={"user_id": str(owner), "title": "Mine"}).json()

    create = test_client.post(f"/goals/{goal['id']}/tasks", json={"user_id": str(other), "title": "Theirs"})
    update = test_client.patch(f"/tasks/{task['id']}", json={"user_id": str(other), "completed": True})

    assert create.status_code == 404
    assert update.status_code == 404
