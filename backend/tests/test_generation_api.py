from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
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
from opus_coach.services.generation.chain import ProviderFallbackChain
from opus_coach.services.generation.providers import AnthropicProvider, OpenAIProvider, TextProvider
from opus_coach.services.generation.router import GenerationRouter
from opus_coach.services.generation.types import GenerationKind


class _ScriptedProvider(TextProvider):
    def __init__(self, name: str, response: str):
        self.name = name
        self.response = response
        self.calls = 0

    @property
    def available(self) -> bool:
        return True

    def complete(self, kind: GenerationKind, prompt: str) -> str:
        self.calls += 1
        return self.response


def _offline_router() -> GenerationRouter:
    providers = [
        AnthropicProvider(None, model="m", fast_model="f", timeout=1.0),
        OpenAIProvider(None, model="m", fast_model="f", timeout=1.0),
    ]
    orders = {kind: ["anthropic", "openai"] for kind in GenerationKind}
    return GenerationRouter(ProviderFallbackChain(providers, orders))


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
    app.state.generation_router = _offline_router()
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()
    app.state.generation_router = None


def _seed_user(session_factory, *, days_ago: float = 10, week: int = 1, north_star: str | None = "Run a design studio"):
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(
            User(
                id=user_id,
                north_star=north_star,
                program_week=week,
                program_start_date=datetime.now(timezone.utc) - timedelta(days=days_ago),
            )
        )
        session.commit()
        return user_id
    finally:
        session.close()


def _seed_goal(session_factory, user_id, *, week_number=2, title="Establish a morning ritual"):
    session = session_factory()
    try:
        goal = Goal(user_id=user_id, title=title, description="15 minutes daily", category="personal", week_number=week_number)
        session.add(goal)
        session.commit()
        session.refresh(goal)
        return goal.id
    finally:
        session.close()


def test_goal_suggestions_fall_back_to_rhythm_content_without_providers(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, days_ago=10)

    response = test_client.post("/ai/goals", json={"user_id": str(user_id)})

    assert response.status_code == 200
    body = response.json()
    assert body["week"] == 2
    assert body["used_fallback"] is True
    assert body["provider"] is None
    assert len(body["goals"]) == 3
    assert [goal["category"] for goal in body["goals"]] == ["personal", "professional", "personal"]
    assert all(goal["weekNumber"] == 2 for goal in body["goals"])
    assert [attempt["outcome"] for attempt in body["attempts"]] == ["skipped", "skipped"]

    session = session_factory()
    try:
        assert session.get(User, user_id).program_week == 2
    finally:
        session.close()


def test_goal_suggestions_use_provider_output(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, days_ago=1)
    payload = [
        {
            "title": "Write your values manifesto",
            "description": "One page on what matters.",
            "category": "personal",
            "reasoning": "Purpose first.",
            "weekNumber": 1,
        }
    ]
    provider = _ScriptedProvider("anthropic", "Sure!\n" + json.dumps(payload))
    app.state.generation_router = GenerationRouter(
        ProviderFallbackChain([provider], {kind: ["anthropic"] for kind in GenerationKind})
    )

    response = test_client.post("/ai/goals", json={"user_id": str(user_id)})

    body = response.json()
    assert body["used_fallback"] is False
    assert body["provider"] == "anthropic"
    assert body["goals"][0]["title"] == "Write your values manifesto"
    assert provider.calls == 1


def test_goal_suggestions_for_explicit_week(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, days_ago=1)

    body = test_client.post("/ai/goals", json={"user_id": str(user_id), "week": 5}).json()

    assert body["week"] == 5
    assert body["goals"][0]["category"] == "learning"


def test_goal_suggestions_reject_invalid_week(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)

    response = test_client.post("/ai/goals", json={"user_id": str(user_id), "week": 6})

    assert response.status_code == 400


def test_goal_suggestions_require_started_program(client):
    test_client, session_factory = client
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(User(id=user_id, north_star="Teach", program_week=0))
        session.commit()
    finally:
        session.close()

    response = test_client.post("/ai/goals", json={"user_id": str(user_id)})

    assert response.status_code == 409


def test_goal_suggestions_require_north_star(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, north_star=None)

    response = test_client.post("/ai/goals", json={"user_id": str(user_id)})

    assert response.status_code == 400


def test_goal_suggestions_unknown_user_is_404(client):
    test_client, _ = client

    response = test_client.post("/ai/goals", json={"user_id": str(uuid4())})

    assert response.status_code == 404


def test_task_suggestions_fall_back_to_basic_breakdown(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, days_ago=10)
    goal_id = _seed_goal(session_factory, user_id)

    response = test_client.post(f"/ai/goals/{goal_id}/tasks", json={"user_id": str(user_id)})

    assert response.status_code == 200
    body = response.json()
    assert body["used_fallback"] is True
    assert body["week"] == 2
    assert [task["title"] for task in body["tasks"]][0] == "Research: Establish a morning ritual"
    assert body["tasks"][0]["recommendedSchedule"] == "Morning"


def test_task_suggestions_for_someone_elses_goal_is_404(client):
    test_client, session_factory = client
    owner = _seed_user(session_factory)
    other = _seed_user(session_factory)
    goal_id = _seed_goal(session_factory, owner)

    response = test_client.post(f"/ai/goals/{goal_id}/tasks", json={"user_id": str(other)})

    assert response.status_code == 404


def test_reflection_prompt_falls_back_to_week_question(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, days_ago=16)

    response = test_client.get("/ai/reflection-prompt", params={"user_id": str(user_id)})

    assert response.status_code == 200
    body = response.json()
    assert body["week"] == 3
    assert body["used_fallback"] is True
    # Day 16 is the third day of week 3.
    assert body["prompt"] == "How did you add value to others this week?"


def test_reflection_prompt_uses_provider_and_recent_activity(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory, days_ago=10)
    goal_id = _seed_goal(session_factory, user_id, week_number=2)
    session = session_factory()
    try:
        session.add(Task(user_id=user_id, goal_id=goal_id, title="Plan Monday", completed=True))
        session.commit()
    finally:
        session.close()
    provider = _ScriptedProvider("anthropic", '{"prompt": "What made Monday planning stick?"}')
    prompts = []
    original_complete = provider.complete

    def recording_complete(kind, prompt):
        prompts.append(prompt)
        return original_complete(kind, prompt)

    provider.complete = recording_complete
    app.state.generation_router = GenerationRouter(
        ProviderFallbackChain([provider], {kind: ["anthropic"] for kind in GenerationKind})
    )

    body = test_client.get("/ai/reflection-prompt", params={"user_id": str(user_id)}).json()

    assert body["used_fallback"] is False
    assert body["provider"] == "anthropic"
    assert body["prompt"] == "What made Monday planning stick?"
    assert "Establish a morning ritual (0% complete)" in prompts[0]
    assert "Plan Monday" in prompts[0]


def test_reflection_prompt_requires_started_program(client):
    test_client, session_factory = client
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(User(id=user_id, program_week=0))
        session.commit()
    finally:
        session.close()

    response = test_client.get("/ai/reflection-prompt", params={"user_id": str(user_id)})

    assert response.status_code == 409
