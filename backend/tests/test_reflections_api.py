from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from opus_coach.db.deps import get_db
from opus_coach.db.models.analysis_job import AnalysisJob
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.task import Task
from opus_coach.db.models.user import User
from opus_coach.db.models.weekly_review import WeeklyReview
from opus_coach.main import app
from opus_coach.services.generation.chain import ProviderFallbackChain
from opus_coach.services.generation.providers import TextProvider
from opus_coach.services.generation.router import GenerationRouter
from opus_coach.services.generation.types import GenerationKind


class _StubProvider(TextProvider):
    name = "anthropic"

    def __init__(self, response: str | None = None, *, available: bool = True):
        self.response = response
        self._available = available
        self.prompts: list[str] = []

    @property
    def available(self) -> bool:
        return self._available

    def complete(self, kind: GenerationKind, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.response is None:
            raise ConnectionError("provider unreachable")
        return self.response


def _router(provider: TextProvider) -> GenerationRouter:
    return GenerationRouter(ProviderFallbackChain([provider], {kind: ["anthropic"] for kind in GenerationKind}))


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
    WeeklyReview.__table__.create(bind=engine)
    AnalysisJob.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.generation_router = _router(_StubProvider(available=False))
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()
    app.state.generation_router = None


def _seed_user(session_factory, *, days_ago: float = 12, week: int = 2):
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(
            User(
                id=user_id,
                north_star="Coach first-time managers",
                program_week=week,
                program_start_date=datetime.now(timezone.utc) - timedelta(days=days_ago),
            )
        )
        session.commit()
        return user_id
    finally:
        session.close()


def test_sparse_reflection_gets_fallback_analysis(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)

    response = test_client.post(
        "/reflections",
        json={"user_id": str(user_id), "wins": "Kept my morning ritual", "lessons": "", "next_steps": ""},
    )

    assert response.status_code == 202
    body = response.json()
    assert body["week_number"] == 2
    assert body["status"] == "pending"

    analysis = test_client.get(f"/reflections/{body['review_id']}/analysis").json()
    assert analysis["status"] == "succeeded"
    assert analysis["used_fallback"] is True
    assert analysis["provider"] is None
    assert analysis["attempts"] == 1
    assert analysis["analysis"]["insights"]
    assert analysis["analysis"]["nextWeekFocus"].startswith("Continue building on Week 2")


def test_reflection_analysis_uses_provider_and_week_context(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    session = session_factory()
    try:
        goal = Goal(user_id=user_id, title="Morning ritual", description="", category="personal", week_number=2, progress=50)
        session.add(goal)
        session.flush()
        session.add(Task(user_id=user_id, goal_id=goal.id, title="Plan Monday", completed=True))
        session.commit()
    finally:
        session.close()
    provider = _StubProvider(
        json.dumps(
            {
                "insights": ["Your mornings are working."],
                "patterns": ["Consistency beats intensity."],
                "recommendations": ["Invite a colleague to your planning block."],
                "nextWeekFocus": "Bring your rhythm into your relationships.",
            }
        )
    )
    app.state.generation_router = _router(provider)

    body = test_client.post(
        "/reflections",
        json={"user_id": str(user_id), "wins": "Planned every day", "lessons": "Evenings are weak"},
    ).json()
    analysis = test_client.get(f"/reflections/{body['review_id']}/analysis").json()

    assert analysis["status"] == "succeeded"
    assert analysis["provider"] == "anthropic"
    assert analysis["used_fallback"] is False
    assert analysis["analysis"]["insights"] == ["Your mornings are working."]
    prompt = provider.prompts[0]
    assert "NEXT WEEK THEME: Network" in prompt
    assert "Morning ritual (50% complete)" in prompt
    assert "Tasks Completed: Plan Monday" in prompt


def test_retry_reruns_analysis(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    body = test_client.post("/reflections", json={"user_id": str(user_id)}).json()
    provider = _StubProvider(json.dumps({"insights": ["Fresh look"], "nextWeekFocus": "Network"}))
    app.state.generation_router = _router(provider)

    response = test_client.post(
        f"/reflections/{body['review_id']}/analysis/retry",
        json={"user_id": str(user_id)},
    )

    assert response.status_code == 202
    assert response.json()["status"] == "pending"
    analysis = test_client.get(f"/reflections/{body['review_id']}/analysis").json()
    assert analysis["status"] == "succeeded"
    assert analysis["used_fallback"] is False
    assert analysis["analysis"]["insights"] == ["Fresh look"]


@pytest.mark.parametrize("job_status", ["running", "pending"])
def test_retry_for_unfinished_job_is_conflict(client, job_status):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    body = test_client.post("/reflections", json={"user_id": str(user_id)}).json()
    session = session_factory()
    try:
        job = session.get(AnalysisJob, UUID(body["job_id"]))
        job.status = job_status
        session.commit()
    finally:
        session.close()

    response = test_client.post(
        f"/reflections/{body['review_id']}/analysis/retry",
        json={"user_id": str(user_id)},
    )

    assert response.status_code == 409


def test_reflection_for_explicit_invalid_week_is_400(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)

    response = test_client.post("/reflections", json={"user_id": str(user_id), "week": 0})

    assert response.status_code == 400


def test_reflection_before_program_start_is_409(client):
    test_client, session_factory = client
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(User(id=user_id, program_week=0))
        session.commit()
    finally:
        session.close()

    response = test_client.post("/reflections", json={"user_id": str(user_id), "wins": "Something"})

    assert response.status_code == 409


def test_analysis_for_unknown_review_is_404(client):
    test_client, _ = client

    response = test_client.get(f"/reflections/{uuid4()}/analysis")

    assert response.status_code == 404


def test_analysis_hidden_from_other_users(client):
    test_client, session_factory = client
    owner = _seed_user(session_factory)
    body = test_client.post("/reflections", json={"user_id": str(owner)}).json()

    response = test_client.get(
        f"/reflections/{body['review_id']}/analysis",
        params={"user_id": str(uuid4())},
    )

    assert response.status_code == 404
