"""Regression tests for application route registration."""
from collections import Counter

from opus_coach.main import app

HTTP_METHODS = {"get", "post", "put", "patch", "delete"}


def _operations():
    return [
        (path, method, operation)
        for path, item in app.openapi()["paths"].items()
        for method, operation in item.items()
        if method in HTTP_METHODS
    ]


def test_routes_registered_once() -> None:
    """Ensure no endpoint is mounted multiple times."""
    counts = Counter(operation["operationId"] for _, _, operation in _operations())
    assert counts
    assert max(counts.values()) == 1


def test_generation_and_persistence_task_routes_are_distinct() -> None:
    operations = {(path, method) for path, method, _ in _operations()}

    assert ("/ai/goals/{goal_id}/tasks", "post") in operations
    assert ("/goals/{goal_id}/tasks", "post") in operations
    assert ("/reflections/{review_id}/analysis/retry", "post") in operations
    assert ("/ai/reflection-prompt", "get") in operations
