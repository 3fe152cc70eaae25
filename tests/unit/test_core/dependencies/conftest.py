"""Shared fixtures for dependency engine tests."""

from datetime import datetime, timedelta, timezone

import pytest

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def task_dict(task_id, deps=None, status="pending", priority=3, minutes=0, title=None):
    """Build a raw task mapping the way a task store would hand it over."""
    return {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "status": status,
        "dependencies": list(deps or []),
        "priority": priority,
        "createdAt": (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
    }


@pytest.fixture
def make_task():
    """Factory fixture for raw task mappings."""
    return task_dict


@pytest.fixture
def chain_tasks():
    """A(no deps) <- B <- C, all pending."""
    return [
        task_dict("A"),
        task_dict("B", ["A"]),
        task_dict("C", ["B"]),
    ]


@pytest.fixture
def ready_set_tasks():
    """A completed, B depends on A, C depends on B, D independent."""
    return [
        task_dict("A", status="completed"),
        task_dict("B", ["A"]),
        task_dict("C", ["B"]),
        task_dict("D"),
    ]


@pytest.fixture
def two_cycle_tasks():
    """A and B depend on each other."""
    return [
        task_dict("A", ["B"]),
        task_dict("B", ["A"]),
    ]
