"""Shared fixtures for MCP tool tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from taskgraph_mcp.config import ServerConfig
from taskgraph_mcp.core.dependencies import Task, TTLGraphCache
from taskgraph_mcp.tools import register_dependency_tools

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


class InMemoryTaskStore:
    """Dict-backed task store keyed by list id."""

    def __init__(self, lists=None):
        self.lists = {list_id: list(tasks) for list_id, tasks in (lists or {}).items()}
        self.saved = []

    def load_tasks(self, list_id):
        return list(self.lists[list_id])

    def save_task(self, list_id, task):
        tasks = self.lists.setdefault(list_id, [])
        for index, existing in enumerate(tasks):
            if existing.id == task.id:
                tasks[index] = task
                break
        else:
            tasks.append(task)
        self.saved.append((list_id, task))


def make_task(task_id, deps=None, status="pending", priority=3, minutes=0):
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        status=status,
        dependencies=list(deps or []),
        priority=priority,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def task_factory():
    return make_task


@pytest.fixture
def mock_mcp():
    """Create a mock FastMCP server that records registered tools by name."""
    mcp = MagicMock()
    mcp._tools = {}

    def mock_tool(*args, **kwargs):
        def decorator(func):
            mcp._tools[kwargs.get("name", func.__name__)] = func
            return func

        return decorator

    mcp.tool = mock_tool
    return mcp


@pytest.fixture
def config():
    return ServerConfig(max_dependencies_per_task=3, max_tasks_per_list=10, ready_tasks_default_limit=2)


@pytest.fixture
def store():
    """Store with one list: A done, B and D ready, C waiting on B."""
    return InMemoryTaskStore(
        {
            "main": [
                make_task("A", status="completed"),
                make_task("B", ["A"], priority=2, minutes=1),
                make_task("C", ["B"]),
                make_task("D", priority=5, minutes=2),
            ],
            "empty": [],
        }
    )


@pytest.fixture
def cache():
    return TTLGraphCache(ttl_seconds=60, max_entries=5)


@pytest.fixture
def tools(mock_mcp, config, store, cache):
    """Registered tool functions keyed by canonical name."""
    register_dependency_tools(mock_mcp, config, store, cache=cache)
    return mock_mcp._tools
