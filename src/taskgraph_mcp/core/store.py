"""Task store port.

Persistence of tasks and lists lives outside this package. Tool handlers
read a consistent snapshot with one ``load_tasks`` call per request and pass
it to the engine; writes go through ``save_task`` only after validation.
"""

from typing import List, Protocol, runtime_checkable

from taskgraph_mcp.core.dependencies.models import Task


@runtime_checkable
class TaskStore(Protocol):
    """Read/write access to the tasks of a list."""

    def load_tasks(self, list_id: str) -> List[Task]:
        """Return every task of ``list_id``; raise ``KeyError`` if the list is unknown."""
        ...

    def save_task(self, list_id: str, task: Task) -> None:
        """Persist ``task`` (replacing any task with the same id) in ``list_id``."""
        ...
