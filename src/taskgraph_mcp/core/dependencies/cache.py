"""Caller-side cache port for derived dependency graphs.

The engine itself never caches. Request handlers may keep recently built
graphs here, keyed by list id. An entry is only served back when the
fingerprint of the tasks it was built from matches the fingerprint of the
tasks the caller just loaded, so task changes made outside the handlers
never surface as a stale graph. Handlers still call ``invalidate`` after
their own writes.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Iterable, Optional, Protocol, Tuple, runtime_checkable

from taskgraph_mcp.core.dependencies.models import DependencyGraph, Task

logger = logging.getLogger(__name__)


def graph_fingerprint(tasks: Iterable[Task]) -> str:
    """
    Digest of everything a ``DependencyGraph`` is derived from.

    Covers task order, ids, statuses and raw dependency lists. Titles,
    priorities and timestamps do not affect the graph and are left out.
    """
    digest = hashlib.sha256()
    for task in tasks:
        digest.update(json.dumps([task.id, task.status.value, task.dependencies]).encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


@runtime_checkable
class GraphCache(Protocol):
    """Storage for derived graphs keyed by list id."""

    def get(self, list_id: str, fingerprint: Optional[str] = None) -> Optional[DependencyGraph]: ...

    def set(self, list_id: str, graph: DependencyGraph, fingerprint: Optional[str] = None) -> None: ...

    def invalidate(self, list_id: str) -> None: ...


class TTLGraphCache:
    """In-memory ``GraphCache`` with per-entry expiry and a size bound.

    Expired entries, and entries whose fingerprint differs from the one
    asked for, are dropped when read. Once ``max_entries`` is exceeded the
    least recently stored entries are evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_entries: int = 20,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Optional[str], DependencyGraph]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, list_id: str, fingerprint: Optional[str] = None) -> Optional[DependencyGraph]:
        with self._lock:
            entry = self._entries.get(list_id)
            if entry is None:
                return None
            stored_at, stored_fingerprint, graph = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[list_id]
                logger.debug("Graph cache entry expired", extra={"list_id": list_id})
                return None
            if fingerprint is not None and stored_fingerprint != fingerprint:
                del self._entries[list_id]
                logger.debug("Graph cache entry stale", extra={"list_id": list_id})
                return None
            return graph

    def set(self, list_id: str, graph: DependencyGraph, fingerprint: Optional[str] = None) -> None:
        with self._lock:
            self._entries.pop(list_id, None)
            self._entries[list_id] = (self._clock(), fingerprint, graph)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Graph cache entry evicted", extra={"list_id": evicted})

    def invalidate(self, list_id: str) -> None:
        with self._lock:
            self._entries.pop(list_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
