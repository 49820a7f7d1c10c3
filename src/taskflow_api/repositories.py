from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .models import TodoEntity
from .settings import get_settings


@dataclass(frozen=True)
class CountQuery:
    """
    Filters for counting a user's todos. Every range is half-open: [from, before).
    """
    completed: Optional[bool] = None
    created_from: Optional[datetime] = None
    created_before: Optional[datetime] = None
    updated_from: Optional[datetime] = None
    updated_before: Optional[datetime] = None

    def matches(self, todo: TodoEntity) -> bool:
        if self.completed is not None and todo["completed"] != self.completed:
            return False
        if self.created_from is not None and todo["created_at"] < self.created_from:
            return False
        if self.created_before is not None and todo["created_at"] >= self.created_before:
            return False
        if self.updated_from is not None and todo["updated_at"] < self.updated_from:
            return False
        if self.updated_before is not None and todo["updated_at"] >= self.updated_before:
            return False
        return True


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for todo storage backends.

    Every read and write is scoped to a user id: a todo owned by someone else
    behaves exactly like a missing one.
    """

    @abstractmethod
    def create(self, entity: TodoEntity) -> TodoEntity:
        """Persist a fully populated TodoEntity and return the stored copy."""

    @abstractmethod
    def get(self, user_id: str, todo_id: str) -> Optional[TodoEntity]:
        """Return the user's TodoEntity by id, or None if not found."""

    @abstractmethod
    def update(
        self, user_id: str, todo_id: str, changes: Mapping[str, Any], updated_at: datetime
    ) -> Optional[TodoEntity]:
        """
        Apply `changes` to the user's TodoEntity and stamp `updated_at`.
        The stamp never moves backwards. Return the updated entity or None if not found.
        """

    @abstractmethod
    def delete(self, user_id: str, todo_id: str) -> bool:
        """Delete the user's TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, user_id: str) -> List[TodoEntity]:
        """Return all of the user's TodoEntities, newest created_at first."""

    @abstractmethod
    def count(self, user_id: str, query: Optional[CountQuery] = None) -> int:
        """Return how many of the user's TodoEntities match `query`."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}

    def _owned(self, user_id: str, todo_id: str) -> Optional[TodoEntity]:
        item = self._items.get(todo_id)
        if item is None or item["user_id"] != user_id:
            return None
        return item

    def create(self, entity: TodoEntity) -> TodoEntity:
        stored: TodoEntity = entity.copy()
        with self._lock:
            self._items[stored["id"]] = stored
        return stored.copy()

    def get(self, user_id: str, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._owned(user_id, todo_id)
            return None if item is None else item.copy()

    def update(
        self, user_id: str, todo_id: str, changes: Mapping[str, Any], updated_at: datetime
    ) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._owned(user_id, todo_id)
            if existing is None:
                return None

            updated = existing.copy()
            for field in ("title", "description", "completed", "category"):
                if field in changes:
                    updated[field] = changes[field]  # type: ignore[literal-required]
            updated["updated_at"] = max(updated_at, existing["updated_at"])

            self._items[todo_id] = updated
            return updated.copy()

    def delete(self, user_id: str, todo_id: str) -> bool:
        with self._lock:
            if self._owned(user_id, todo_id) is None:
                return False
            del self._items[todo_id]
            return True

    def list(self, user_id: str) -> List[TodoEntity]:
        with self._lock:
            items = [t.copy() for t in self._items.values() if t["user_id"] == user_id]
        return sorted(items, key=lambda t: t["created_at"], reverse=True)

    def count(self, user_id: str, query: Optional[CountQuery] = None) -> int:
        q = query or CountQuery()
        with self._lock:
            return sum(1 for t in self._items.values() if t["user_id"] == user_id and q.matches(t))


@lru_cache
def _build_repository(backend: str, sqlite_db_path: str) -> Repository:
    if backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(sqlite_db_path)
    return InMemoryRepository()


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Return the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by SQLITE_DB_PATH
    """
    settings = get_settings()
    return _build_repository(settings.persistence_backend, settings.sqlite_db_path)
