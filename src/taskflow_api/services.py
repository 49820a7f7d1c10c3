from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Tuple

from fastapi import Depends

from .categorize import Categorizer, CategoryResult, get_categorizer
from .errors import CategorizationError, NotFoundError, TodoValidationError
from .models import DESCRIPTION_MAX_LENGTH, MUTABLE_FIELDS, TITLE_MAX_LENGTH, TodoEntity
from .repositories import Repository, get_repository
from .settings import get_settings

taskflow_error_logger = logging.getLogger("taskflow.error")


def _validated_title(title: Optional[str]) -> str:
    s = (title or "").strip()
    if not s:
        raise TodoValidationError("Title is required")
    if len(s) > TITLE_MAX_LENGTH:
        raise TodoValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return s


def _validated_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise TodoValidationError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")
    return description or None


# PUBLIC_INTERFACE
class TodoService:
    """
    Todo lifecycle for a single user at a time: every method takes the caller's
    user id and only ever sees that user's todos.

    Categorization happens synchronously on create (falling back to
    `default_category` when the categorizer fails) and on explicit request
    (where failures propagate).
    """

    def __init__(
        self,
        repository: Repository,
        categorizer: Categorizer,
        default_category: str = "general",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.categorizer = categorizer
        self.default_category = default_category
        self.clock = clock

    def list_todos(self, user_id: str) -> List[TodoEntity]:
        return self.repository.list(user_id)

    def get_todo(self, user_id: str, todo_id: str) -> TodoEntity:
        todo = self.repository.get(user_id, todo_id)
        if todo is None:
            raise NotFoundError()
        return todo

    def create_todo(self, user_id: str, title: Optional[str], description: Optional[str] = None) -> TodoEntity:
        clean_title = _validated_title(title)
        clean_description = _validated_description(description)

        try:
            category = self.categorizer.categorize(clean_title, clean_description).category
        except CategorizationError:
            taskflow_error_logger.warning(
                f"Categorization failed on create for user {user_id}, using '{self.default_category}'"
            )
            category = self.default_category

        now = self.clock()
        entity: TodoEntity = {
            "id": uuid.uuid4().hex,
            "title": clean_title,
            "description": clean_description,
            "completed": False,
            "category": category,
            "user_id": user_id,
            "created_at": now,
            "updated_at": now,
        }
        return self.repository.create(entity)

    def update_todo(self, user_id: str, todo_id: str, changes: Mapping[str, Any]) -> TodoEntity:
        """
        Apply a partial update. Keys absent from `changes` are left untouched;
        `title` and `completed` sent as null are ignored, `description` and
        `category` sent as null clear the field.
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise TodoValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        applied: dict[str, Any] = {}
        if changes.get("title") is not None:
            applied["title"] = _validated_title(changes["title"])
        if "description" in changes:
            applied["description"] = _validated_description(changes["description"])
        if changes.get("completed") is not None:
            applied["completed"] = bool(changes["completed"])
        if "category" in changes:
            applied["category"] = changes["category"]

        updated = self.repository.update(user_id, todo_id, applied, self.clock())
        if updated is None:
            raise NotFoundError()
        return updated

    def toggle_todo(self, user_id: str, todo_id: str) -> TodoEntity:
        current = self.get_todo(user_id, todo_id)
        return self.update_todo(user_id, todo_id, {"completed": not current["completed"]})

    def delete_todo(self, user_id: str, todo_id: str) -> None:
        if not self.repository.delete(user_id, todo_id):
            raise NotFoundError()

    def categorize_todo(self, user_id: str, todo_id: str) -> Tuple[TodoEntity, CategoryResult]:
        todo = self.get_todo(user_id, todo_id)
        result = self.categorizer.categorize(todo["title"], todo["description"])
        updated = self.repository.update(user_id, todo_id, {"category": result.category}, self.clock())
        if updated is None:
            # Deleted between the read and the write
            raise NotFoundError()
        return updated, result


# PUBLIC_INTERFACE
def get_todo_service(
    repository: Repository = Depends(get_repository),
    categorizer: Categorizer = Depends(get_categorizer),
) -> TodoService:
    """
    FastAPI dependency building the service from the configured collaborators.
    """
    return TodoService(repository, categorizer, default_category=get_settings().default_category)
