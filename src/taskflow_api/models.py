from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Storage-level representation of a Todo item, shared by every repository
    backend.

    Fields:
    - id: Opaque unique identifier (uuid4 hex), immutable
    - title: Short title (1..200 chars, trimmed on input)
    - description: Optional detailed description (<= 500 chars)
    - completed: Boolean completion flag
    - category: Optional single-word label assigned by the categorizer
    - user_id: Identifier of the owning user; every lookup filters on it
    - created_at: Local creation timestamp, never changes
    - updated_at: Local timestamp of the last mutation
    """

    id: str
    title: str
    description: Optional[str]
    completed: bool
    category: Optional[str]
    user_id: str
    created_at: datetime
    updated_at: datetime


# Fields a caller may change after creation.
MUTABLE_FIELDS = frozenset({"title", "description", "completed", "category"})

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500
