from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH

# Responses are camelCase on the wire; requests accept either form.
_CAMEL_CONFIG = dict(alias_generator=to_camel, populate_by_name=True)


def _clean_title(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


def _clean_description(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    # Stored as sent, only an empty string becomes null
    if len(v) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"description must be at most {DESCRIPTION_MAX_LENGTH} characters")
    return v or None


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item. The category is assigned by the server.
    """

    model_config = ConfigDict(
        **_CAMEL_CONFIG,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
            }
        },
    )

    title: str = Field(..., description="Short title for the todo item", max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only fields present in the request body are applied.
    """

    model_config = ConfigDict(
        **_CAMEL_CONFIG,
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "completed": True,
            }
        },
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item", max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    category: Optional[str] = Field(default=None, description="Single-word category label", max_length=50)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..200 length.
        """
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        s = v.strip().lower()
        if not s or len(s.split()) != 1:
            raise ValueError("category must be a single word")
        return s

    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        **_CAMEL_CONFIG,
        json_schema_extra={
            "example": {
                "id": "3f0c2a9e1b6d4c7f8a2e5d1b9c0f4a7e",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "category": "shopping",
                "userId": "user_123",
                "createdAt": "2025-01-25T10:15:30.123456",
                "updatedAt": "2025-01-26T09:00:00.000001",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    category: Optional[str] = Field(default=None, description="Single-word category label")
    user_id: str = Field(..., description="Identifier of the owning user")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class CategorizeRequest(BaseModel):
    """
    Body of the explicit categorization request.
    """

    model_config = ConfigDict(**_CAMEL_CONFIG)

    todo_id: Optional[str] = Field(default=None, description="Identifier of the todo to categorize")


# PUBLIC_INTERFACE
class CategorizeResponse(BaseModel):
    model_config = ConfigDict(**_CAMEL_CONFIG)

    todo: TodoOut
    category: str = Field(..., description="Category returned by the model")
    confidence: float = Field(..., ge=0, le=1, description="Model confidence in [0, 1]")


# PUBLIC_INTERFACE
class DashboardStats(BaseModel):
    """
    Dashboard counters for the current user.
    """

    model_config = ConfigDict(
        **_CAMEL_CONFIG,
        json_schema_extra={
            "example": {
                "totalTasks": 3,
                "completedTasks": 2,
                "activeTasks": 1,
                "completionRate": 67,
                "productivityChange": 100,
                "tasksChange": -1,
                "thisWeekCompleted": 2,
            }
        },
    )

    total_tasks: int = Field(..., description="All todos of the user")
    completed_tasks: int = Field(..., description="Completed todos")
    active_tasks: int = Field(..., description="Todos not yet completed")
    completion_rate: int = Field(..., description="Completed share of all todos, in percent")
    productivity_change: int = Field(
        ..., description="Completions over the last 7 days compared to the 7 days before, in percent"
    )
    tasks_change: int = Field(..., description="Todos created today minus todos created yesterday")
    this_week_completed: int = Field(..., description="Todos completed over the last 7 days")


# PUBLIC_INTERFACE
class MessageResponse(BaseModel):
    message: str
