from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from ..auth import UserIdentity, get_current_user
from ..errors import TodoValidationError
from ..schemas import (
    CategorizeRequest,
    CategorizeResponse,
    MessageResponse,
    TodoCreate,
    TodoOut,
    TodoUpdate,
)
from ..services import TodoService, get_todo_service

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
    responses={
        401: {"description": "Not authenticated"},
        500: {"description": "Internal server error"},
    },
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List all todos of the current user, newest first.",
)
def list_todos(
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> List[TodoOut]:
    """
    List the caller's todos.
    """
    return [TodoOut(**item) for item in service.list_todos(user.id)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description=(
        "Create a new Todo item. A single-word category is assigned by the language model; "
        "if the model is unavailable the default category is used instead."
    ),
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_todo(
    payload: TodoCreate,
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    """
    Create a new Todo.
    """
    created = service.create_todo(user.id, payload.title, payload.description)
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/categorize",
    response_model=CategorizeResponse,
    summary="Categorize Todo",
    description="Ask the language model for a new category and store it on the todo.",
    responses={
        400: {"description": "Todo ID is required"},
        404: {"description": "Todo not found"},
        502: {"description": "Categorization service unavailable"},
    },
)
def categorize_todo(
    payload: CategorizeRequest,
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> CategorizeResponse:
    if not payload.todo_id:
        raise TodoValidationError("Todo ID is required")
    todo, result = service.categorize_todo(user.id, payload.todo_id)
    return CategorizeResponse(
        todo=TodoOut(**todo),  # type: ignore[arg-type]
        category=result.category,
        confidence=result.confidence,
    )


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(
    todo_id: str,
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    return TodoOut(**service.get_todo(user.id, todo_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Update any subset of title, description, completed and category. "
        "Fields omitted from the body are left unchanged."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error"},
        404: {"description": "Todo not found"},
    },
)
def update_todo(
    todo_id: str,
    payload: TodoUpdate,
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    """
    Partial update of a Todo item.
    """
    updated = service.update_todo(user.id, todo_id, payload.changes())
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Todo",
    description="Flip the completion flag of a Todo item.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
def toggle_todo(
    todo_id: str,
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    return TodoOut(**service.toggle_todo(user.id, todo_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageResponse,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        200: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: str,
    user: UserIdentity = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> MessageResponse:
    """
    Delete a Todo. Returns a confirmation message, 404 if not found.
    """
    service.delete_todo(user.id, todo_id)
    return MessageResponse(message="Todo deleted successfully")
