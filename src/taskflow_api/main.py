import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import TaskFlowError, UnauthorizedError
from .log import LogConfig
from .routers import dashboard as dashboard_router
from .routers import todos as todos_router
from .settings import get_settings

taskflow_error_logger = logging.getLogger("taskflow.error")

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Create, update, toggle, delete and categorize the current user's todos.",
    },
    {"name": "dashboard", "description": "Aggregated statistics over the current user's todos."},
]

_settings = get_settings()
LogConfig().initialize_loggers(_settings)

app = FastAPI(
    title="TaskFlow AI",
    description="Personal task tracking API with automatic categorization of todos.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": [... pydantic/fastapi error details ...]
        }
    """
    # Debug level only, the body may hold personal data
    taskflow_error_logger.debug(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": exc.errors(),
            }
        ),
    )


@app.exception_handler(TaskFlowError)
async def taskflow_exception_handler(request: Request, exc: TaskFlowError) -> JSONResponse:
    """
    Map domain errors onto their status code with a `{"error": <message>}` body.
    """
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log unexpected failures and answer with a generic message that leaks nothing.
    """
    taskflow_error_logger.error(f"Unexpected error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(todos_router.router)
app.include_router(dashboard_router.router)
