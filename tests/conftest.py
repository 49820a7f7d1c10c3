import os
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Settings are read from the environment, set them before the app is imported
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ.pop("OPENAI_API_KEY", None)

from taskflow_api.auth import create_session_token  # noqa: E402
from taskflow_api.categorize import Categorizer, CategoryResult, get_categorizer  # noqa: E402
from taskflow_api.errors import CategorizationError  # noqa: E402
from taskflow_api.main import app  # noqa: E402
from taskflow_api.repositories import InMemoryRepository, get_repository  # noqa: E402
from taskflow_api.settings import get_settings  # noqa: E402


class FakeCategorizer(Categorizer):
    """Categorizer returning a fixed answer, or failing when `fail` is set."""

    def __init__(self, category: str = "work", confidence: float = 0.9) -> None:
        self.result = CategoryResult(category=category, confidence=confidence)
        self.fail = False
        self.calls: List[Tuple[str, Optional[str]]] = []

    def categorize(self, title: str, description: Optional[str] = None) -> CategoryResult:
        self.calls.append((title, description))
        if self.fail:
            raise CategorizationError()
        return self.result


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def categorizer():
    return FakeCategorizer()


@pytest.fixture
def client(repo, categorizer):
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_categorizer] = lambda: categorizer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id: str = "user-1") -> dict:
    token = create_session_token(get_settings(), user_id, email=f"{user_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice():
    return auth_headers("alice")


@pytest.fixture
def bob():
    return auth_headers("bob")
