import json
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from taskflow_api.categorize import OpenAICategorizer
from taskflow_api.errors import CategorizationError, NotFoundError, TodoValidationError
from taskflow_api.repositories import InMemoryRepository
from taskflow_api.services import TodoService

from conftest import FakeCategorizer


class Clock:
    """Manually advanced clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock(datetime(2025, 3, 12, 10, 0))


@pytest.fixture
def service(repo, categorizer, clock):
    return TodoService(repo, categorizer, default_category="general", clock=clock)


class TestCreate:
    def test_create_then_get(self, service, clock):
        created = service.create_todo("u1", "Write report", "Quarterly numbers")
        fetched = service.get_todo("u1", created["id"])
        assert fetched == created
        assert fetched["title"] == "Write report"
        assert fetched["description"] == "Quarterly numbers"
        assert fetched["completed"] is False
        assert fetched["category"] == "work"
        assert fetched["created_at"] == fetched["updated_at"] == clock.now

    def test_ids_are_unique(self, service):
        ids = {service.create_todo("u1", f"t{i}")["id"] for i in range(20)}
        assert len(ids) == 20

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_empty_title_persists_nothing(self, service, repo, categorizer, title):
        with pytest.raises(TodoValidationError):
            service.create_todo("u1", title)
        assert repo.count("u1") == 0
        assert categorizer.calls == []

    def test_too_long_fields(self, service):
        with pytest.raises(TodoValidationError):
            service.create_todo("u1", "x" * 201)
        with pytest.raises(TodoValidationError):
            service.create_todo("u1", "x", "d" * 501)

    def test_categorizer_failure_uses_default(self, service, categorizer):
        categorizer.fail = True
        created = service.create_todo("u1", "Something")
        assert created["category"] == "general"

    def test_empty_description_is_stored_as_null(self, service):
        assert service.create_todo("u1", "T", "")["description"] is None

    def test_description_is_stored_as_sent(self, service):
        created = service.create_todo("u1", "T", "  indented\nnotes  ")
        assert service.get_todo("u1", created["id"])["description"] == "  indented\nnotes  "
        assert service.create_todo("u1", "T", "   ")["description"] == "   "

    def test_unexpected_categorizer_error_falls_back(self, repo, clock):
        client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=Mock(side_effect=KeyError("choices"))))
        )
        service = TodoService(repo, OpenAICategorizer(api_key="sk-test", client=client), clock=clock)
        created = service.create_todo("u1", "Buy milk")
        assert created["category"] == "general"
        assert repo.count("u1") == 1

    def test_invalid_base_url_falls_back(self, repo, clock):
        categorizer = OpenAICategorizer(api_key="sk-test", base_url="http://[::1")
        service = TodoService(repo, categorizer, clock=clock)
        assert service.create_todo("u1", "Buy milk")["category"] == "general"

    def test_persistence_failure_propagates(self, categorizer, clock):
        class BrokenRepository(InMemoryRepository):
            def create(self, entity):
                raise RuntimeError("disk full")

        service = TodoService(BrokenRepository(), categorizer, clock=clock)
        with pytest.raises(RuntimeError):
            service.create_todo("u1", "Lost")


class TestUpdate:
    def test_absent_fields_untouched(self, service, clock):
        created = service.create_todo("u1", "Title", "Desc")
        clock.advance(minutes=5)
        updated = service.update_todo("u1", created["id"], {"completed": True})
        assert updated["title"] == "Title"
        assert updated["description"] == "Desc"
        assert updated["category"] == "work"
        assert updated["completed"] is True
        assert updated["created_at"] == created["created_at"]
        assert updated["updated_at"] == clock.now

    def test_empty_update_still_refreshes_updated_at(self, service, clock):
        created = service.create_todo("u1", "Title")
        clock.advance(seconds=1)
        updated = service.update_todo("u1", created["id"], {})
        assert updated["updated_at"] > created["updated_at"]

    def test_updated_at_never_moves_backwards(self, service, clock):
        created = service.create_todo("u1", "Title")
        clock.advance(hours=-1)
        updated = service.update_todo("u1", created["id"], {"title": "New"})
        assert updated["updated_at"] == created["updated_at"]
        assert updated["created_at"] == created["created_at"]

    def test_null_title_and_completed_are_ignored(self, service):
        created = service.create_todo("u1", "Keep")
        updated = service.update_todo("u1", created["id"], {"title": None, "completed": None, "category": None})
        assert updated["title"] == "Keep"
        assert updated["completed"] is False
        assert updated["category"] is None

    def test_rejects_blank_title_and_unknown_fields(self, service):
        created = service.create_todo("u1", "Keep")
        with pytest.raises(TodoValidationError):
            service.update_todo("u1", created["id"], {"title": " "})
        with pytest.raises(TodoValidationError):
            service.update_todo("u1", created["id"], {"user_id": "u2"})
        assert service.get_todo("u1", created["id"])["title"] == "Keep"

    def test_toggle(self, service):
        created = service.create_todo("u1", "Flip")
        assert service.toggle_todo("u1", created["id"])["completed"] is True
        assert service.toggle_todo("u1", created["id"])["completed"] is False


class TestDeleteAndIsolation:
    def test_delete_then_get(self, service):
        created = service.create_todo("u1", "Gone")
        service.delete_todo("u1", created["id"])
        with pytest.raises(NotFoundError):
            service.get_todo("u1", created["id"])
        with pytest.raises(NotFoundError):
            service.delete_todo("u1", created["id"])

    def test_other_user_sees_nothing(self, service):
        created = service.create_todo("owner", "Mine")
        for call in (
            lambda: service.get_todo("intruder", created["id"]),
            lambda: service.update_todo("intruder", created["id"], {"title": "x"}),
            lambda: service.toggle_todo("intruder", created["id"]),
            lambda: service.delete_todo("intruder", created["id"]),
            lambda: service.categorize_todo("intruder", created["id"]),
        ):
            with pytest.raises(NotFoundError):
                call()
        assert service.list_todos("intruder") == []
        assert service.get_todo("owner", created["id"])["title"] == "Mine"


class TestCategorize:
    def test_overwrites_category(self, service, categorizer, clock):
        created = service.create_todo("u1", "Jog", "Park loop")
        categorizer.result = categorizer.result.model_copy(update={"category": "health", "confidence": 0.6})
        clock.advance(minutes=1)

        todo, result = service.categorize_todo("u1", created["id"])
        assert todo["category"] == "health"
        assert todo["updated_at"] == clock.now
        assert result.category == "health"
        assert result.confidence == 0.6
        assert categorizer.calls[-1] == ("Jog", "Park loop")

    def test_failure_propagates(self, service, categorizer):
        created = service.create_todo("u1", "Jog")
        categorizer.fail = True
        with pytest.raises(CategorizationError):
            service.categorize_todo("u1", created["id"])
        assert service.get_todo("u1", created["id"])["category"] == "work"

    def test_uses_current_title(self, repo, clock):
        categorizer = FakeCategorizer()
        service = TodoService(repo, categorizer, clock=clock)
        created = service.create_todo("u1", "Old title")
        service.update_todo("u1", created["id"], {"title": "New title", "description": None})
        service.categorize_todo("u1", created["id"])
        assert categorizer.calls[-1] == ("New title", None)

    @pytest.mark.parametrize("answer", ["仕事", "Café"])
    def test_non_ascii_category_is_stored(self, repo, clock, answer):
        message = SimpleNamespace(content=json.dumps({"category": answer, "confidence": 0.8}))
        response = SimpleNamespace(choices=[SimpleNamespace(message=message)])
        client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=Mock(return_value=response))))
        service = TodoService(repo, OpenAICategorizer(api_key="sk-test", client=client), clock=clock)

        created = service.create_todo("u1", "Meeting")
        assert created["category"] == answer.lower()
        todo, result = service.categorize_todo("u1", created["id"])
        assert todo["category"] == result.category == answer.lower()
