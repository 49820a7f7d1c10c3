import json

from taskflow_api.generate_openapi import _ensure_tags, generate_openapi


def test_writes_schema_with_all_routes(tmp_path):
    out = generate_openapi(str(tmp_path / "interfaces" / "openapi.json"))
    with open(out, encoding="utf-8") as f:
        schema = json.load(f)

    paths = schema["paths"]
    assert "/api/todos" in paths
    assert "/api/todos/{todo_id}" in paths
    assert "/api/todos/categorize" in paths
    assert "/api/dashboard/stats" in paths
    assert {t["name"] for t in schema["tags"]} >= {"health", "todos", "dashboard"}
    # camelCase wire format
    assert "createdAt" in schema["components"]["schemas"]["TodoOut"]["properties"]


def test_ensure_tags_keeps_existing():
    schema = {"tags": [{"name": "todos", "description": "custom"}]}
    _ensure_tags(schema)
    todos = [t for t in schema["tags"] if t["name"] == "todos"]
    assert todos == [{"name": "todos", "description": "custom"}]
    assert any(t["name"] == "dashboard" for t in schema["tags"])
