from __future__ import annotations

import json
from uuid import uuid4

from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app


def _fake_openai(monkeypatch, content):
    class DummyChoices:
        def __init__(self, value):
            self.message = type("obj", (), {"content": value})

    class DummyCompletion:
        def __init__(self, value):
            self.choices = [DummyChoices(value)]

    class DummyClient:
        def __init__(self, *args, **kwargs):
            pass

        class chat:  # type: ignore[valid-type]
            class completions:  # type: ignore[valid-type]
                @staticmethod
                def create(*args, **kwargs):
                    return DummyCompletion(content)

    monkeypatch.setattr(settings, "openai_api_key", "test-key")
    monkeypatch.setattr("openai.OpenAI", DummyClient)


def test_preview_returns_title_and_subtasks(monkeypatch):
    _fake_openai(
        monkeypatch,
        json.dumps({"title": "Garage Cleanup", "subtasks": ["Sort tools", "Sweep floor", "Donate boxes"]}),
    )
    client = TestClient(app)

    response = client.post(
        "/breakdown",
        json={"task": "Clean out the garage"},
        headers={settings.auth_user_header: str(uuid4())},
    )

    assert response.status_code == 200
    assert response.json() == {"title": "Garage Cleanup", "subtasks": ["Sort tools", "Sweep floor", "Donate boxes"]}


def test_preview_validates_input(monkeypatch):
    _fake_openai(monkeypatch, "{}")
    client = TestClient(app)

    response = client.post("/breakdown", json={"task": "   "}, headers={settings.auth_user_header: str(uuid4())})

    assert response.status_code == 400
    assert response.json() == {"error": "Task is required"}


def test_preview_requires_authentication():
    client = TestClient(app)
    response = client.post("/breakdown", json={"task": "Clean out the garage"})
    assert response.status_code == 401


def test_preview_reports_parse_failure(monkeypatch):
    _fake_openai(monkeypatch, json.dumps({"title": "Nothing useful"}))
    client = TestClient(app)

    response = client.post(
        "/breakdown",
        json={"task": "Clean out the garage"},
        headers={settings.auth_user_header: str(uuid4())},
    )

    assert response.status_code == 500
    assert "error" in response.json()
