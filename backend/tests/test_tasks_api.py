from __future__ import annotations

import json
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.deps import get_db
from app.db.models.subtask import Subtask
from app.db.models.task import Task
from app.db.models.user import User
from app.main import app

BIRTHDAY_PAYLOAD = {
    "title": "Birthday Party Planning",
    "subtasks": ["Send invitations", "Order cake", "Buy decorations"],
}


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    User.__table__.create(bind=engine)
    Task.__table__.create(bind=engine)
    Subtask.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


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


def _auth(user_id: UUID) -> dict:
    return {settings.auth_user_header: str(user_id)}


def _create_task(test_client: TestClient, user_id: UUID, text: str = "Plan a birthday party") -> dict:
    response = test_client.post("/tasks", json={"task": text}, headers=_auth(user_id))
    assert response.status_code == 201
    return response.json()["task"]


def test_create_task_returns_task_with_ordered_subtasks(client, monkeypatch):
    test_client, session_factory = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    user_id = uuid4()

    task = _create_task(test_client, user_id)

    assert task["title"] == "Birthday Party Planning"
    assert task["created_at"]
    assert [(s["position"], s["text"], s["checked"]) for s in task["subtasks"]] == [
        (0, "Send invitations", False),
        (1, "Order cake", False),
        (2, "Buy decorations", False),
    ]

    with session_factory() as db:
        stored = db.get(Task, UUID(task["id"]))
        assert stored.user_id == user_id
        assert len(stored.subtasks) == 3


@pytest.mark.parametrize("body", [{"task": ""}, {"task": "   "}, {"task": "a" * 201}, {}, {"task": 5}])
def test_create_task_rejects_bad_input(client, monkeypatch, body):
    test_client, session_factory = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))

    response = test_client.post("/tasks", json=body, headers=_auth(uuid4()))

    assert response.status_code == 400
    assert response.json()["error"]
    with session_factory() as db:
        assert db.query(Task).count() == 0


def test_create_task_requires_authentication(client, monkeypatch):
    test_client, _ = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))

    missing = test_client.post("/tasks", json={"task": "Plan a birthday party"})
    malformed = test_client.post(
        "/tasks",
        json={"task": "Plan a birthday party"},
        headers={settings.auth_user_header: "not-a-uuid"},
    )

    assert missing.status_code == 401
    assert missing.json() == {"error": "Unauthorized"}
    assert malformed.status_code == 401


def test_empty_completion_returns_500_without_task(client, monkeypatch):
    test_client, session_factory = client
    _fake_openai(monkeypatch, "")

    response = test_client.post("/tasks", json={"task": "Plan a birthday party"}, headers=_auth(uuid4()))

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate task breakdown. Please try again."}
    with session_factory() as db:
        assert db.query(Task).count() == 0


def test_unparseable_completion_returns_500(client, monkeypatch):
    test_client, session_factory = client
    _fake_openai(monkeypatch, "I could not do that")

    response = test_client.post("/tasks", json={"task": "Plan a birthday party"}, headers=_auth(uuid4()))

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse task breakdown. Please try again."}
    with session_factory() as db:
        assert db.query(Task).count() == 0


def test_list_tasks_is_scoped_to_caller(client, monkeypatch):
    test_client, _ = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    owner = uuid4()
    other = uuid4()
    first = _create_task(test_client, owner)
    second = _create_task(test_client, owner, "Throw a second party")
    _create_task(test_client, other)

    response = test_client.get("/tasks", headers=_auth(owner))

    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert {task["id"] for task in tasks} == {first["id"], second["id"]}
    assert all(len(task["subtasks"]) == 3 for task in tasks)
    assert test_client.get("/tasks").status_code == 401


def test_toggle_subtask(client, monkeypatch):
    test_client, session_factory = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    user_id = uuid4()
    task = _create_task(test_client, user_id)
    target = task["subtasks"][1]

    response = test_client.patch(
        f"/tasks/{task['id']}/subtasks/{target['id']}",
        json={"checked": True},
        headers=_auth(user_id),
    )

    assert response.status_code == 200
    subtask = response.json()["subtask"]
    assert subtask["checked"] is True
    assert subtask["position"] == 1
    assert subtask["text"] == "Order cake"

    with session_factory() as db:
        rows = db.query(Subtask).filter(Subtask.task_id == UUID(task["id"])).order_by(Subtask.position).all()
        assert [row.checked for row in rows] == [False, True, False]

    uncheck = test_client.patch(
        f"/tasks/{task['id']}/subtasks/{target['id']}",
        json={"checked": False},
        headers=_auth(user_id),
    )
    assert uncheck.status_code == 200
    assert uncheck.json()["subtask"]["checked"] is False


def test_toggle_subtask_rejects_bad_body(client, monkeypatch):
    test_client, _ = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    user_id = uuid4()
    task = _create_task(test_client, user_id)
    url = f"/tasks/{task['id']}/subtasks/{task['subtasks'][0]['id']}"

    assert test_client.patch(url, json={}, headers=_auth(user_id)).status_code == 400
    assert test_client.patch(url, json={"checked": "yes"}, headers=_auth(user_id)).status_code == 400


def test_toggle_subtask_on_foreign_task_is_404(client, monkeypatch):
    test_client, _ = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    owner = uuid4()
    task = _create_task(test_client, owner)
    url = f"/tasks/{task['id']}/subtasks/{task['subtasks'][0]['id']}"

    response = test_client.patch(url, json={"checked": True}, headers=_auth(uuid4()))

    assert response.status_code == 404
    assert response.json() == {"error": "Task not found"}


def test_delete_task_removes_subtasks(client, monkeypatch):
    test_client, session_factory = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    user_id = uuid4()
    task = _create_task(test_client, user_id)

    response = test_client.delete(f"/tasks/{task['id']}", headers=_auth(user_id))

    assert response.status_code == 200
    assert response.json() == {"success": True}
    with session_factory() as db:
        assert db.get(Task, UUID(task["id"])) is None
        assert db.query(Subtask).count() == 0

    again = test_client.delete(f"/tasks/{task['id']}", headers=_auth(user_id))
    assert again.status_code == 404


def test_delete_foreign_task_is_404(client, monkeypatch):
    test_client, session_factory = client
    _fake_openai(monkeypatch, json.dumps(BIRTHDAY_PAYLOAD))
    task = _create_task(test_client, uuid4())

    response = test_client.delete(f"/tasks/{task['id']}", headers=_auth(uuid4()))

    assert response.status_code == 404
    with session_factory() as db:
        assert db.get(Task, UUID(task["id"])) is not None


def test_request_id_echoed(client, monkeypatch):
    test_client, _ = client
    response = test_client.get("/tasks", headers={**_auth(uuid4()), "X-Request-Id": "req-123"})
    assert response.status_code == 200
    assert response.headers.get("X-Request-Id") == "req-123"
