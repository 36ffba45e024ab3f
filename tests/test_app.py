"""Tests for the task API endpoints."""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from reviewsync.app import app
from reviewsync.celery_worker import execute_task, run_task

client = TestClient(app)


@pytest.fixture
def enqueued(monkeypatch):
    calls = []

    def fake_apply_async(args=None, **kwargs):
        calls.append(args)
        return SimpleNamespace(id="celery-1")

    monkeypatch.setattr(run_task, "apply_async", fake_apply_async)
    return calls


def test_create_and_get_module():
    response = client.post("/modules/", json={
        "title": "Homepage reviews",
        "module": "mod_prettyreviews",
        "params": {"cid": "12345", "apikey": "k", "reviewsort": "newest", "secret": "s"},
    })
    assert response.status_code == 200
    module_id = response.json()["id"]

    response = client.get(f"/modules/{module_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["module"] == "mod_prettyreviews"
    assert data["params"]["cid"] == "12345"


def test_get_missing_module():
    assert client.get("/modules/999").status_code == 404


def test_create_schedule():
    response = client.post("/schedules/", json={
        "task_name": "prettyreviews.update_reviews",
        "module_id": "1",
        "schedule": "0 */6 * * *",
    })
    assert response.status_code == 200
    assert response.json()["retries"] == 0
    listed = client.get("/schedules/").json()
    assert [s["module_id"] for s in listed] == ["1"]


def test_create_schedule_duplicate_task_and_module():
    payload = {
        "task_name": "prettyreviews.update_reviews",
        "module_id": "1",
        "schedule": "0 6 * * *",
    }
    assert client.post("/schedules/", json=payload).status_code == 200

    response = client.post("/schedules/", json={**payload, "schedule": "0 * * * *"})
    assert response.status_code == 409
    assert len(client.get("/schedules/").json()) == 1


def test_create_schedule_invalid_cron():
    response = client.post("/schedules/", json={
        "task_name": "prettyreviews.update_reviews",
        "module_id": "1",
        "schedule": "every day",
    })
    assert response.status_code == 400


def test_create_schedule_unknown_task():
    response = client.post("/schedules/", json={
        "task_name": "nope", "module_id": "1", "schedule": "0 * * * *",
    })
    assert response.status_code == 404


def test_trigger_task(enqueued):
    response = client.post("/tasks/prettyreviews.update_reviews/run", json={"module_id": "42"})
    assert response.status_code == 200
    assert response.json()["celery_id"] == "celery-1"
    assert enqueued == [["prettyreviews.update_reviews", "42"]]


def test_trigger_unknown_task(enqueued):
    response = client.post("/tasks/nope/run", json={"module_id": "42"})
    assert response.status_code == 404
    assert enqueued == []


def test_task_runs():
    _, run_id = execute_task("prettyreviews.update_reviews", "404")

    runs = client.get("/task_runs/").json()
    assert [r["id"] for r in runs] == [run_id]

    data = client.get(f"/task_runs/{run_id}").json()
    assert data["status"] == "NO_RUN"
    assert data["exit_code"] == 3
    assert "Module is not Pretty Reviews" in data["log"]


def test_missing_task_run():
    assert client.get("/task_runs/999").status_code == 404
