import uuid

from utils import workflow


def test_unhandled_error_returns_request_id(client, monkeypatch):
    def boom(lang="nl"):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(workflow, "all_steps", boom)
    res = client.get("/workflow/steps")
    assert res.status_code == 500
    body = res.json()
    assert body["error"] == "Internal server error"
    uuid.UUID(body["requestId"])
    assert "fire" not in res.text


def test_root(client):
    assert client.get("/").status_code == 200
