"""Tests for guidance API routes."""


def test_read_empty(client):
    response = client.get("/api/guidance")

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "content": ""}


def test_write_then_read(client, tmp_path):
    response = client.put("/api/guidance", json={"content": "Keep steps under an hour."})

    assert response.status_code == 200
    assert client.get("/api/guidance").get_json()["content"] == "Keep steps under an hour."
    saved = (tmp_path / "task" / "ai_task_guidance.txt").read_text(encoding="utf-8")
    assert saved == "Keep steps under an hour."


def test_empty_string_allowed(client):
    client.put("/api/guidance", json={"content": "old"})

    response = client.put("/api/guidance", json={"content": ""})

    assert response.status_code == 200
    assert client.get("/api/guidance").get_json()["content"] == ""


def test_missing_content_returns_400(client):
    assert client.put("/api/guidance", json={}).status_code == 400
    assert client.put("/api/guidance", json={"content": 42}).status_code == 400


def test_non_object_body_returns_400(client):
    """A JSON array body is rejected rather than failing on lookup."""
    response = client.put("/api/guidance", json=["content", "text"])

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert client.get("/api/guidance").get_json()["content"] == ""
