"""Tests for report API routes."""

from datetime import datetime

import pytest


def test_generate_default_path(client, tmp_path):
    """Without a body the report goes to the configured output path."""
    client.post("/api/tasks", json={"title": "Write docs", "description": "User guide"})

    response = client.post("/api/reports")

    assert response.status_code == 200
    data = response.get_json()
    expected = tmp_path / "task" / "TaskProgressReport.md"
    assert data["outputPath"] == str(expected)
    assert expected.read_text(encoding="utf-8") == data["report"]
    assert "Write docs" in data["report"]


def test_generate_custom_path(client, tmp_path):
    """An absolute path inside the reports directory is accepted."""
    target = (tmp_path / "task" / "reports" / "january.md").resolve()

    response = client.post("/api/reports", json={"outputPath": str(target)})

    assert response.status_code == 200
    assert response.get_json()["outputPath"] == str(target)
    assert target.exists()


def test_relative_path_lands_in_reports_dir(client, tmp_path):
    response = client.post("/api/reports", json={"outputPath": "january.md"})

    assert response.status_code == 200
    target = (tmp_path / "task" / "january.md").resolve()
    assert response.get_json()["outputPath"] == str(target)
    assert target.exists()


@pytest.mark.parametrize("escape", ["../outside.md", "nested/../../../outside.md"])
def test_path_escaping_reports_dir_returns_400(client, tmp_path, escape):
    response = client.post("/api/reports", json={"outputPath": escape})

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert not (tmp_path / "outside.md").exists()
    assert not (tmp_path.parent / "outside.md").exists()


def test_absolute_path_outside_reports_dir_returns_400(client, tmp_path):
    target = tmp_path / "elsewhere" / "report.md"

    response = client.post("/api/reports", json={"outputPath": str(target)})

    assert response.status_code == 400
    assert not target.exists()


def test_date_range(client, clock, tmp_path):
    clock.now = datetime(2024, 1, 31, 23, 59, 59, 999000)
    client.post("/api/tasks", json={"title": "January", "description": "D"})
    clock.now = datetime(2024, 2, 1, 0, 0, 0)
    client.post("/api/tasks", json={"title": "February", "description": "D"})

    report = client.post(
        "/api/reports", json={"startDate": "2024-01-01", "endDate": "2024-01-31"}
    ).get_json()["report"]

    assert "January" in report
    assert "February" not in report
    assert "## Report Date Range" in report


def test_invalid_date_returns_400(client):
    response = client.post("/api/reports", json={"startDate": "last tuesday"})

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_unwritable_path_returns_500(client, tmp_path):
    blocked = tmp_path / "task" / "blocked"
    blocked.mkdir(parents=True)

    response = client.post("/api/reports", json={"outputPath": str(blocked)})

    assert response.status_code == 500
    assert "write report" in response.get_json()["error"]
