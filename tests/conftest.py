"""Pytest configuration and shared fixtures for task tracker tests."""

import itertools
from datetime import datetime, timedelta

import pytest

from task_tracker.app import create_app
from task_tracker.services.config_service import reset_config_service
from task_tracker.services.task_analyzer import TaskAnalyzer
from task_tracker.services.task_manager import TaskManager
from task_tracker.services.task_store import TaskStore


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def sequential_ids(prefix: str = "id"):
    """Id factory returning prefix-1, prefix-2, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-10 09:00."""
    return FakeClock(datetime(2024, 1, 10, 9, 0, 0))


@pytest.fixture
def id_factory():
    """Deterministic id generator."""
    return sequential_ids()


@pytest.fixture
def tasks_file(tmp_path):
    """Path of a task document inside a temp directory (not yet created)."""
    return tmp_path / "task" / "tasks.json"


@pytest.fixture
def store(tasks_file):
    """TaskStore backed by a temp file."""
    return TaskStore(tasks_file)


@pytest.fixture
def manager(store, clock, id_factory):
    """TaskManager with fixed clock and deterministic ids."""
    return TaskManager(store, clock=clock, id_factory=id_factory)


@pytest.fixture
def analyzer(clock):
    """TaskAnalyzer sharing the fixed clock."""
    return TaskAnalyzer(clock=clock)


@pytest.fixture(autouse=True)
def reset_singleton():
    """Reset the config service singleton between tests."""
    reset_config_service()
    yield
    reset_config_service()


@pytest.fixture
def app_config_file(tmp_path):
    """Config file pointing every path into the temp directory."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        f"""
storage:
  tasks_file: {tmp_path / "task" / "tasks.json"}
reports:
  output_path: {tmp_path / "task" / "TaskProgressReport.md"}
guidance:
  file: {tmp_path / "task" / "ai_task_guidance.txt"}
port: 5050
"""
    )
    return config_file


@pytest.fixture
def app(app_config_file, clock):
    """Flask app wired to temp storage, the fixed clock and sequential ids."""
    app = create_app(str(app_config_file), clock=clock, id_factory=sequential_ids())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()
