"""TaskStore - durable persistence of the whole task collection.

The collection lives in a single JSON document of the form
``{"tasks": [...]}``. Every call reads or rewrites the full document; there is
no caching, locking or partial-write protection.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from task_tracker.models.task import Task

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the task document cannot be read, parsed or written."""

    def __init__(self, operation: str, path: Path, cause: Exception):
        self.operation = operation
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to {operation} {path}: {cause}")


class TaskStore:
    """Loads and saves the task collection at a fixed path."""

    def __init__(self, tasks_file: str | Path = "task/tasks.json"):
        """Initialize the store.

        Args:
            tasks_file: Path to the JSON task document.
        """
        self.tasks_file = Path(tasks_file)

    def ensure_exists(self) -> None:
        """Create the parent directory and an empty document if missing.

        Raises:
            StorageError: If the directory or file cannot be created.
        """
        if self.tasks_file.exists():
            return
        try:
            self.tasks_file.parent.mkdir(parents=True, exist_ok=True)
            self.tasks_file.write_text(json.dumps({"tasks": []}, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not initialise task file {self.tasks_file}: {e}")
            raise StorageError("initialise", self.tasks_file, e) from e
        logger.info(f"Created empty task file at {self.tasks_file}")

    def load(self) -> list[Task]:
        """Load every task in storage order.

        Returns:
            List of tasks.

        Raises:
            StorageError: On I/O, JSON or schema failure.
        """
        self.ensure_exists()
        try:
            raw = json.loads(self.tasks_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error reading task file {self.tasks_file}: {e}")
            raise StorageError("read", self.tasks_file, e) from e

        if not isinstance(raw, dict):
            raise StorageError("parse", self.tasks_file, ValueError("expected a JSON object"))

        items = raw.get("tasks", [])
        if not isinstance(items, list):
            logger.error(f"Invalid task data in {self.tasks_file}: 'tasks' is not a list")
            raise StorageError("parse", self.tasks_file, ValueError("'tasks' must be a list"))

        try:
            return [Task.model_validate(item) for item in items]
        except ValidationError as e:
            logger.error(f"Invalid task data in {self.tasks_file}: {e}")
            raise StorageError("parse", self.tasks_file, e) from e

    def save(self, tasks: list[Task]) -> None:
        """Overwrite the document with the given tasks.

        Args:
            tasks: Full task collection to persist.

        Raises:
            StorageError: If the file cannot be written.
        """
        document = {"tasks": [task.to_dict() for task in tasks]}
        try:
            self.tasks_file.parent.mkdir(parents=True, exist_ok=True)
            self.tasks_file.write_text(
                json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as e:
            logger.error(f"Error saving task file {self.tasks_file}: {e}")
            raise StorageError("write", self.tasks_file, e) from e
        logger.debug(f"Saved {len(tasks)} tasks to {self.tasks_file}")
