"""Read/write access to the free-text task guidance note."""

import logging
from pathlib import Path

from task_tracker.services.task_store import StorageError

logger = logging.getLogger(__name__)


class GuidanceStore:
    """Stores one guidance note used when drafting new tasks."""

    def __init__(self, path: str | Path = "task/ai_task_guidance.txt"):
        self.path = Path(path)

    def read(self) -> str:
        """Return the note, or an empty string when none has been written.

        Raises:
            StorageError: If an existing note cannot be read.
        """
        if not self.path.exists():
            return ""
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Error reading guidance from {self.path}: {e}")
            raise StorageError("read guidance", self.path, e) from e

    def write(self, content: str) -> None:
        """Replace the note, creating parent directories as needed.

        Raises:
            StorageError: If the note cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing guidance to {self.path}: {e}")
            raise StorageError("write guidance", self.path, e) from e
        logger.info(f"Saved guidance note ({len(content)} chars) to {self.path}")
