"""JSON-lines usage event log."""

from __future__ import annotations

import logging
from pathlib import Path

from jatsimage.core.errors import StorageError
from jatsimage.core.interfaces import UsageEventPort
from jatsimage.core.models import UsageEvent

logger = logging.getLogger(__name__)


class JsonlUsageLog(UsageEventPort):
    """Appends each usage event as one JSON line to a log file."""

    def __init__(self, path: str) -> None:
        self.path = Path(path).expanduser()

    def emit(self, event: UsageEvent) -> None:
        """Append a usage event to the log."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a") as f:
                f.write(event.model_dump_json() + "\n")
        except OSError as e:
            raise StorageError(f"Cannot write usage log {self.path}: {e}") from e

        logger.debug(
            "Recorded download of file %d (galley %d)",
            event.submission_file_id,
            event.galley_id,
        )
