"""
History log — append-only record of successful changes.

The orchestrator emits one HistoryRecord per mutating task that ends
succeeded, and never reads them back. ``HistoryWriter`` stores them as
NDJSON (one JSON object per line); ``read_all`` exists for the
``maziq history`` command.

Records are write-once: entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from maziq.core.models.action import Action

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_FILE = Path.home() / ".maziq" / "history.ndjson"


class HistoryRecord(BaseModel):
    """One completed change on the host."""

    model_config = ConfigDict(frozen=True)

    software_id: str
    action: Action
    version: str | None = None
    source: str = ""               # installer kind used
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class HistorySink(ABC):
    """Append-only write interface for history records."""

    @abstractmethod
    def append(self, record: HistoryRecord) -> None:
        """Persist one record. Must not raise."""


class MemoryHistory(HistorySink):
    """In-memory sink (tests, dry previews)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[HistoryRecord] = []

    @property
    def records(self) -> list[HistoryRecord]:
        with self._lock:
            return list(self._records)

    def append(self, record: HistoryRecord) -> None:
        with self._lock:
            self._records.append(record)


class HistoryWriter(HistorySink):
    """NDJSON history file writer.

    Each ``append`` writes a single JSON line. The file and its parent
    directory are created on first write.
    """

    def __init__(self, path: Path | None = None):
        self._path = path or DEFAULT_HISTORY_FILE
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: HistoryRecord) -> None:
        line = json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n"
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as f:
                    f.write(line)
                logger.debug("History record written: %s/%s", record.action.value, record.software_id)
            except OSError as e:
                logger.error("Failed to write history record: %s", e)

    def read_all(self) -> list[HistoryRecord]:
        """All records, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        records = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(HistoryRecord.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt history entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read history file: %s", e)
        return records

    def read_recent(self, n: int = 20) -> list[HistoryRecord]:
        return self.read_all()[-n:]
