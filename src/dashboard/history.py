"""Compliance history — bounded rolling record of session headline metrics."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from src.errors import ReportWriteError
from src.models.session import HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 30


class ComplianceHistory:
    """Fixed-capacity FIFO of HistoryEntry snapshots, optionally persisted as a JSON array.

    Appends are serialized; when the store is full the oldest entry is
    dropped. Entries are never modified after they are appended.
    """

    def __init__(self, path: Path | None = None, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.path = path
        self.capacity = capacity
        self._entries: list[HistoryEntry] = []
        self._lock = threading.Lock()

    @property
    def entries(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> list[HistoryEntry]:
        """Load history from disk, or start empty when the file is absent or unreadable."""
        entries: list[HistoryEntry] = []
        if self.path is not None and self.path.exists():
            try:
                with open(self.path) as f:
                    data = json.load(f)
                if not isinstance(data, list):
                    raise ValueError("history file must hold a JSON array")
                entries = [HistoryEntry.model_validate(item) for item in data]
            except (OSError, ValueError, ValidationError) as e:
                logger.warning("Failed to load compliance history: %s. Starting new.", e)
                entries = []
        with self._lock:
            self._entries = entries[-self.capacity:]
            return list(self._entries)

    def append(self, entry: HistoryEntry) -> list[HistoryEntry]:
        """Append one snapshot, evict the oldest beyond capacity, and persist."""
        with self._lock:
            entries = self._entries + [entry]
            if len(entries) > self.capacity:
                dropped = len(entries) - self.capacity
                entries = entries[dropped:]
                logger.debug("History full, dropped %d oldest entr%s", dropped, "y" if dropped == 1 else "ies")
            if self.path is not None:
                self._save(entries)
            self._entries = entries
            return list(entries)

    def _save(self, entries: list[HistoryEntry]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump([e.model_dump(by_alias=True) for e in entries], f, indent=2)
        except OSError as e:
            raise ReportWriteError(self.path, str(e)) from e
