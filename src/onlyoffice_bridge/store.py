"""
Saved-document index for the demo host application.

The document server calls back from any number of request threads, so the
index is guarded by a lock. Only the index is guarded; the file writes that
precede ``add`` are not.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from pydantic import BaseModel


class SavedDocument(BaseModel):
    key: str
    path: str
    size_bytes: int
    saved_at: datetime


@dataclass
class SavedDocumentStore:
    """
    Maps document keys to the last saved copy on disk.

    Instances are created by the host application and handed to the callback
    handlers that need them.
    """

    saved_dir: Path

    def __post_init__(self) -> None:
        self._documents: Dict[str, SavedDocument] = {}
        self._lock = Lock()

    def add(self, key: str, path: Path) -> SavedDocument:
        record = SavedDocument(key=key, path=str(path), size_bytes=path.stat().st_size, saved_at=datetime.now(timezone.utc))
        with self._lock:
            self._documents[key] = record
        return record

    def get(self, key: str) -> Optional[SavedDocument]:
        with self._lock:
            return self._documents.get(key)

    def list_documents(self) -> list[SavedDocument]:
        """All saved documents, newest first."""
        with self._lock:
            return sorted(self._documents.values(), key=lambda d: d.saved_at, reverse=True)
