"""
Per-document change history stored on the local filesystem.

Layout::

    {storage_root}/.history/{document_key}/changes.json

Each ``changes.json`` holds the ``history`` object of one save callback.
Writing the same key twice overwrites the file, so one directory is one
version. There is no locking: concurrent saves for one key race on the same
file and must be serialized by the caller.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import Callback, History, HistoryVersion
from .tokens import TokenService
from .utils import ensure_directory

logger = logging.getLogger(__name__)

HISTORY_DIRNAME = ".history"
CHANGES_FILENAME = "changes.json"
CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"

PathLike = Union[str, Path]


def _parse_created(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, CREATED_FORMAT)
    except ValueError:
        return None


class HistoryRecorder:
    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def history_root(self, storage_root: PathLike) -> Path:
        return Path(storage_root) / HISTORY_DIRNAME

    def record(self, callback: Callback, storage_root: PathLike) -> Path:
        """
        Write the callback's history to ``.history/{key}/changes.json``.

        Returns:
            Path of the written file

        Raises:
            ValidationError: If the callback has no document key, or the key
                is not a single path component
        """
        if not callback.key:
            raise ValidationError("callback has no document key")
        if callback.key in (".", "..") or Path(callback.key).name != callback.key or "\\" in callback.key:
            raise ValidationError(f"invalid document key {callback.key!r}")
        history_dir = ensure_directory(self.history_root(storage_root) / callback.key)
        changes_file = history_dir / CHANGES_FILENAME
        history = callback.history or History()
        changes_file.write_text(json.dumps(history.to_wire(), indent=2), encoding="utf-8")
        logger.info(f"Recorded history for key={callback.key} at {changes_file}")
        return changes_file

    def list_versions(self, filename: str, storage_root: PathLike) -> list[HistoryVersion]:
        """
        Read back every stored version, one per history directory.

        ``filename`` is accepted for API compatibility but does not filter:
        versions of every document under ``storage_root`` are returned.
        Directories without a readable ``changes.json`` are skipped.
        """
        root = self.history_root(storage_root)
        if not root.is_dir():
            return []

        versions: list[HistoryVersion] = []
        for entry in sorted(root.iterdir()):
            if not entry.is_dir():
                continue
            changes_file = entry / CHANGES_FILENAME
            if not changes_file.is_file():
                continue
            try:
                history = History.model_validate_json(changes_file.read_bytes())
            except PydanticValidationError as exc:
                logger.warning(f"Skipping unreadable history entry {changes_file}: {exc}")
                continue
            versions.append(
                HistoryVersion(
                    version=entry.name,
                    key=history.key or "",
                    created=_parse_created(history.created),
                    user=history.user,
                    changes=history.changes,
                )
            )
        return versions

    def count_versions(self, storage_root: PathLike) -> int:
        root = self.history_root(storage_root)
        if not root.is_dir():
            return 0
        return sum(1 for entry in root.iterdir() if entry.is_dir())

    def generate_history_key(self, filename: str) -> str:
        return self.tokens.generate_document_key(filename)
