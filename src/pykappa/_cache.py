"""Local registration draft cache and merge helpers."""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pykappa._constants import DRAFT_CACHE_KEY

_logger = logging.getLogger(__name__)


def _is_meaningful(value: Any) -> bool:
    """Return True if the value should overwrite cached data."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    if value == []:
        return False
    return bool(value != {})


def _merge_dict(target: dict[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Merge incoming into target, keeping target values for empty fields."""
    for key, value in incoming.items():
        if isinstance(value, Mapping):
            if not value:
                continue
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_dict(existing, value)
            else:
                target[key] = copy.deepcopy(dict(value))
        else:
            if _is_meaningful(value):
                target[key] = value
    return target


def overlay_draft(remote: Mapping[str, Any], local: Mapping[str, Any] | None) -> dict[str, Any]:
    """Combine a remote draft with the local cache.

    Remote values win; a locally cached value survives only where the remote
    one is absent or empty.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(local)) if local else {}
    return _merge_dict(merged, remote)


class MemoryDraftCache:
    """Draft cache that lives as long as the process."""

    def __init__(self) -> None:
        self._data: dict[str, Any] | None = None

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._data)

    def save(self, data: Mapping[str, Any]) -> None:
        self._data = copy.deepcopy(dict(data))

    def clear(self) -> None:
        self._data = None


class FileDraftCache:
    """Draft cache stored as one JSON file in *directory*.

    Writes go through a temporary file and :func:`os.replace`, so a reader
    sees either the previous or the new draft, never a torn one.
    """

    def __init__(self, directory: str | os.PathLike[str], *, key: str = DRAFT_CACHE_KEY) -> None:
        self._dir = Path(directory)
        self._path = self._dir / f"{key}.json"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any] | None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Discarding unreadable draft cache %s", self._path)
            self.clear()
            return None
        return data if isinstance(data, dict) else None

    def _write(self, data: Mapping[str, Any]) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".draft-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(dict(data), fh, separators=(",", ":"))
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save(self, data: Mapping[str, Any]) -> None:
        try:
            self._write(data)
        except OSError:
            # Out of space or similar: drop the old draft and retry once.
            _logger.warning("Draft cache write failed; clearing %s and retrying", self._path, exc_info=True)
            self.clear()
            self._write(data)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
