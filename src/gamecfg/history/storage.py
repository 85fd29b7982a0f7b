"""HistoryStorage: persist the history log and move it in/out of export files.

Two on-disk shapes are used.

Persisted blob, stored under a namespaced key::

    {"entries": [...], "cursor": 3, "savedAt": "2026-01-01T12:00:00+00:00"}

Export file, meant to be shared between editing sessions::

    {"type": "config-history", "timestamp": "...", "entries": [...], "cursor": 3}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from gamecfg.history.config import DEFAULT_STORAGE_KEY
from gamecfg.history.errors import MalformedHistoryError
from gamecfg.history.record import ChangeRecord, record_from_dict

logger = logging.getLogger(__name__)

EXPORT_TYPE = "config-history"


@runtime_checkable
class BlobStore(Protocol):
    """Key/value store holding JSON text."""

    def read(self, key: str) -> str | None:
        """Return the stored text, or *None* if the key is absent."""
        ...

    def write(self, key: str, data: str) -> None:
        """Store *data* under *key*, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryBlobStore:
    """Dict-backed blob store for tests and throwaway sessions."""

    def __init__(self) -> None:
        self.blobs: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self.blobs.get(key)

    def write(self, key: str, data: str) -> None:
        self.blobs[key] = data

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)


class FileBlobStore:
    """One ``<key>.json`` file per key inside *directory*."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, data: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        self.path_for(key).write_text(data, encoding="utf-8")

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_cursor(raw: Any, entry_count: int) -> int:
    """Clamp a stored cursor into ``[-1, entry_count - 1]``.

    A missing or non-integer cursor points at the newest entry.
    """
    if isinstance(raw, bool) or not isinstance(raw, int):
        return entry_count - 1
    return max(-1, min(raw, entry_count - 1))


def _decode_entries(raw_entries: Any) -> list[ChangeRecord]:
    if not isinstance(raw_entries, list):
        raise MalformedHistoryError("entries is not a list")
    return [record_from_dict(d) for d in raw_entries]


class HistoryStorage:
    """Persistence gateway for one history log.

    ``save``/``load`` talk to a :class:`BlobStore` and never raise, whatever
    the backend throws: a failed write is logged and the in-memory log stays
    authoritative, a missing or corrupt blob loads as an empty log.
    Export/import work on plain files and raise :class:`MalformedHistoryError`.
    """

    def __init__(self, blobs: BlobStore | None = None, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._blobs = blobs if blobs is not None else MemoryBlobStore()
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def blobs(self) -> BlobStore:
        return self._blobs

    # ------------------------------------------------------------------
    # Persisted blob
    # ------------------------------------------------------------------

    def save(self, entries: list[ChangeRecord], cursor: int) -> bool:
        """Overwrite the blob.  Returns False (and logs) on failure."""
        try:
            data = json.dumps(
                {
                    "entries": [e.to_dict() for e in entries],
                    "cursor": cursor,
                    "savedAt": _now_iso(),
                }
            )
            self._blobs.write(self._key, data)
        except Exception:
            logger.exception("Failed to save history under '%s'", self._key)
            return False
        logger.debug("Saved %d history entries under '%s'", len(entries), self._key)
        return True

    def load(self) -> tuple[list[ChangeRecord], int]:
        """Read the blob.  Missing or corrupt data yields ``([], -1)``."""
        try:
            raw = self._blobs.read(self._key)
        except Exception:
            logger.exception("Failed to read history blob '%s'", self._key)
            return [], -1
        if raw is None:
            return [], -1

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise MalformedHistoryError("blob is not an object")
            entries = _decode_entries(data.get("entries", []))
        except (ValueError, RecursionError, MalformedHistoryError) as e:
            logger.error("Discarding corrupt history blob '%s': %s", self._key, e)
            return [], -1

        cursor = normalize_cursor(data.get("cursor"), len(entries))
        logger.info("Loaded %d history entries (cursor=%d)", len(entries), cursor)
        return entries, cursor

    def discard(self) -> None:
        """Remove the persisted blob."""
        try:
            self._blobs.delete(self._key)
        except Exception:
            logger.exception("Failed to delete history blob '%s'", self._key)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    @staticmethod
    def export_filename(when: datetime | None = None) -> str:
        when = when or datetime.now(timezone.utc)
        return f"config-history-{when.date().isoformat()}.json"

    @staticmethod
    def encode_export(entries: list[ChangeRecord], cursor: int) -> str:
        return json.dumps(
            {
                "type": EXPORT_TYPE,
                "timestamp": _now_iso(),
                "entries": [e.to_dict() for e in entries],
                "cursor": cursor,
            },
            indent=2,
        )

    @staticmethod
    def export_to_file(
        entries: list[ChangeRecord], cursor: int, destination: str | Path
    ) -> Path:
        """Write an export file.  Returns the resolved path.

        If *destination* is an existing directory, the file is named
        ``config-history-YYYY-MM-DD.json`` inside it.
        """
        path = Path(destination)
        if path.is_dir():
            path = path / HistoryStorage.export_filename()
        path.parent.mkdir(parents=True, exist_ok=True)
        text = HistoryStorage.encode_export(entries, cursor)
        path.write_text(text, encoding="utf-8")
        logger.info("Exported %d history entries to %s", len(entries), path)
        return path

    @staticmethod
    def decode_export(text: str | bytes) -> tuple[list[ChangeRecord], int]:
        """Parse and validate an export artifact.

        Raises:
            MalformedHistoryError: On invalid JSON, a wrong ``type``,
                missing ``entries`` or any undecodable entry.
        """
        if isinstance(text, bytes):
            try:
                text = text.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedHistoryError("not UTF-8 text") from e
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            raise MalformedHistoryError(f"invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise MalformedHistoryError("top level is not an object")
        if data.get("type") != EXPORT_TYPE:
            raise MalformedHistoryError(f"type is {data.get('type')!r}, expected {EXPORT_TYPE!r}")
        if "entries" not in data or data["entries"] is None:
            raise MalformedHistoryError("entries missing")

        entries = _decode_entries(data["entries"])
        return entries, normalize_cursor(data.get("cursor"), len(entries))

    @staticmethod
    def read_export(source: str | Path) -> tuple[list[ChangeRecord], int]:
        """Read and validate an export file from disk."""
        path = Path(source)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise MalformedHistoryError(f"cannot read {path}: {e}") from e
        return HistoryStorage.decode_export(raw)
