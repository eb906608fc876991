# services/record_store.py
import os
import json
import asyncio
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from core.errors import StorageError, StoreCorruptedError


def utc_now_iso() -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2026-10-18T09:30:00.123Z"""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


# ------------------------------------------------------------------
# per-file locks
# ------------------------------------------------------------------
class _FileLocks:
    """One lock per resolved path, shared by every store in the process."""

    _registry: Dict[str, threading.Lock] = {}
    _guard = threading.Lock()

    @classmethod
    def for_path(cls, path: Path) -> threading.Lock:
        key = str(path.resolve())
        with cls._guard:
            lock = cls._registry.get(key)
            if lock is None:
                lock = cls._registry[key] = threading.Lock()
            return lock


# ------------------------------------------------------------------
# JSON-array mailbox
# ------------------------------------------------------------------
class JsonArrayStore:
    """
    A single JSON file holding an ordered array of records.

    Records are only ever appended. An append is a full read-modify-write of
    the file, so it runs under the file's lock and the new content is written
    to a temp file first and then renamed over the old one.
    """

    def __init__(self, path: str | Path, *, reset_on_corruption: bool = True):
        self.path = Path(path)
        self.reset_on_corruption = reset_on_corruption
        self._lock = _FileLocks.for_path(self.path)

    def read_records(self) -> List[Any]:
        """
        Current records, oldest first.

        A missing file is an empty mailbox. A file that can't be read or
        doesn't hold a JSON array is also treated as empty ("start fresh")
        unless ``reset_on_corruption`` is off, in which case
        StoreCorruptedError is raised.
        """
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            return self._start_fresh(f"unreadable: {exc}")

        if not isinstance(data, list):
            return self._start_fresh(f"expected a JSON array, got {type(data).__name__}")
        return data

    def _start_fresh(self, reason: str) -> List[Any]:
        if not self.reset_on_corruption:
            raise StoreCorruptedError(f"{self.path}: {reason}")
        logger.warning("Mailbox {} {} - starting fresh", self.path, reason)
        return []

    def _append_sync(self, record: Dict[str, Any]) -> int:
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(f"cannot create {self.path.parent}") from exc

            records = self.read_records()
            records.append(record)
            self._write_atomic(records)
            return len(records)

    def _write_atomic(self, records: List[Any]) -> None:
        try:
            data = json.dumps(records, ensure_ascii=False, indent=2).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise StorageError(f"cannot serialise records for {self.path}") from exc

        tmp_path = None
        replaced = False
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            replaced = True
        except OSError as exc:
            raise StorageError(f"cannot write {self.path}") from exc
        finally:
            if not replaced and tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    async def append(self, record: Dict[str, Any]) -> int:
        """Append one record; returns how many records the mailbox now holds."""
        return await asyncio.to_thread(self._append_sync, record)


# ------------------------------------------------------------------
# newline delimited log
# ------------------------------------------------------------------
class LineLogStore:
    """One compact JSON object per line, opened in append mode."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = _FileLocks.for_path(self.path)

    @staticmethod
    def to_line(entry: Dict[str, Any]) -> str:
        # json escapes control characters, so the line never contains "\n"
        return json.dumps(entry, ensure_ascii=False, separators=(",", ":"))

    def _append_line_sync(self, entry: Dict[str, Any]) -> None:
        # encode up front so a bad entry never leaves half a line behind
        try:
            data = (self.to_line(entry) + "\n").encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise StorageError(f"cannot serialise log entry for {self.path}") from exc

        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("ab") as f:
                    f.write(data)
            except OSError as exc:
                raise StorageError(f"cannot append to {self.path}") from exc

    async def append_line(self, entry: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._append_line_sync, entry)
