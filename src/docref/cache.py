"""Persisted cache of external validation results."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from docref.exceptions import CacheError
from docref.schemas import ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)


class ResultCache(Protocol):
    """Key-value store for validation results, keyed by exact target string."""

    def get(self, key: str) -> ValidationResult | None: ...

    def put_if_complete(self, key: str, value: ValidationResult) -> bool: ...


def is_result_fresh(
    result: ValidationResult,
    window: timedelta,
    *,
    now: datetime | None = None,
) -> bool:
    """Check if a cached result can be reused without a new check.

    Only ``valid`` results are ever reused; failures are always rechecked.

    Args:
        result: The cached result.
        window: Maximum age. If <= 0, valid results never expire.
        now: Reference time, defaults to the current UTC time.

    Returns:
        True if the result is valid and younger than ``window``.
    """
    if result.status is not ValidationStatus.VALID:
        return False
    if window <= timedelta(0):
        return True
    current = now or datetime.now(timezone.utc)
    return current - result.checked_at <= window


def is_complete(result: ValidationResult) -> bool:
    """Whether a result is the outcome of a finished check worth persisting."""
    return result.status is not ValidationStatus.SKIPPED and not result.from_cache


class MemoryResultCache:
    """In-process cache, used when no cache path is configured and in tests."""

    def __init__(self) -> None:
        self._results: dict[str, ValidationResult] = {}

    def get(self, key: str) -> ValidationResult | None:
        return self._results.get(key)

    def put_if_complete(self, key: str, value: ValidationResult) -> bool:
        if not is_complete(value):
            return False
        self._results[key] = value.model_copy(update={"reference": None})
        return True

    def __len__(self) -> int:
        return len(self._results)


class FileResultCache:
    """One JSON file per target under ``root``.

    Each write goes to a temporary file in the same directory and is moved
    into place with ``os.replace``, so a crash mid-write leaves the previous
    result intact. Writes are serialized per key only.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.root / f"{digest}.json"

    def get(self, key: str) -> ValidationResult | None:
        """Return the cached result for ``key``; unreadable entries are misses."""
        try:
            return self._read(key)
        except CacheError as exc:
            logger.warning("Ignoring cache entry for %s: %s", key, exc)
            return None

    def put_if_complete(self, key: str, value: ValidationResult) -> bool:
        """Persist ``value`` if it is a finished check; failures are logged."""
        if not is_complete(value):
            return False
        try:
            self._write(key, value.model_copy(update={"reference": None}))
        except CacheError as exc:
            logger.warning("Could not cache result for %s: %s", key, exc)
            return False
        return True

    def _read(self, key: str) -> ValidationResult | None:
        path = self.path_for(key)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheError(f"cannot read {path}: {exc}") from exc
        # Undecodable bytes and naive timestamps both fail validation.
        try:
            result = ValidationResult.model_validate_json(payload)
        except ValidationError as exc:
            raise CacheError(f"corrupt entry {path}") from exc
        if result.target != key:
            raise CacheError(f"entry {path} belongs to {result.target!r}")
        return result

    def _write(self, key: str, value: ValidationResult) -> None:
        lock = self._acquire_lock(key)
        try:
            self._write_locked(key, value, lock)
        finally:
            self._release_lock(key)

    def _acquire_lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _release_lock(self, key: str) -> None:
        # Locks only live while a write for their key is in flight.
        with self._locks_guard:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    def _write_locked(self, key: str, value: ValidationResult, lock: threading.Lock) -> None:
        path = self.path_for(key)
        with lock:
            tmp_name: str | None = None
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self.root,
                    prefix=".tmp-",
                    suffix=".json",
                    delete=False,
                ) as handle:
                    tmp_name = handle.name
                    handle.write(value.model_dump_json())
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except OSError as exc:
                if tmp_name is not None:
                    Path(tmp_name).unlink(missing_ok=True)
                raise CacheError(f"cannot write {path}: {exc}") from exc


async def get_async(cache: ResultCache, key: str) -> ValidationResult | None:
    """Read from the cache using a thread pool."""
    return await asyncio.to_thread(cache.get, key)


async def put_async(cache: ResultCache, key: str, value: ValidationResult) -> bool:
    """Write to the cache using a thread pool."""
    return await asyncio.to_thread(cache.put_if_complete, key, value)
