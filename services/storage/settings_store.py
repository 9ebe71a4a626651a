"""
JSON-backed settings store with load-time migration onto the default schema.

The store owns a single settings file. Loading merges whatever is on disk
onto a fresh default document so older files gain new fields without any
version bookkeeping; updates are merged the same way and written back
atomically before they become visible to readers.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

import config
from services.storage.defaults import default_settings
from services.storage.merge import deep_merge, missing_keys
from services.storage.schemas import (
    InterfaceSettings,
    PartialInterfaceSettings,
    PartialSettingsDocument,
    SettingsDocument,
)

logger = logging.getLogger(__name__)

# Permission bits for a settings file created from scratch.
NEW_FILE_MODE = 0o644


class ErrorKind(str, Enum):
    NOT_INITIALIZED = "not_initialized"
    WRITE_FAILED = "write_failed"


class ConfigStoreError(Exception):
    """Base error raised by the settings store."""

    kind: ErrorKind

    def __init__(self, message: str, *, kind: ErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


class StoreNotInitializedError(ConfigStoreError):
    def __init__(self, message: str = "Config store has not been initialized.") -> None:
        super().__init__(message, kind=ErrorKind.NOT_INITIALIZED)


class StoreWriteError(ConfigStoreError):
    """Raised when the settings file could not be written."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message, kind=ErrorKind.WRITE_FAILED)
        self.path = path


@dataclass(slots=True)
class LoadResult:
    """Outcome of reading the settings file."""

    document: SettingsDocument
    was_migrated: bool
    malformed: bool = False


def _read_raw(path: Path) -> tuple[Optional[Dict[str, Any]], bool]:
    """
    Return ``(payload, malformed)`` for the file at ``path``.

    ``payload`` is ``None`` when the file does not exist. Empty, unparsable
    or non-object content yields ``({}, True)``.
    """
    if not path.exists():
        return None, False
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Unable to read settings file %s (%s); falling back to defaults.", path, exc)
        return {}, True
    if not raw.strip():
        logger.warning("Settings file %s is empty; falling back to defaults.", path)
        return {}, True
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Settings file %s is not valid JSON (%s); falling back to defaults.", path, exc)
        return {}, True
    if not isinstance(payload, dict):
        logger.warning(
            "Settings file %s holds a JSON %s instead of an object; falling back to defaults.",
            path,
            type(payload).__name__,
        )
        return {}, True
    return payload, False


def load_settings(path: Path) -> LoadResult:
    """
    Read ``path`` and merge it onto the default document.

    A missing file yields the defaults with ``was_migrated`` set so the
    caller writes it out. Malformed content is treated as ``{}``.
    """
    payload, malformed = _read_raw(path)
    if payload is None:
        logger.info("Settings file %s not found; seeding defaults.", path)
        return LoadResult(document=default_settings(), was_migrated=True)
    defaults = default_settings()
    merged: SettingsDocument = deep_merge(defaults, payload)  # type: ignore[assignment]
    was_migrated = merged != payload
    if was_migrated and not malformed:
        logger.info(
            "Settings file %s is missing %s; filling in defaults.",
            path,
            ", ".join(missing_keys(defaults, payload)),
        )
    return LoadResult(document=merged, was_migrated=was_migrated, malformed=malformed)


def write_settings(path: Path, document: SettingsDocument) -> None:
    """
    Atomically replace ``path`` with the pretty-printed ``document``.

    Content goes to a temporary sibling first and is renamed over the
    target once flushed, so readers never observe a partial file. The
    target keeps its existing permission bits; new files get 0644.
    """
    try:
        content = json.dumps(document, ensure_ascii=False, indent=2) + "\n"
    except (TypeError, ValueError) as exc:
        logger.error("Settings for %s are not JSON serializable: %s", path, exc)
        raise StoreWriteError(f"Unable to serialize settings for {path}: {exc}", path=path) from exc
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        mode = stat.S_IMODE(path.stat().st_mode) if path.exists() else NEW_FILE_MODE
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        logger.error("Failed to prepare settings file %s: %s", path, exc)
        raise StoreWriteError(f"Unable to write settings file {path}: {exc}", path=path) from exc
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(temp_path, mode)
        temp_path.replace(path)
    except OSError as exc:
        logger.error("Failed to write settings file %s: %s", path, exc)
        raise StoreWriteError(f"Unable to write settings file {path}: {exc}", path=path) from exc
    finally:
        temp_path.unlink(missing_ok=True)


class ConfigStore:
    """
    Process-wide owner of the settings document.

    ``initialize`` must complete before any accessor is used. Mutations are
    serialized through an ``asyncio.Lock`` and only committed to memory
    after the file write succeeded. Reads return deep copies of the last
    committed snapshot.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._document: Optional[SettingsDocument] = None
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._document is not None

    async def initialize(self) -> None:
        """Load or create the settings file. Subsequent calls are no-ops."""
        async with self._lock:
            if self._document is not None:
                return
            result = await asyncio.to_thread(load_settings, self.path)
            if result.was_migrated:
                await asyncio.to_thread(write_settings, self.path, result.document)
            self._document = result.document
            logger.debug("Config store ready at %s.", self.path)

    def reset(self) -> None:
        """Drop the cached document and return to the uninitialized state."""
        self._document = None
        self._generation += 1

    def _require_document(self) -> SettingsDocument:
        if self._document is None:
            raise StoreNotInitializedError()
        return self._document

    def get_config(self) -> SettingsDocument:
        return copy.deepcopy(self._require_document())

    def get_interface(self) -> InterfaceSettings:
        return copy.deepcopy(self._require_document()["interface"])

    async def update_config(self, partial: PartialSettingsDocument) -> None:
        """
        Merge ``partial`` onto the current document and persist it.

        Raises:
            StoreNotInitializedError: if ``initialize`` has not completed.
            StoreWriteError: if the file could not be written; the in-memory
                document is left untouched.
        """
        async with self._lock:
            current = self._require_document()
            generation = self._generation
            if "machineId" in partial:
                logger.warning("Ignoring attempt to overwrite machineId.")
                partial = {key: value for key, value in partial.items() if key != "machineId"}  # type: ignore[assignment]
            updated: SettingsDocument = deep_merge(current, partial)  # type: ignore[assignment]
            await asyncio.to_thread(write_settings, self.path, updated)
            if generation != self._generation:
                logger.warning("Config store was reset during an update; not committing it to memory.")
                return
            self._document = updated
            logger.debug("Settings updated: %s", ", ".join(partial.keys()) or "<none>")

    async def update_interface(self, partial: PartialInterfaceSettings) -> None:
        await self.update_config({"interface": partial})


_INSTANCE_LOCK = Lock()
_INSTANCE: ConfigStore | None = None


def get_config_store(path: Path | str | None = None) -> ConfigStore:
    """
    Return the process-wide store, creating it on first call.

    The path is resolved once; later calls ignore ``path`` and return the
    same, possibly uninitialized, handle.
    """
    global _INSTANCE
    with _INSTANCE_LOCK:
        if _INSTANCE is None:
            _INSTANCE = ConfigStore(path if path is not None else config.SETTINGS_PATH)
        return _INSTANCE


def reset_config_store() -> None:
    """Forget the process-wide store so the next lookup starts fresh."""
    global _INSTANCE
    with _INSTANCE_LOCK:
        if _INSTANCE is not None:
            _INSTANCE.reset()
        _INSTANCE = None
