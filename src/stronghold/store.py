from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from .codec import STANDALONE, Info
from .config import Settings
from .errors import LoadError, SaveError, SaveNotFound, WriteFailure
from .paths import resolve
from .storage import FileStorage

logger = logging.getLogger(__name__)

__all__ = ["save", "load", "try_save", "try_load", "Stronghold"]


def _file_for_save(application_id: str, resource_name: str, settings: Optional[Settings]) -> FileStorage:
    try:
        return FileStorage(resolve(application_id, resource_name, settings=settings))
    except OSError as exc:
        raise WriteFailure(f"Could not prepare save directory for {application_id}/{resource_name}: {exc}") from exc


def _file_for_load(application_id: str, resource_name: str, settings: Optional[Settings]) -> FileStorage:
    try:
        return FileStorage(resolve(application_id, resource_name, settings=settings))
    except OSError as exc:
        raise SaveNotFound(f"Save directory for {application_id}/{resource_name} is unavailable: {exc}") from exc


def save(
    application_id: str,
    resource_name: str,
    value: Any,
    type_: Any = None,
    *,
    settings: Optional[Settings] = None,
) -> Info:
    """Serialize, compress and write ``value``, replacing any previous save.

    Raises:
        WriteFailure: the file could not be created or written.
        SerializationError: the value cannot be encoded.
    """
    storage = _file_for_save(application_id, resource_name, settings)
    info = STANDALONE.save(storage, value, type_)
    logger.info(
        "Saved %s/%s (%d -> %d bytes)",
        application_id,
        resource_name,
        info.uncompressed_byte_count,
        info.compressed_byte_count,
    )
    return info


def load(
    application_id: str,
    resource_name: str,
    type_: Any = Any,
    *,
    settings: Optional[Settings] = None,
) -> Any:
    """Read back a value written by :func:`save`.

    Raises:
        SaveNotFound: nothing has been saved under this identity.
        CorruptSaveError: the file is foreign, from another format version, or damaged.
        SchemaMismatchError: the stored value does not fit ``type_``.
    """
    storage = _file_for_load(application_id, resource_name, settings)
    return STANDALONE.load(storage, type_)


def try_save(
    application_id: str,
    resource_name: str,
    value: Any,
    type_: Any = None,
    *,
    settings: Optional[Settings] = None,
) -> Optional[Info]:
    """Like :func:`save` but returns None when the write fails."""
    try:
        return save(application_id, resource_name, value, type_, settings=settings)
    except SaveError as exc:
        logger.warning("Save of %s/%s failed: %s", application_id, resource_name, exc)
        return None


def try_load(
    application_id: str,
    resource_name: str,
    type_: Any = Any,
    *,
    settings: Optional[Settings] = None,
) -> Any:
    """Like :func:`load` but returns None when the save is missing or unreadable."""
    try:
        return load(application_id, resource_name, type_, settings=settings)
    except SaveNotFound:
        logger.debug("No save for %s/%s", application_id, resource_name)
        return None
    except LoadError as exc:
        logger.warning("Ignoring unreadable save %s/%s: %s", application_id, resource_name, exc)
        return None


class Stronghold:
    """Save/load bound to one application id."""

    def __init__(self, application_id: str, settings: Optional[Settings] = None) -> None:
        self.application_id = application_id
        self.settings = settings

    def __repr__(self) -> str:
        return f"Stronghold({self.application_id!r})"

    def path(self, resource_name: str) -> Path:
        return resolve(self.application_id, resource_name, settings=self.settings)

    def save(self, resource_name: str, value: Any, type_: Any = None) -> Info:
        return save(self.application_id, resource_name, value, type_, settings=self.settings)

    def load(self, resource_name: str, type_: Any = Any) -> Any:
        return load(self.application_id, resource_name, type_, settings=self.settings)

    def try_save(self, resource_name: str, value: Any, type_: Any = None) -> Optional[Info]:
        return try_save(self.application_id, resource_name, value, type_, settings=self.settings)

    def try_load(self, resource_name: str, type_: Any = Any) -> Any:
        return try_load(self.application_id, resource_name, type_, settings=self.settings)
