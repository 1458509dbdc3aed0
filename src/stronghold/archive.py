"""Archive mode: several named resources stored as entries of one zip file.

Entries hold the bare serializer output. The container's own Deflate
compression replaces the codec's zlib stage, and there is no header.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from .codec import ARCHIVE
from .config import Settings
from .errors import LoadError, SaveError
from .paths import bundled_archive_path, resolve
from .storage import ArchiveEntryStorage

logger = logging.getLogger(__name__)

__all__ = ["save", "load", "fetch", "load_from"]


def save(
    application_id: str,
    container_name: str,
    entry_name: str,
    value: Any,
    type_: Any = None,
    *,
    settings: Optional[Settings] = None,
) -> bool:
    """Store ``value`` as ``entry_name`` inside the container. Returns True on failure.

    SerializationError is not a save failure and propagates.
    """
    try:
        container = resolve(application_id, container_name, settings=settings)
        ARCHIVE.save(ArchiveEntryStorage(container, entry_name), value, type_)
    except (SaveError, OSError) as exc:
        logger.warning("Failed to save %s into %s/%s: %s", entry_name, application_id, container_name, exc)
        return True
    logger.info("Saved entry %s into %s/%s", entry_name, application_id, container_name)
    return False


def load_from(container: str | Path, entry_name: str, type_: Any = Any) -> Any:
    """Decode ``entry_name`` from the container at ``container``, or None if unavailable."""
    try:
        return ARCHIVE.load(ArchiveEntryStorage(container, entry_name), type_)
    except LoadError as exc:
        logger.info("Entry %s unavailable in %s: %s", entry_name, container, exc)
        return None


def load(
    application_id: str,
    container_name: str,
    entry_name: str,
    type_: Any = Any,
    *,
    settings: Optional[Settings] = None,
) -> Any:
    """Decode an entry written by :func:`save`, or None if it is missing or unreadable."""
    try:
        container = resolve(application_id, container_name, settings=settings)
    except OSError as exc:
        logger.info("Archive %s/%s unavailable: %s", application_id, container_name, exc)
        return None
    return load_from(container, entry_name, type_)


def fetch(entry_name: str, type_: Any = Any, *, suffix: str = ".zip") -> Any:
    """Decode an entry from the archive shipped beside the running executable."""
    return load_from(bundled_archive_path(suffix), entry_name, type_)
