from __future__ import annotations

import logging
import os
import stat
import tempfile
import time
import zipfile
import zlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .errors import CorruptSaveError, SaveNotFound, WriteFailure

logger = logging.getLogger(__name__)

# Regular file, rw-r--r--
ENTRY_MODE = 0o100644


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class Storage(ABC):
    """Destination for one encoded value.

    Implementations translate their own low-level errors:
    reads raise SaveNotFound or CorruptSaveError, writes raise WriteFailure.
    """

    @abstractmethod
    def read_bytes(self) -> bytes:
        """Return the full stored contents."""

    @abstractmethod
    def write_bytes(self, data: bytes) -> None:
        """Replace the stored contents with ``data``."""


class FileStorage(Storage):
    """A standalone file. Writes truncate; there is no append."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileStorage({str(self.path)!r})"

    def read_bytes(self) -> bytes:
        try:
            with self.path.open("rb") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise SaveNotFound(f"No save file at {self.path}") from exc
        except OSError as exc:
            logger.info("Save file %s could not be opened: %s", self.path, exc)
            raise SaveNotFound(f"Save file {self.path} is unavailable: {exc}") from exc

    def write_bytes(self, data: bytes) -> None:
        try:
            with self.path.open("wb") as f:
                f.write(data)
        except OSError as exc:
            logger.warning("Failed to write save file %s: %s", self.path, exc)
            raise WriteFailure(f"Could not write {self.path}: {exc}") from exc


class ArchiveEntryStorage(Storage):
    """A named entry inside a zip container holding several resources."""

    def __init__(self, container: str | Path, entry: str) -> None:
        self.container = Path(container)
        self.entry = entry

    def __repr__(self) -> str:
        return f"ArchiveEntryStorage({str(self.container)!r}, {self.entry!r})"

    def read_bytes(self) -> bytes:
        try:
            with zipfile.ZipFile(self.container, "r") as zf:
                return zf.read(self.entry)
        except FileNotFoundError as exc:
            raise SaveNotFound(f"No archive at {self.container}") from exc
        except KeyError as exc:
            raise SaveNotFound(f"No entry {self.entry!r} in {self.container}") from exc
        except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
            raise CorruptSaveError(f"Archive {self.container} is damaged: {exc}") from exc
        except (NotImplementedError, RuntimeError) as exc:
            # Encrypted entries and unsupported compression methods
            raise CorruptSaveError(f"Entry {self.entry!r} in {self.container} is unreadable: {exc}") from exc
        except OSError as exc:
            raise SaveNotFound(f"Archive {self.container} is unavailable: {exc}") from exc

    def write_bytes(self, data: bytes) -> None:
        """Rewrite the container with ``entry`` replaced, keeping every other entry.

        The new container is built in a temporary file next to the old one and
        moved into place with os.replace.
        """
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=self.container.name, suffix=".tmp", dir=self.container.parent)
            with os.fdopen(fd, "wb") as raw, zipfile.ZipFile(raw, "w", zipfile.ZIP_DEFLATED) as dst:
                self._copy_other_entries(dst)
                dst.writestr(self._entry_info(), data)
            self._apply_mode(tmp_name)
            os.replace(tmp_name, self.container)
        except (OSError, zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as exc:
            logger.warning("Failed to write %r: %s", self, exc)
            raise WriteFailure(f"Could not write entry {self.entry!r} to {self.container}: {exc}") from exc
        finally:
            try:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)

    def _copy_other_entries(self, dst: zipfile.ZipFile) -> None:
        if not self.container.exists():
            return
        try:
            src = zipfile.ZipFile(self.container, "r")
        except zipfile.BadZipFile:
            logger.warning("Existing archive %s is not a zip file; replacing it", self.container)
            return
        with src:
            for info in src.infolist():
                if info.filename == self.entry:
                    continue
                dst.writestr(info, src.read(info.filename))

    def _apply_mode(self, tmp_name: str) -> None:
        """Give the new container the old one's permissions, or the umask default.

        mkstemp creates files as 0600.
        """
        try:
            mode = stat.S_IMODE(os.stat(self.container).st_mode)
        except FileNotFoundError:
            mode = 0o666 & ~_current_umask()
        try:
            os.chmod(tmp_name, mode)
        except OSError:  # Platform may not support
            logger.debug("Could not chmod %s", tmp_name, exc_info=True)

    def _entry_info(self) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(self.entry, date_time=time.localtime(time.time())[:6])
        info.compress_type = zipfile.ZIP_DEFLATED
        info.create_system = 3
        info.external_attr = ENTRY_MODE << 16
        return info


class MemoryStorage(Storage):
    """Test/deterministic storage that holds bytes in memory only."""

    def __init__(self, data: Optional[bytes] = None) -> None:
        self.data = data

    def read_bytes(self) -> bytes:
        if self.data is None:
            raise SaveNotFound("Nothing has been saved to this memory storage")
        return self.data

    def write_bytes(self, data: bytes) -> None:
        self.data = bytes(data)
