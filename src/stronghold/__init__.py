"""
stronghold: store program save files in a per-application folder.

This package provides:
- A compact binary container (b"St" header + zlib + msgpack) for typed values
- Path resolution under ``~/.stronghold/<application_id>/``
- An archive mode that keeps several named values in one zip file
- ``save``/``load`` helpers that infer the application id from the caller
"""
from importlib.metadata import version, PackageNotFoundError

from .codec import HEADER_V1, Codec, Info
from .config import Settings
from .errors import (
    StrongholdError,
    ConfigurationError,
    PlatformUnsupported,
    InvalidIdentifier,
    SerializationError,
    SaveError,
    WriteFailure,
    LoadError,
    SaveNotFound,
    CorruptSaveError,
    SchemaMismatchError,
)
from .facade import save, load
from .store import Stronghold, try_load, try_save
from . import archive

try:
    __version__ = version("stronghold")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "HEADER_V1",
    "Codec",
    "Info",
    "Settings",
    "Stronghold",
    "save",
    "load",
    "try_save",
    "try_load",
    "archive",
    "StrongholdError",
    "ConfigurationError",
    "PlatformUnsupported",
    "InvalidIdentifier",
    "SerializationError",
    "SaveError",
    "WriteFailure",
    "LoadError",
    "SaveNotFound",
    "CorruptSaveError",
    "SchemaMismatchError",
]
