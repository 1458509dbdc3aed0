from __future__ import annotations

import logging
import os
import sys
from pathlib import Path, PurePosixPath
from typing import Mapping, Optional

from .config import Settings
from .errors import ConfigurationError, InvalidIdentifier, PlatformUnsupported

__all__ = [
    "NAMESPACE",
    "home_dir",
    "storage_root",
    "resolve",
    "is_frozen",
    "executable_path",
    "bundled_archive_path",
]

# Hidden folder under the user's home reserved for stronghold data
NAMESPACE = ".stronghold"

_WINDOWS_PLATFORMS = {"win32", "cygwin"}
_UNSUPPORTED_PLATFORMS = {"android", "ios", "emscripten", "wasi"}

_logger = logging.getLogger(__name__)


def _current_platform() -> str:
    # Older CPython builds for Android still report "linux"
    if hasattr(sys, "getandroidapilevel"):
        return "android"
    return sys.platform


def home_dir(platform: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the user's home directory from the platform's conventional variable.

    Windows: %USERPROFILE%
    Others:  $HOME

    Raises:
        PlatformUnsupported: the platform has no home-directory convention.
        ConfigurationError: the variable is unset or empty.
    """
    platform = platform or _current_platform()
    env = os.environ if environ is None else environ
    if platform in _UNSUPPORTED_PLATFORMS:
        raise PlatformUnsupported(f"No save directory convention for platform {platform!r}")
    var = "USERPROFILE" if platform in _WINDOWS_PLATFORMS else "HOME"
    value = env.get(var)
    if not value:
        raise ConfigurationError(f"Couldn't interpret ${var}: variable is not set")
    return Path(value)


def storage_root(settings: Optional[Settings] = None) -> Path:
    """Return the root that holds every application's save folder.

    ``<home>/.stronghold`` unless STRONGHOLD_ROOT overrides it.
    """
    settings = settings or Settings.from_env()
    if settings.root is not None:
        return settings.root
    return home_dir() / NAMESPACE


def _check_segment(kind: str, value: str) -> PurePosixPath:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifier(f"{kind} must be a non-empty string")
    if "\x00" in value:
        raise InvalidIdentifier(f"{kind} must not contain NUL: {value!r}")
    normalized = value.replace("\\", "/")
    rel = PurePosixPath(normalized)
    if rel.is_absolute():
        raise InvalidIdentifier(f"{kind} must be relative: {value!r}")
    parts = normalized.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise InvalidIdentifier(f"{kind} contains an empty, '.' or '..' segment: {value!r}")
    if ":" in parts[0]:
        raise InvalidIdentifier(f"{kind} must not name a drive: {value!r}")
    return rel


def resolve(
    application_id: str,
    resource_name: str,
    *,
    settings: Optional[Settings] = None,
    create: bool = True,
) -> Path:
    """Return ``<root>/<application_id>/<resource_name>``.

    When ``create`` is True every directory above the final component is
    created. The path is recomputed on every call.
    """
    app = _check_segment("application_id", application_id)
    name = _check_segment("resource_name", resource_name)
    path = storage_root(settings).joinpath(*app.parts, *name.parts)
    if create:
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def is_frozen() -> bool:
    """Return True if running under a frozen bundle (e.g., PyInstaller)."""
    return bool(getattr(sys, "frozen", False))


def executable_path() -> Path:
    """Return the path of the running executable or script.

    - If frozen, this is sys.executable.
    - Otherwise, the script named by sys.argv[0], falling back to the
      interpreter when there is none (interactive sessions).
    """
    if is_frozen():
        return Path(sys.executable).resolve()
    script = sys.argv[0] if sys.argv else ""
    if script and script not in ("-c", "-m"):
        return Path(script).resolve()
    _logger.debug("No script path available; using interpreter path")
    return Path(sys.executable).resolve()


def bundled_archive_path(suffix: str = ".zip") -> Path:
    """Return the archive that ships next to the executable, e.g. ``game.exe`` -> ``game.zip``."""
    return executable_path().with_suffix(suffix)
