from __future__ import annotations

import importlib.metadata as metadata
import logging
import re
import sys
from pathlib import Path
from types import FrameType
from typing import Optional

from .errors import ConfigurationError
from .paths import is_frozen

logger = logging.getLogger(__name__)

__all__ = ["infer_app_id", "module_app_id", "normalize_app_id"]


def normalize_app_id(name: str) -> str:
    """Lowercase ``name`` and fold runs of ``_``, ``.`` and ``-`` into one ``-``."""
    return re.sub(r"[-_.]+", "-", name.strip()).lower()


def _distribution_for(package: str) -> Optional[str]:
    try:
        dists = metadata.packages_distributions().get(package) or []
    except Exception:  # pragma: no cover - broken site-packages metadata is environment-specific
        logger.debug("Could not read package metadata", exc_info=True)
        return None
    return dists[0] if dists else None


def _main_app_id() -> Optional[str]:
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    if spec is not None and spec.name:
        # python -m pkg.module
        name = spec.name
        if name.endswith(".__main__"):
            name = name[: -len(".__main__")]
        return name.split(".")[0]
    if is_frozen():
        return Path(sys.executable).stem
    script = getattr(main, "__file__", None) or (sys.argv[0] if sys.argv else "")
    if script and script not in ("-c", "-m"):
        return Path(script).stem
    return None


def module_app_id(module_name: str) -> str:
    """Return the application id for code living in ``module_name``.

    The top-level package is mapped to its installed distribution name when
    one exists, mirroring the package name a build tool would report.
    """
    if module_name == "__main__":
        name = _main_app_id()
        if not name:
            raise ConfigurationError("Cannot infer an application id for an interactive session; pass app_id")
    else:
        package = module_name.split(".")[0]
        name = _distribution_for(package) or package
    return normalize_app_id(name)


def infer_app_id(stacklevel: int = 1) -> str:
    """Infer the application id of the caller ``stacklevel`` frames up."""
    frame: Optional[FrameType] = sys._getframe(stacklevel)
    module_name = frame.f_globals.get("__name__", "__main__") if frame is not None else "__main__"
    app_id = module_app_id(module_name)
    logger.debug("Inferred application id %r from module %s", app_id, module_name)
    return app_id
