from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Environment variable overrides (useful for tests and portable installs)
ENV_ROOT = "STRONGHOLD_ROOT"
ENV_LOG_LEVEL = "STRONGHOLD_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings read from the environment.

    Recognised variables:
      - STRONGHOLD_ROOT: directory used instead of ``<home>/.stronghold``
      - STRONGHOLD_LOG_LEVEL: level name for :func:`configure_logging`
    """

    root: Optional[Path] = None
    log_level: Optional[str] = None

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        root_value = env.get(ENV_ROOT, "").strip()
        root = Path(root_value).expanduser() if root_value else None
        if root is not None:
            logger.debug("Using storage root override from %s: %s", ENV_ROOT, root)
        level = env.get(ENV_LOG_LEVEL, "").strip() or None
        return Settings(root=root, log_level=level)
