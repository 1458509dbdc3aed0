import logging
from typing import Optional

from .config import Settings


def configure_logging(default_level: int = logging.INFO, settings: Optional[Settings] = None) -> None:
    """Configure root logger with a sane default format.

    Respects STRONGHOLD_LOG_LEVEL env var if present.
    """
    settings = settings or Settings.from_env()
    level = default_level
    if settings.log_level:
        candidate = getattr(logging, settings.log_level.upper(), None)
        if isinstance(candidate, int):
            level = candidate
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
