from __future__ import annotations

import logging

from hrnotify.core.config import get_settings


_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    # Configure the root logger once per process; entry points call this before doing work.
    settings = get_settings()
    resolved = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=resolved, format=_LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    # httpx logs every request at INFO, which drowns out delivery events.
    logging.getLogger("httpx").setLevel(logging.WARNING)
