"""Process-wide default logger.

``init`` is the single, explicit place where a default logger is
installed.  It is set-once for the life of the process: a second call
raises instead of silently replacing the logger other modules already
hold.
"""

from __future__ import annotations

import logging
from typing import TextIO

from cloudlog.config import Settings
from cloudlog.logger import Logger

logger = logging.getLogger(__name__)

_default_logger: Logger | None = None


def init(settings: Settings | None = None, *, sink: TextIO | None = None) -> Logger:
    """Install and return the process default logger.

    *settings* defaults to ``Settings.load()``.  Raises ``RuntimeError``
    if a default logger has already been installed.
    """
    global _default_logger
    if _default_logger is not None:
        raise RuntimeError("cloudlog.init() has already been called for this process")
    if settings is None:
        settings = Settings.load()
    _default_logger = Logger.from_settings(settings, sink=sink)
    logger.debug("Initialized default logger (level=%s)", settings.log_level)
    return _default_logger


def get_logger() -> Logger:
    if _default_logger is None:
        raise RuntimeError("cloudlog.init() must be called before get_logger()")
    return _default_logger
