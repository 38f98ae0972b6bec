"""Logger configuration loaded from environment variables.

Uses a frozen dataclass for immutable settings with validation.  Invalid
values never fail: they fall back to defaults and a warning is written
to the standard-library ``logging`` channel instead of the JSON sink.
"""

import logging
import os
from dataclasses import dataclass

from cloudlog.models.schemas import Severity

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = Severity.INFO.name


def env_log_level() -> str:
    """Raw LOG_LEVEL value from the environment, empty when unset."""
    return os.environ.get("LOG_LEVEL", "")


@dataclass(frozen=True)
class Settings:
    """Immutable logger settings populated from environment variables."""

    log_level: str = DEFAULT_LOG_LEVEL
    service: str = ""
    version: str = ""

    def __post_init__(self) -> None:
        """Normalise the log level, falling back to INFO when unrecognised."""
        level = Severity.parse(self.log_level)
        if level is None:
            logger.warning(
                "LOG_LEVEL %r is not valid or not set, defaulting to %s",
                self.log_level,
                DEFAULT_LOG_LEVEL,
            )
            object.__setattr__(self, "log_level", DEFAULT_LOG_LEVEL)
        else:
            object.__setattr__(self, "log_level", level.name)

    @property
    def severity(self) -> Severity:
        return Severity[self.log_level]

    @property
    def has_identity(self) -> bool:
        return bool(self.service and self.version)

    @classmethod
    def load(cls) -> "Settings":
        """Create a Settings instance from the current environment variables."""
        s = cls(
            log_level=env_log_level(),
            service=os.environ.get("SERVICE", ""),
            version=os.environ.get("VERSION", ""),
        )
        if not s.has_identity:
            logger.warning(
                "SERVICE and VERSION are not both set, entries will omit serviceContext"
            )
        return s
