__all__ = [
    "Logger",
    "Settings",
    "Severity",
    "Payload",
    "init",
    "get_logger",
    "setup_logging",
]
__version__ = "1.0.0"

from .bootstrap import get_logger, init
from .config import Settings
from .logger import Logger
from .logging_config import setup_logging
from .models.schemas import Payload, Severity
