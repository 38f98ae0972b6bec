import io
import json
import logging
from datetime import datetime, timezone

import pytest

from cloudlog import bootstrap
from cloudlog import logger as logger_module
from cloudlog.logger import Logger
from cloudlog.logging_config import CloudLoggingHandler
from cloudlog.models.schemas import Severity

FROZEN_NOW = datetime(2026, 10, 19, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def frozen_now(monkeypatch):
    monkeypatch.setattr(logger_module, "_now", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "SERVICE", "VERSION"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def reset_default_logger(monkeypatch):
    monkeypatch.setattr(bootstrap, "_default_logger", None)


@pytest.fixture
def restore_logging():
    """Undo root-logger changes made by setup_logging."""
    root = logging.getLogger()
    own = logging.getLogger("cloudlog")
    level, own_handlers, propagate = root.level, list(own.handlers), own.propagate
    yield
    for handler in list(root.handlers):
        if isinstance(handler, CloudLoggingHandler):
            root.removeHandler(handler)
    root.setLevel(level)
    own.handlers[:] = own_handlers
    own.propagate = propagate


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def log(sink):
    return Logger.create("my-app", "1.0", level=Severity.DEBUG, sink=sink)


@pytest.fixture
def entries(sink):
    """Callable returning every JSON entry written to ``sink`` so far."""
    return lambda: [json.loads(line) for line in sink.getvalue().splitlines()]
