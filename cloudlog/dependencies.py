"""FastAPI dependency returning the logger for the current request.

Can be overridden in tests via the app.dependency_overrides mechanism.
"""

from fastapi import Request

from cloudlog.bootstrap import get_logger
from cloudlog.logger import Logger


def get_request_logger(request: Request) -> Logger:
    """Logger set by ``RequestContextMiddleware``, else the process default."""
    request_logger = getattr(request.state, "logger", None)
    if request_logger is None:
        return get_logger()
    return request_logger
