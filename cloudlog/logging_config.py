"""Route standard-library logging through a cloudlog ``Logger``.

Third-party libraries log via ``logging``; installing
``CloudLoggingHandler`` on the root logger makes their records come out
as the same single-line JSON entries, which Cloud Run forwards from
stdout to Cloud Logging and Error Reporting.
"""

import logging
import sys

from cloudlog.caller import format_exception
from cloudlog.logger import Logger
from cloudlog.models.schemas import ReportLocation, Severity

# Diagnostics about the logger itself are never fed back into it.
_OWN_NAMESPACE = "cloudlog"


def severity_for(levelno: int) -> Severity:
    """Map a ``logging`` level number onto the nearest Severity at or below it."""
    if levelno >= logging.CRITICAL:
        return Severity.CRITICAL
    if levelno >= logging.ERROR:
        return Severity.ERROR
    if levelno >= logging.WARNING:
        return Severity.WARN
    if levelno >= logging.INFO:
        return Severity.INFO
    return Severity.DEBUG


class CloudLoggingHandler(logging.Handler):
    """Formats log records as Error Reporting entries via a cloudlog Logger."""

    def __init__(self, logger: Logger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == _OWN_NAMESPACE or record.name.startswith(_OWN_NAMESPACE + "."):
            return
        severity = severity_for(record.levelno)
        entry_logger = self.logger.with_fields(logger=record.name)
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            self.handleError(record)
            return

        if severity < Severity.ERROR:
            entry_logger.emit(severity, message)
            return

        location = ReportLocation(
            file_path=record.pathname,
            function_name=f"{record.module}.{record.funcName}",
            line_number=record.lineno,
        )
        stacktrace = format_exception(record.exc_info)
        if stacktrace is None:
            stacktrace = record.stack_info or self._record_stack(record)
        entry_logger.emit(severity, message, location=location, stacktrace=stacktrace)

    @staticmethod
    def _record_stack(record: logging.LogRecord) -> str:
        return (
            "Traceback (most recent call last):\n"
            f'  File "{record.pathname}", line {record.lineno}, in {record.funcName}\n'
        )


def setup_logging(logger: Logger, level: int = logging.INFO) -> None:
    """Replace the root logger's handlers with a ``CloudLoggingHandler``.

    The cloudlog diagnostic loggers keep a plain stderr handler of their
    own so that marshal and write failures stay visible.
    """
    diagnostics = logging.getLogger(_OWN_NAMESPACE)
    if not diagnostics.handlers:
        fallback = logging.StreamHandler(sys.stderr)
        fallback.setFormatter(logging.Formatter("%(name)s %(levelname)s: %(message)s"))
        diagnostics.addHandler(fallback)
    diagnostics.propagate = False

    handler = CloudLoggingHandler(logger)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
