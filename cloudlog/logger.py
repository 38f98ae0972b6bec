"""Structured JSON logger for Google Cloud Error Reporting.

Each call that passes the severity threshold builds a fresh ``Payload``,
renders it as one compact JSON line and writes it to the sink.  Loggers
are values: ``with_fields`` and ``with_output`` return new instances and
never touch the receiver, so sibling loggers derived from the same
parent cannot see each other's fields and no locking is needed.

Emission never raises.  Formatting, serialization and write failures
are reported on the standard-library ``logging`` channel instead; the
only call that ends the process is ``fatal``.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any, NoReturn, TextIO

from cloudlog.caller import ExcInfo, caller_frame, format_exception, format_stack, report_location
from cloudlog.config import Settings, env_log_level
from cloudlog.models.schemas import Context, Payload, ReportLocation, ServiceContext, Severity

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now().astimezone()


def format_event_time(moment: datetime) -> str:
    """RFC3339 at second precision, ``Z`` for UTC."""
    text = moment.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        return text[:-6] + "Z"
    return text


class Logger:
    """Emits Error Reporting compatible JSON lines to a text sink."""

    def __init__(
        self,
        service_context: ServiceContext | None = None,
        level: Severity = Severity.INFO,
        fields: Mapping[str, Any] | None = None,
        sink: TextIO | None = None,
    ) -> None:
        self._service_context = service_context
        self._level = Severity(level)
        self._fields: dict[str, Any] = dict(fields or {})
        self._sink: TextIO = sink if sink is not None else sys.stdout

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        service: str = "",
        version: str = "",
        *,
        level: Severity | str | None = None,
        sink: TextIO | None = None,
    ) -> Logger:
        """Create a root logger for *service* at *version*.

        When *level* is omitted the threshold is read from ``LOG_LEVEL``;
        an unknown or missing value falls back to INFO with a warning.
        ``serviceContext`` is left out of every entry unless both
        *service* and *version* are given.
        """
        if level is None:
            level = env_log_level()
        elif isinstance(level, Severity):
            level = level.name
        settings = Settings(log_level=level, service=service, version=version)
        return cls.from_settings(settings, sink=sink)

    @classmethod
    def from_settings(cls, settings: Settings, sink: TextIO | None = None) -> Logger:
        service_context = None
        if settings.has_identity:
            service_context = ServiceContext(service=settings.service, version=settings.version)
        return cls(service_context=service_context, level=settings.severity, sink=sink)

    def with_fields(self, fields: Mapping[str, Any] | None = None, **kwargs: Any) -> Logger:
        """Return a new logger whose context is this one's merged with *fields*.

        Keyword arguments are merged last; on overlapping keys the newer
        value wins.  The receiver is left untouched.
        """
        merged = dict(self._fields)
        if fields:
            merged.update(fields)
        merged.update(kwargs)
        return Logger(self._service_context, self._level, merged, self._sink)

    def with_output(self, sink: TextIO) -> Logger:
        """Return a copy of this logger that writes to *sink*."""
        return Logger(self._service_context, self._level, self._fields, sink)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def service_context(self) -> ServiceContext | None:
        return self._service_context

    @property
    def level(self) -> Severity:
        return self._level

    @property
    def fields(self) -> Mapping[str, Any]:
        return MappingProxyType(self._fields)

    @property
    def sink(self) -> TextIO:
        return self._sink

    def is_enabled_for(self, severity: Severity) -> bool:
        return severity >= self._level

    def __repr__(self) -> str:
        service = self._service_context.service if self._service_context else None
        return f"Logger(service={service!r}, level={self._level.name}, fields={sorted(self._fields)})"

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def debug(self, msg: object, *args: Any) -> None:
        self._log(Severity.DEBUG, msg, args)

    def info(self, msg: object, *args: Any) -> None:
        self._log(Severity.INFO, msg, args)

    def warn(self, msg: object, *args: Any) -> None:
        self._log(Severity.WARN, msg, args)

    def error(
        self, msg: object, *args: Any, exc_info: ExcInfo = None, stacklevel: int = 1
    ) -> None:
        """Emit an ERROR entry with the caller's location and a stack trace.

        With *exc_info* the stack trace is the exception's traceback rather
        than the current call stack.
        """
        self._log_error(Severity.ERROR, msg, args, exc_info, stacklevel)

    def fatal(
        self, msg: object, *args: Any, exc_info: ExcInfo = None, stacklevel: int = 1
    ) -> NoReturn:
        """Emit a CRITICAL entry like ``error`` and then exit with status 1.

        Never returns.  The exit happens whether or not the entry could be
        written.  On the main thread this raises ``SystemExit`` so cleanup
        handlers run; from any other thread, where ``SystemExit`` would only
        end that thread, the process is terminated with ``os._exit``.
        """
        self._log_error(Severity.CRITICAL, msg, args, exc_info, stacklevel)
        if threading.current_thread() is threading.main_thread():
            sys.exit(1)
        self._flush()
        os._exit(1)

    def log(
        self,
        severity: Severity,
        msg: object,
        *args: Any,
        exc_info: ExcInfo = None,
        stacklevel: int = 1,
    ) -> None:
        """Emit at *severity*.  CRITICAL entries logged here do not exit."""
        severity = Severity(severity)
        if severity >= Severity.ERROR:
            self._log_error(severity, msg, args, exc_info, stacklevel)
        else:
            self._log(severity, msg, args)

    def _log_error(
        self,
        severity: Severity,
        msg: object,
        args: tuple[Any, ...],
        exc_info: ExcInfo,
        stacklevel: int,
    ) -> None:
        if not self.is_enabled_for(severity):
            return
        frame = caller_frame(stacklevel)
        location = report_location(frame)
        stacktrace = format_exception(exc_info) or format_stack(frame)
        del frame
        self._log(severity, msg, args, location=location, stacktrace=stacktrace)

    def _log(
        self,
        severity: Severity,
        msg: object,
        args: tuple[Any, ...],
        *,
        location: ReportLocation | None = None,
        stacktrace: str | None = None,
    ) -> None:
        if not self.is_enabled_for(severity):
            return
        if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
            args = args[0]
        try:
            message = str(msg) % args if args else str(msg)
        except Exception as e:
            logger.error("cannot format %s message: %s", severity.name, e)
            return
        self.emit(severity, message, location=location, stacktrace=stacktrace)

    def emit(
        self,
        severity: Severity,
        message: str,
        *,
        location: ReportLocation | None = None,
        stacktrace: str | None = None,
    ) -> None:
        """Write an already formatted entry at *severity*.

        No call-site capture happens here; *location* and *stacktrace* are
        written as given.  Below-threshold entries are dropped and failures
        are reported, never raised.
        """
        if not self.is_enabled_for(severity):
            return
        try:
            line = self._build(severity, message, location, stacktrace).to_json()
        except Exception as e:
            logger.error("cannot marshal %s payload: %s", severity.name, e)
            return
        self._write(line)

    def _build(
        self,
        severity: Severity,
        message: str,
        location: ReportLocation | None,
        stacktrace: str | None,
    ) -> Payload:
        context = None
        data = dict(self._fields) or None
        if data is not None or location is not None:
            context = Context(data=data, report_location=location)
        return Payload(
            severity=severity,
            event_time=format_event_time(_now()),
            message=message,
            service_context=self._service_context,
            context=context,
            stacktrace=stacktrace,
        )

    def _write(self, line: str) -> None:
        try:
            self._sink.write(line + "\n")
        except Exception as e:
            logger.error("cannot write log entry: %s", e)
            return
        self._flush()

    def _flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if flush is None:
            return
        try:
            flush()
        except Exception as e:
            logger.error("cannot flush log sink: %s", e)
