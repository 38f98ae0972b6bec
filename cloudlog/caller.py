"""Call-site capture for error-level entries.

Error Reporting groups entries by the location of the logging call and
parses the ``stacktrace`` field as a Python traceback, so both are taken
from the frame of whoever called the public logging method.
"""

from __future__ import annotations

import os
import sys
import traceback
from types import FrameType, TracebackType
from typing import Optional, Union

from cloudlog.models.schemas import ReportLocation

ExcInfo = Union[
    bool,
    BaseException,
    tuple[type[BaseException], BaseException, Optional[TracebackType]],
    None,
]

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

# Frames of the logging machinery itself, never reported as the call site.
_INTERNAL_FILES = frozenset(
    os.path.join(_PACKAGE_DIR, name) for name in ("caller.py", "logger.py")
)

_TRACEBACK_HEADER = "Traceback (most recent call last):\n"


def _is_internal(frame: FrameType) -> bool:
    return os.path.abspath(frame.f_code.co_filename) in _INTERNAL_FILES


def caller_frame(stacklevel: int = 1) -> FrameType | None:
    """Return the frame that called into the logger.

    Frames of the logger itself are skipped; ``stacklevel`` then walks
    further out, the way ``logging.Logger`` treats it, so wrapper helpers
    can report their own caller.
    """
    frame: FrameType | None = sys._getframe(1)
    while frame is not None and _is_internal(frame):
        frame = frame.f_back
    for _ in range(max(stacklevel, 1) - 1):
        if frame is None or frame.f_back is None:
            break
        frame = frame.f_back
    return frame


def report_location(frame: FrameType | None) -> ReportLocation:
    if frame is None:
        return ReportLocation(file_path="unknown", function_name="unknown", line_number=0)
    code = frame.f_code
    module = frame.f_globals.get("__name__")
    function = f"{module}.{code.co_name}" if module else code.co_name
    return ReportLocation(
        file_path=code.co_filename,
        function_name=function,
        line_number=frame.f_lineno,
    )


def format_stack(frame: FrameType | None) -> str:
    """Traceback-style text for the calling thread, innermost frame last."""
    if frame is None:
        return _TRACEBACK_HEADER
    return _TRACEBACK_HEADER + "".join(traceback.format_stack(frame))


def format_exception(exc_info: ExcInfo) -> str | None:
    """Formatted traceback for *exc_info*, or ``None`` when there is no exception.

    Accepts ``True`` (use the exception being handled), an exception
    instance, or a ``sys.exc_info()`` tuple.
    """
    if not exc_info:
        return None
    if isinstance(exc_info, BaseException):
        exc = exc_info
    elif isinstance(exc_info, tuple):
        exc = exc_info[1]
    else:
        exc = sys.exc_info()[1]
    if exc is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
