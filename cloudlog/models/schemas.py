"""Pydantic models for the Cloud Error Reporting log entry format.

Field declaration order is the JSON key order.  Optional parts of the
entry are dropped from the output when unset, so an INFO line without
context carries no ``context`` key at all.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_serializer


class Severity(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    CRITICAL = 4

    @classmethod
    def parse(cls, name: str | None) -> Severity | None:
        """Return the severity called *name* (case-insensitive), or ``None``."""
        if not name:
            return None
        return cls.__members__.get(name.strip().upper())


def _sorted_mapping(value: Any, _active: frozenset[int] = frozenset()) -> Any:
    """Copy *value* with mapping keys in lexicographic order, at every depth."""
    if not isinstance(value, (Mapping, list, tuple)):
        return value
    if id(value) in _active:
        raise ValueError("Circular reference detected in log fields")
    active = _active | {id(value)}
    if isinstance(value, Mapping):
        return {k: _sorted_mapping(value[k], active) for k in sorted(value, key=str)}
    return [_sorted_mapping(v, active) for v in value]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_serializer(mode="wrap")
    def drop_unset(self, handler):
        return {k: v for k, v in handler(self).items() if v is not None}


class ServiceContext(_CamelModel):
    service: str
    version: str


class ReportLocation(_CamelModel):
    file_path: str = Field(alias="filePath")
    function_name: str = Field(alias="functionName")
    line_number: int = Field(alias="lineNumber")


class Context(_CamelModel):
    data: dict[str, Any] | None = None
    report_location: ReportLocation | None = Field(default=None, alias="reportLocation")

    @field_serializer("data")
    def sort_data_keys(self, data: dict[str, Any] | None):
        if data is None:
            return None
        return _sorted_mapping(data)


class Payload(_CamelModel):
    """A single log entry, built per call and discarded after serialization."""

    severity: Severity
    event_time: str = Field(alias="eventTime")
    message: str
    service_context: ServiceContext | None = Field(default=None, alias="serviceContext")
    context: Context | None = None
    stacktrace: str | None = None

    @field_serializer("severity")
    def severity_name(self, severity: Severity) -> str:
        return severity.name

    def to_json(self) -> str:
        """Render the entry as one compact JSON line (without the newline)."""
        return self.model_dump_json(by_alias=True)
