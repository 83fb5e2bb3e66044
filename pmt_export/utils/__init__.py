"""
Utility helpers used by the export tool.

This subpackage exposes the error types, JSONL reporting, the streaming
JSON export writer and the catalogue URL helper.
"""

from .errors import (
    ERRORS,
    ConfigurationError,
    ExportWriteError,
    PmtExportError,
    RecordMappingError,
    RichTextDecodeError,
    StoreConnectError,
    UpsertError,
    report_error,
    report_ok,
)
from .json_export import JsonExportWriter
from .urls import project_source_url

__all__ = [
    "ERRORS",
    "ConfigurationError",
    "ExportWriteError",
    "JsonExportWriter",
    "PmtExportError",
    "RecordMappingError",
    "RichTextDecodeError",
    "StoreConnectError",
    "UpsertError",
    "project_source_url",
    "report_error",
    "report_ok",
]
