"""
Exceptions and structured reporting for the PMT metadata export.

The exception hierarchy separates fatal run-level failures
(:class:`ConfigurationError`, :class:`StoreConnectError`,
:class:`ExportWriteError`) from failures that only affect a single record
(:class:`RichTextDecodeError`, :class:`RecordMappingError`,
:class:`UpsertError`).  The export pipeline catches the latter, records
them and moves on to the next document.

Besides the exceptions, this module centralizes the writing of report
entries for failed and successful records.  Each entry is appended to a
JSON Lines file under ``reports/migration`` so that the outcome of a run
can be reviewed or parsed afterwards.

``report_error``
    Record an error that occurred for a record.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful step for a record.  Additional key/value information
    can be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class PmtExportError(Exception):
    """Base class for every error raised by the export."""


class ConfigurationError(PmtExportError):
    """A required configuration value is missing.  Raised before any I/O."""


class StoreConnectError(PmtExportError):
    """The source or target store (or one of its views) cannot be opened."""


class RichTextDecodeError(PmtExportError):
    """Rich text content could not be decoded."""


class RecordMappingError(PmtExportError):
    """A source document could not be mapped to a normalized record."""

    def __init__(self, unid: str, cause: BaseException) -> None:
        self.unid = unid
        self.cause = cause
        super().__init__(f"Unable to map document {unid}: {cause}")


class UpsertError(PmtExportError):
    """The target store rejected a delete or create for a record."""

    def __init__(self, record_id: str, phase: str, cause: BaseException) -> None:
        self.record_id = record_id
        self.phase = phase
        self.cause = cause
        super().__init__(f"Upsert of {record_id} failed during {phase}: {cause}")


class ExportWriteError(PmtExportError):
    """The JSON export file could not be written.  Fatal for the run."""


# Mapping of event codes used throughout the export to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "MAPPING_FAILED": "Failed to map source document",
    "UPSERT_FAILED": "Failed to write record to the metadata store",
    "RECORD_EXPORTED": "Record exported successfully",
}

_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def report_error(
    code: str,
    record: Dict[str, Any],
    exc: Optional[BaseException] = None,
    *,
    path: str = _ERROR_LOG,
) -> None:
    """Log an error event for ``record``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    record:
        A dictionary describing the record.  Only the ``id`` and ``name``
        keys are referenced if present.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    path:
        JSON Lines file the entry is appended to.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": record.get("id"),
        "name": record.get("name"),
    }
    if exc is not None:
        entry["error"] = str(exc)
        phase = getattr(exc, "phase", None)
        if phase:
            entry["phase"] = phase
    print(f"[ERROR] {message} - {record.get('name', '')} ({record.get('id', '')})")
    _write_jsonl(path, entry)


def report_ok(
    code: str,
    record: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    *,
    path: str = _OK_LOG,
) -> None:
    """Log a successful event for ``record``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    record:
        A dictionary describing the record.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    path:
        JSON Lines file the entry is appended to.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": record.get("id"),
        "name": record.get("name"),
    }
    if extra:
        entry.update(extra)
    _write_jsonl(path, entry)
