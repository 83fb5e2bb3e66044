"""
Export pipeline: one pass over a view of the legacy store.

For every document of the view the pipeline maps it to a normalized
record, upserts that record into the metadata store and streams it to the
JSON export.  Failures of a single record are collected in the returned
:class:`ExportSummary` and do not stop the pass; a failing JSON sink does.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from pmt_export.extractors.pmt_extractor import LegacyDocumentStore, SourceDocument
from pmt_export.mappers.record_mapper import map_record
from pmt_export.migrators.metadata_store import MetadataStore
from pmt_export.migrators.upsert import upsert
from pmt_export.utils.errors import (
    RecordMappingError,
    UpsertError,
    report_error,
    report_ok,
)
from pmt_export.utils.json_export import JsonExportWriter

logger = logging.getLogger(__name__)


class RecordKind(enum.Enum):
    PROJECT = "project"
    RELEASE = "release"

    @property
    def view_name(self) -> str:
        return "(ProjectList)" if self is RecordKind.PROJECT else "ReleasesByDate"

    @property
    def array_name(self) -> str:
        return "projects" if self is RecordKind.PROJECT else "releases"


@dataclass
class ExportFailure:
    id: str
    name: str
    phase: str
    message: str


@dataclass
class ExportSummary:
    kind: RecordKind
    count: int = 0
    skipped: int = 0
    failures: List[ExportFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def describe(doc: SourceDocument, kind: RecordKind) -> str:
    name = doc.get_text("ProjectName")
    version = doc.get_text("ReleaseNumber") if kind is RecordKind.RELEASE else ""
    return f"{name}.{version}" if version else name


def run_export(
    source: LegacyDocumentStore,
    target: MetadataStore,
    json_sink: JsonExportWriter,
    kind: RecordKind,
    *,
    source_path: Optional[str] = None,
    report_dir: Optional[str] = None,
) -> ExportSummary:
    """
    Export every document of ``kind`` from ``source``.

    :param source: The legacy store.
    :param target: The metadata store receiving the upserts.
    :param json_sink: An open export writer; the kind's array is written to it.
    :param kind: Which view to enumerate.
    :param source_path: Path kept on each record.  Defaults to the source
        store's relative path.
    :param report_dir: When given, per-record outcomes are appended to
        ``errors.jsonl`` / ``success.jsonl`` in this directory.
    :return: Counts and failures of the pass.
    :raises StoreConnectError: if the view does not exist.
    :raises ExportWriteError: if the JSON sink fails.
    """
    path = source_path if source_path is not None else source.relative_path
    summary = ExportSummary(kind)

    collection = source.open_collection(kind.view_name)
    json_sink.begin_array(kind.array_name)

    for index, doc in collection:
        if doc.is_conflict or not doc.get_text("ProjectName").strip():
            summary.skipped += 1
            continue

        label = describe(doc, kind)
        logger.info("%d: %s", index, label)

        try:
            record = map_record(doc, path)
            upsert(target, record)
        except RecordMappingError as e:
            _record_failure(summary, doc.unid, label, "map", e, "MAPPING_FAILED", report_dir)
            continue
        except UpsertError as e:
            _record_failure(summary, doc.unid, label, e.phase, e, "UPSERT_FAILED", report_dir)
            continue

        # Sink failures propagate: the stream cannot be recovered.
        json_sink.write_record(record.to_export_json())
        summary.count += 1
        if report_dir:
            report_ok(
                "RECORD_EXPORTED",
                {"id": record.id, "name": label},
                {"kind": kind.value},
                path=os.path.join(report_dir, "success.jsonl"),
            )

    json_sink.end_array()

    logger.info(
        "%s export complete: %d exported, %d skipped, %d failed",
        kind.value,
        summary.count,
        summary.skipped,
        len(summary.failures),
    )
    return summary


def _record_failure(
    summary: ExportSummary,
    unid: str,
    label: str,
    phase: str,
    exc: Exception,
    code: str,
    report_dir: Optional[str],
) -> None:
    logger.error("Unable to export %s (%s) during %s: %s", label, unid, phase, exc)
    summary.failures.append(ExportFailure(unid, label, phase, str(exc)))
    if report_dir:
        report_error(code, {"id": unid, "name": label}, exc, path=os.path.join(report_dir, "errors.jsonl"))


__all__ = [
    "ExportFailure",
    "ExportSummary",
    "RecordKind",
    "run_export",
]
