"""
Mapping of legacy documents to normalized metadata records.

:func:`map_record` picks the record shape from the ``Form`` item, copies
scalar and list items by name, and runs the designated rich text item
through :func:`pmt_export.parsers.normalize` exactly once.  Any failure
is raised as :class:`RecordMappingError` so the caller can skip the
document as a unit.
"""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import ValidationError

from pmt_export.extractors.pmt_extractor import SourceDocument, is_project
from pmt_export.models.records import NormalizedRecord, ProjectRecord, ReleaseRecord
from pmt_export.parsers.rich_text import normalize
from pmt_export.utils.errors import PmtExportError, RecordMappingError
from pmt_export.utils.urls import project_source_url


def map_record(doc: SourceDocument, source_path: str) -> NormalizedRecord:
    """
    Map a source document to a :class:`ProjectRecord` or :class:`ReleaseRecord`.

    :param doc: The legacy document.
    :param source_path: Relative path of the source store, kept on the record.
    :return: The normalized record, ``id`` being the document UNID.
    :raises RecordMappingError: if any item cannot be converted.
    """
    try:
        if is_project(doc):
            return _map_project(doc, source_path)
        return _map_release(doc, source_path)
    except (PmtExportError, ValidationError, ValueError, TypeError, OverflowError) as e:
        raise RecordMappingError(doc.unid, e) from e


def _rich_text(doc: SourceDocument, item_name: str, label: str) -> Tuple[str, str]:
    field = doc.get_rich_text(item_name)
    if field is None:
        return "", ""
    text, body = normalize(field, label=label)
    return text, body.as_text()


def _map_project(doc: SourceDocument, source_path: str) -> ProjectRecord:
    name = doc.get_text("ProjectName")
    details_text, details_body = _rich_text(doc, "Details", f"Project {name}")

    return ProjectRecord(
        id=doc.unid,
        name=name,
        overview=doc.get_text("ProjectOverview"),
        details_text=details_text,
        details_body=details_body,
        downloads=doc.get_int("DownloadsProject", 0),
        category=doc.get_text("MainCat"),
        chefs=doc.get_list("MasterChef"),
        cooks=doc.get_list("ProjectCooks"),
        created=doc.get_datetime("Entry_Date", doc.created),
        latest_release_date=doc.get_datetime("ReleaseDate", doc.last_modified),
        last_modified=doc.last_modified,
        source_control_url=doc.get_text("GithubProject"),
        source_url=project_source_url(name),
        source_path=source_path,
    )


def _map_release(doc: SourceDocument, source_path: str) -> ReleaseRecord:
    name = doc.get_text("ProjectName")
    version = doc.get_text("ReleaseNumber")
    description_text, description_body = _rich_text(
        doc, "WhatsNew", f"Release {_label(name, version)}"
    )

    return ReleaseRecord(
        id=doc.unid,
        project_name=name,
        version=version,
        release_date=doc.get_datetime("ReleaseDate", doc.last_modified),
        description_text=description_text,
        description_body=description_body,
        downloads=doc.get_int("DownloadsRelease", 0),
        main_id=doc.get_text("MainId"),
        release_status=doc.get_text("ReleaseInCatalog"),
        released=doc.get_text("Status"),
        chef=doc.get_text("Entry_Person"),
        master_chefs=doc.get_list("MasterChef"),
        license_type=doc.get_text("LicenseType"),
        source_url=project_source_url(name),
        source_path=source_path,
    )


def _label(name: str, version: Optional[str]) -> str:
    return f"{name}.{version}" if version else name
