from __future__ import annotations

import logging

import duckdb

from pmt_export.migrators.metadata_store import BY_ID_VIEW, MetadataStore
from pmt_export.models.records import NormalizedRecord
from pmt_export.utils.errors import UpsertError

logger = logging.getLogger(__name__)


def upsert(target: MetadataStore, record: NormalizedRecord) -> None:
    """
    Replace the metadata document of ``record`` in ``target``.

    Every document whose ``id`` matches is deleted, then a new one is created
    from all fields of the record.  Delete and create are separate writes: a
    crash in between leaves no document for that id until the next run.

    :raises UpsertError: with phase ``"delete"`` or ``"create"``.
    """
    try:
        existing = target.open_collection(BY_ID_VIEW).select_by_key(record.id)
        for doc in existing:
            doc.delete()
    except duckdb.Error as e:
        raise UpsertError(record.id, "delete", e) from e
    if len(existing) > 1:
        logger.warning("Removed %d duplicate documents for %s", len(existing), record.id)

    try:
        doc = target.create_document()
        doc.replace_item_value("Form", record.form)
        for name, value in record.to_items().items():
            if name == "form":
                continue
            doc.replace_item_value(name, value)
        doc.save()
    except (duckdb.Error, TypeError, ValueError) as e:
        raise UpsertError(record.id, "create", e) from e
