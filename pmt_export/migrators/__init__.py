"""
Writers for the metadata store.

This subpackage provides the DuckDB backed :class:`MetadataStore` and the
:func:`upsert` that replaces a record's document in it, keyed by the
record's stable id.
"""

from .metadata_store import MetadataDocument, MetadataStore
from .upsert import upsert

__all__ = ["MetadataDocument", "MetadataStore", "upsert"]
