"""
Extractors for the legacy project catalogue.

:mod:`pmt_export.extractors.pmt_extractor` reads the exported database and
exposes its documents through named views.
"""

from .pmt_extractor import LegacyDocumentStore, SourceDocument

__all__ = ["LegacyDocumentStore", "SourceDocument"]
