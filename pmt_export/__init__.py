"""
Top-level package for the PMT metadata export.

This package bundles all components required to copy project and release
documents from an exported PMT database into a normalized metadata store
and a static JSON file.  Modules are split into subpackages:

* :mod:`pmt_export.extractors` – read access to the legacy export
* :mod:`pmt_export.parsers` – rich text normalization
* :mod:`pmt_export.mappers` – legacy document to record mapping
* :mod:`pmt_export.migrators` – the DuckDB metadata store and upsert
* :mod:`pmt_export.utils` – errors, reports, JSON export and URLs

Each layer receives the stores and sinks it works with as arguments;
orchestration is handled in :mod:`pmt_export.export_tool`.
"""

__version__ = "1.0.0"
