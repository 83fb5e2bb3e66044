"""
High-level orchestration of the PMT metadata export.

This module defines a :class:`PmtExportTool` class that ties together the
extractor, the record mapper, the metadata store and the JSON writer into
a complete run.  A run exports every project, then every release, from
the legacy store into the metadata store and into a single JSON file.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``pmt`` section must include ``source_path``,
``target_path`` and ``json_path``; missing values are taken from the
``PMT_SOURCE_PATH``, ``PMT_TARGET_PATH`` and ``PMT_JSON_PATH`` environment
variables.  Where reports are written can be changed under the
``reports`` key.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pmt_export.extractors.pmt_extractor import LegacyDocumentStore
from pmt_export.migrators.metadata_store import MetadataStore
from pmt_export.pipeline import ExportSummary, RecordKind, run_export
from pmt_export.utils.json_export import JsonExportWriter
from pmt_export.utils.pre_flight_checks import run_pre_flight_checks


@dataclass
class RunResult:
    summaries: List[ExportSummary] = field(default_factory=list)

    @property
    def exported(self) -> int:
        return sum(s.count for s in self.summaries)

    @property
    def failed(self) -> int:
        return sum(len(s.failures) for s in self.summaries)

    @property
    def ok(self) -> bool:
        return self.failed == 0


class PmtExportTool:
    """
    Encapsulates the configuration and behavior of one export run.  Detailed
    per-record outcomes are recorded using the :mod:`pmt_export.utils.errors`
    module; progress is written with :meth:`log_message`.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = json.load(f)
            config = _merge(file_config, config or {})
        elif config is None:
            # Default configuration
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("pmt", {})
        config["pmt"].setdefault("source_path", os.getenv("PMT_SOURCE_PATH", ""))
        config["pmt"].setdefault("target_path", os.getenv("PMT_TARGET_PATH", ""))
        config["pmt"].setdefault("json_path", os.getenv("PMT_JSON_PATH", ""))

        config.setdefault("reports", {})
        config["reports"].setdefault("dir", os.path.join("reports", "migration"))
        config["reports"].setdefault("log_file", "migration.log")

        self.config = config

    @property
    def report_dir(self) -> str:
        return self.config["reports"]["dir"]

    def log_message(self, message: str, level: str = "INFO") -> None:
        print(f"[{level}] {message}")
        # Append to log file
        os.makedirs(self.report_dir, exist_ok=True)
        log_path = os.path.join(self.report_dir, self.config["reports"]["log_file"])
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(f"{datetime.now():%Y-%m-%d %H:%M:%S} {level}: {message}\n")

    def export_all(self) -> RunResult:
        """
        Run the complete export: projects first, then releases.

        The configuration is checked before anything is opened.  The JSON
        file is opened once for the whole run and closed on every exit path.

        :return: One summary per record kind.
        :raises ConfigurationError: if a required setting is missing.
        :raises StoreConnectError: if the source or target store cannot be opened.
        :raises ExportWriteError: if the JSON file cannot be written.
        """
        run_pre_flight_checks(self.config)
        settings = self.config["pmt"]

        source = LegacyDocumentStore.open(settings["source_path"])
        self.log_message(f"Connected to source database: {source.title or settings['source_path']}")

        target_exists = os.path.exists(settings["target_path"])
        if not target_exists:
            self.log_message(f"Target database not found, creating a new one: {settings['target_path']}")

        result = RunResult()
        with MetadataStore.open(settings["target_path"]) as target:
            self.log_message(f"Connected to target database: {target.title}")

            json_path = settings["json_path"]
            if os.path.exists(json_path):
                self.log_message("The target json file already exists. Overwriting...", level="WARNING")
            else:
                self.log_message(f"Creating target json file: {os.path.abspath(json_path)}")

            with JsonExportWriter(json_path) as sink:
                for kind in (RecordKind.PROJECT, RecordKind.RELEASE):
                    summary = run_export(source, target, sink, kind, report_dir=self.report_dir)
                    result.summaries.append(summary)
                    self.log_message(
                        f"Exported {summary.count} {kind.array_name} "
                        f"({summary.skipped} skipped, {len(summary.failures)} failed)"
                    )

            self.log_message(f"JSON file written successfully to {os.path.abspath(json_path)}")

        if not result.ok:
            self.log_message(f"{result.failed} records could not be exported.", level="ERROR")
        return result


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
