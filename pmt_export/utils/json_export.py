"""
Streaming writer for the static JSON export.

The export file holds one object with an array per record kind::

    {
      "projects": [
        {...},
        {...}
      ],
      "releases": [
        {...}
      ]
    }

Records are written one at a time as they are produced, so the whole
export never has to be held in memory.  The writer is a context manager:
the file is closed on every exit path.  When the run aborts midway the
file is closed as-is and may be syntactically incomplete.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, IO, Optional

from pmt_export.utils.errors import ExportWriteError

_INDENT = 2


class JsonExportWriter:
    """Pretty-printed, incremental writer of the export object."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._fh: Optional[IO[str]] = None
        self._arrays_written = 0
        self._current_array: Optional[str] = None
        self._items_in_array = 0
        self.records_written = 0

    def open(self) -> "JsonExportWriter":
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            self._fh = open(self.path, "w", encoding="utf-8")
            self._fh.write("{")
        except OSError as e:
            self.close()
            raise ExportWriteError(f"Unable to work with json file {self.path}: {e}") from e
        return self

    def __enter__(self) -> "JsonExportWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self.finish()
        finally:
            self.close()

    @property
    def closed(self) -> bool:
        return self._fh is None

    def begin_array(self, name: str) -> None:
        if self._current_array is not None:
            raise ExportWriteError(f"Array '{self._current_array}' is still open")
        sep = "," if self._arrays_written else ""
        self._write(f"{sep}\n{' ' * _INDENT}{json.dumps(name)}: [")
        self._current_array = name
        self._items_in_array = 0

    def write_record(self, record: Dict[str, Any]) -> None:
        if self._current_array is None:
            raise ExportWriteError("No array is open")
        try:
            text = json.dumps(record, indent=_INDENT, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ExportWriteError(f"Record is not serializable: {e}") from e
        pad = " " * (_INDENT * 2)
        text = "\n".join(pad + line for line in text.splitlines())
        sep = "," if self._items_in_array else ""
        self._write(f"{sep}\n{text}")
        self._items_in_array += 1
        self.records_written += 1

    def end_array(self) -> None:
        if self._current_array is None:
            raise ExportWriteError("No array is open")
        closing = f"\n{' ' * _INDENT}]" if self._items_in_array else "]"
        self._write(closing)
        self._current_array = None
        self._arrays_written += 1

    def finish(self) -> None:
        """Close the top-level object."""
        if self._current_array is not None:
            raise ExportWriteError(f"Array '{self._current_array}' is still open")
        self._write("\n}\n")

    def close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as e:
            raise ExportWriteError(f"Unable to close json file {self.path}: {e}") from e

    def _write(self, text: str) -> None:
        if self._fh is None:
            raise ExportWriteError(f"Json file {self.path} is not open")
        try:
            self._fh.write(text)
        except OSError as e:
            raise ExportWriteError(f"Unable to work with json file {self.path}: {e}") from e
