import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from pmt_export.utils.errors import ExportWriteError
from pmt_export.utils.json_export import JsonExportWriter


def read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def test_two_arrays(tmp_path):
    path = str(tmp_path / "out" / "export.json")
    with JsonExportWriter(path) as sink:
        sink.begin_array("projects")
        sink.write_record({"id": "P1", "name": "Démo", "chefs": ["Jane"]})
        sink.write_record({"id": "P2", "name": "Other", "chefs": []})
        sink.end_array()
        sink.begin_array("releases")
        sink.write_record({"id": "R1", "released": True})
        sink.end_array()
    assert sink.closed
    assert sink.records_written == 3
    assert read_json(path) == {
        "projects": [
            {"id": "P1", "name": "Démo", "chefs": ["Jane"]},
            {"id": "P2", "name": "Other", "chefs": []},
        ],
        "releases": [{"id": "R1", "released": True}],
    }
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    assert '  "projects": [\n    {\n      "id": "P1"' in text


def test_empty_arrays(tmp_path):
    path = str(tmp_path / "export.json")
    with JsonExportWriter(path) as sink:
        sink.begin_array("projects")
        sink.end_array()
        sink.begin_array("releases")
        sink.end_array()
    assert read_json(path) == {"projects": [], "releases": []}


def test_existing_file_overwritten(tmp_path):
    path = tmp_path / "export.json"
    path.write_text("old content that is much longer than the new export", encoding="utf-8")
    with JsonExportWriter(str(path)) as sink:
        sink.begin_array("projects")
        sink.end_array()
    assert read_json(str(path)) == {"projects": []}


def test_abort_closes_file(tmp_path):
    path = str(tmp_path / "export.json")
    with pytest.raises(RuntimeError):
        with JsonExportWriter(path) as sink:
            sink.begin_array("projects")
            sink.write_record({"id": "P1"})
            raise RuntimeError("boom")
    assert sink.closed
    with pytest.raises(json.JSONDecodeError):
        read_json(path)


def test_state_errors(tmp_path):
    sink = JsonExportWriter(str(tmp_path / "export.json")).open()
    try:
        with pytest.raises(ExportWriteError):
            sink.write_record({"id": "P1"})
        with pytest.raises(ExportWriteError):
            sink.end_array()
        sink.begin_array("projects")
        with pytest.raises(ExportWriteError):
            sink.begin_array("releases")
        with pytest.raises(ExportWriteError):
            sink.finish()
        with pytest.raises(ExportWriteError):
            sink.write_record({"id": object()})
    finally:
        sink.close()
    with pytest.raises(ExportWriteError):
        sink.end_array()


def test_unwritable_path(tmp_path):
    with pytest.raises(ExportWriteError):
        JsonExportWriter(str(tmp_path)).open()
