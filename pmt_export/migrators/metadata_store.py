"""
DuckDB backed metadata store.

The target of the export is a small document store kept in a DuckDB file.
Each metadata document is one row of the ``documents`` table; its items
live in a JSON column so that project and release documents can share
the table.  The ``form`` and ``id`` items are also kept in their own
columns, which back the ``(byId)`` lookup.

Usage example::

    with MetadataStore.open("data/pmt_metadata.duckdb") as store:
        for existing in store.open_collection("(byId)").select_by_key(unid):
            existing.delete()
        doc = store.create_document()
        doc.replace_item_value("Form", "project")
        doc.replace_item_value("id", unid)
        doc.save()

Opening a path that does not exist yet provisions a new store.
"""

from __future__ import annotations

import json
import os
from datetime import date
from typing import Any, Dict, List, Optional

import duckdb

from pmt_export.utils.errors import StoreConnectError

BY_ID_VIEW = "(byId)"

_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS note_ids START 1",
    """
    CREATE TABLE IF NOT EXISTS documents (
        note_id BIGINT PRIMARY KEY DEFAULT nextval('note_ids'),
        form VARCHAR,
        id VARCHAR,
        items VARCHAR NOT NULL,
        created_at TIMESTAMP DEFAULT current_timestamp
    )
    """,
    "CREATE TABLE IF NOT EXISTS store_info (key VARCHAR PRIMARY KEY, value VARCHAR)",
]


class MetadataDocument:
    """A document of the metadata store.  Changes are written by :meth:`save`."""

    def __init__(self, store: "MetadataStore", note_id: Optional[int] = None, items: Optional[Dict[str, Any]] = None) -> None:
        self._store = store
        self.note_id = note_id
        self._items: Dict[str, Any] = dict(items or {})

    def __repr__(self) -> str:
        return f"MetadataDocument(note_id={self.note_id!r}, id={self._items.get('id')!r})"

    @property
    def is_new(self) -> bool:
        return self.note_id is None

    def replace_item_value(self, name: str, value: Any) -> None:
        self._items[name] = value

    def get_item_value(self, name: str, default: Any = None) -> Any:
        return self._items.get(name, default)

    def items(self) -> Dict[str, Any]:
        return dict(self._items)

    def save(self) -> None:
        payload = json.dumps(self._items, ensure_ascii=False, default=_json_default)
        form = self._items.get("Form")
        doc_id = self._items.get("id")
        con = self._store.connection
        if self.note_id is None:
            row = con.execute(
                "INSERT INTO documents (form, id, items) VALUES (?, ?, ?) RETURNING note_id",
                [form, doc_id, payload],
            ).fetchone()
            self.note_id = row[0]
        else:
            con.execute(
                "UPDATE documents SET form = ?, id = ?, items = ? WHERE note_id = ?",
                [form, doc_id, payload, self.note_id],
            )

    def delete(self) -> None:
        if self.note_id is None:
            return
        self._store.connection.execute("DELETE FROM documents WHERE note_id = ?", [self.note_id])
        self.note_id = None


class ByIdCollection:
    """Lookup of metadata documents by their ``id`` item."""

    def __init__(self, store: "MetadataStore") -> None:
        self._store = store

    def select_by_key(self, key: str) -> List[MetadataDocument]:
        rows = self._store.connection.execute(
            "SELECT note_id, items FROM documents WHERE id = ? ORDER BY note_id",
            [key],
        ).fetchall()
        return [MetadataDocument(self._store, note_id, json.loads(items)) for note_id, items in rows]


class MetadataStore:
    """A DuckDB file holding the exported metadata documents."""

    def __init__(self, connection: "duckdb.DuckDBPyConnection", path: str) -> None:
        self.connection = connection
        self.path = path

    @classmethod
    def open(cls, path: str, *, title: Optional[str] = None) -> "MetadataStore":
        """
        Open the store at ``path``, provisioning it when it does not exist.

        :param path: DuckDB database file, or ``":memory:"``.
        :param title: Title given to a newly provisioned store.  Defaults to
            ``"OpenNTF Projects <today>"``.
        :raises StoreConnectError: if the database cannot be opened.
        """
        provision = path == ":memory:" or not os.path.exists(path)
        if provision and path != ":memory:":
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        try:
            con = duckdb.connect(database=path, read_only=False)
        except (duckdb.Error, OSError) as e:
            raise StoreConnectError(f"Unable to open target database: {path}: {e}") from e

        store = cls(con, path)
        try:
            store._ensure_schema()
            if provision:
                store.title = title or f"OpenNTF Projects {date.today():%Y-%m-%d}"
        except duckdb.Error as e:
            con.close()
            raise StoreConnectError(f"Target database {path} is not a metadata store: {e}") from e
        return store

    def _ensure_schema(self) -> None:
        for statement in _SCHEMA:
            self.connection.execute(statement)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "MetadataStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def title(self) -> str:
        row = self.connection.execute("SELECT value FROM store_info WHERE key = 'title'").fetchone()
        return row[0] if row else ""

    @title.setter
    def title(self, value: str) -> None:
        self.connection.execute("DELETE FROM store_info WHERE key = 'title'")
        self.connection.execute("INSERT INTO store_info VALUES ('title', ?)", [value])

    def open_collection(self, view_name: str) -> ByIdCollection:
        if view_name != BY_ID_VIEW:
            raise StoreConnectError(f"{view_name} collection not found!")
        return ByIdCollection(self)

    def create_document(self) -> MetadataDocument:
        return MetadataDocument(self)

    def count(self, form: Optional[str] = None) -> int:
        if form is None:
            row = self.connection.execute("SELECT count(*) FROM documents").fetchone()
        else:
            row = self.connection.execute("SELECT count(*) FROM documents WHERE form = ?", [form]).fetchone()
        return int(row[0])

    def all_documents(self, form: Optional[str] = None) -> List[MetadataDocument]:
        query = "SELECT note_id, items FROM documents"
        params: List[Any] = []
        if form is not None:
            query += " WHERE form = ?"
            params.append(form)
        rows = self.connection.execute(query + " ORDER BY note_id", params).fetchall()
        return [MetadataDocument(self, note_id, json.loads(items)) for note_id, items in rows]

    def duplicate_ids(self) -> List[str]:
        rows = self.connection.execute(
            "SELECT id FROM documents GROUP BY id HAVING count(*) > 1 ORDER BY id"
        ).fetchall()
        return [row[0] for row in rows]

    def to_dataframe(self, form: Optional[str] = None) -> "pandas.DataFrame":
        """Documents as a DataFrame, one column per item."""
        import pandas as pd

        query = "SELECT note_id, items FROM documents"
        params: List[Any] = []
        if form is not None:
            query += " WHERE form = ?"
            params.append(form)
        raw = self.connection.execute(query + " ORDER BY note_id", params).df()
        items = pd.json_normalize([json.loads(v) for v in raw["items"]], max_level=0)
        items.insert(0, "note_id", raw["note_id"].to_list())
        return items


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
