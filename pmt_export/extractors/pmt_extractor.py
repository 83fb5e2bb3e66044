"""
Read access to an exported PMT (project catalogue) database.

The legacy store is exported as a single JSON file::

    {
      "title": "OpenNTF Projects",
      "path": "projects/pmt.nsf",
      "documents": [
        {
          "unid": "0A1B...",
          "created": "2011-03-04T10:00:00+00:00",
          "lastModified": "2019-07-01T08:30:00+00:00",
          "conflict": false,
          "items": {
            "Form": "project",
            "ProjectName": "Demo",
            "Details": {"type": "composite", "value": "<b>Hi</b>"},
            "MasterChef": ["Jane Doe"],
            ...
          }
        }
      ]
    }

Rich text items are tagged objects, either ``composite`` (markup or
paragraph runs) or ``mime`` (a raw MIME entity).  Every other item is a
plain JSON value; date/time items are ISO 8601 strings.

Documents are enumerated through named views, mirroring the views of the
legacy database.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pmt_export.parsers.rich_text import CompositeRichText, MultiPartRichText, RichTextField
from pmt_export.utils.errors import StoreConnectError


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO 8601 value from the export.

    Lists hold one value per entry in the legacy store; the first is used.

    Raises:
        ValueError: if the value is not a date/time.
    """
    if isinstance(value, list):
        if not value:
            raise ValueError("empty date/time list")
        value = value[0]
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"not a date/time value: {value!r}")
    text = value.strip()
    # Python < 3.11 does not accept the trailing 'Z' designator
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class SourceDocument:
    """A read-only document of the legacy store."""

    def __init__(
        self,
        unid: str,
        items: Dict[str, Any],
        *,
        created: datetime,
        last_modified: datetime,
        conflict: bool = False,
    ) -> None:
        self.unid = unid
        self.created = created
        self.last_modified = last_modified
        self._items = items
        self._conflict = conflict

    def __repr__(self) -> str:
        return f"SourceDocument(unid={self.unid!r}, form={self.get_text('Form')!r})"

    @property
    def is_conflict(self) -> bool:
        # Save conflicts are flagged by a $Conflict item in the legacy store.
        return self._conflict or "$Conflict" in self._items

    def has_item(self, name: str) -> bool:
        return name in self._items and self._items[name] is not None

    def get_text(self, name: str, sep: str = " ") -> str:
        """Return an item as text; multi-value items are joined by ``sep``."""
        value = self._items.get(name)
        if value is None:
            return ""
        if isinstance(value, list):
            return sep.join(_scalar_text(v) for v in value)
        return _scalar_text(value)

    def get_list(self, name: str) -> List[str]:
        value = self._items.get(name)
        if value is None:
            return []
        if isinstance(value, list):
            return [_scalar_text(v) for v in value if v is not None]
        text = _scalar_text(value)
        return [text] if text else []

    def get_int(self, name: str, default: int = 0) -> int:
        """Return a numeric item as ``int``.

        Raises:
            ValueError: if the item holds something that is not a number.
        """
        value = self._items.get(name)
        if isinstance(value, list):
            value = value[0] if value else None
        if value is None or value == "":
            return default
        if isinstance(value, bool):
            raise ValueError(f"item {name} is not numeric: {value!r}")
        try:
            if isinstance(value, (int, float)):
                return int(value)
            return int(float(str(value).strip()))
        except OverflowError as e:
            raise ValueError(f"item {name} is out of range: {value!r}") from e

    def get_datetime(self, name: str, default: datetime) -> datetime:
        if not self.has_item(name) or self._items[name] in ("", []):
            return default
        return parse_datetime(self._items[name])

    def get_rich_text(self, name: str) -> Optional[RichTextField]:
        """Return a rich text item, or ``None`` when the item is absent.

        Plain string items are treated as composite markup.
        """
        value = self._items.get(name)
        if value is None:
            return None
        if isinstance(value, dict):
            kind = str(value.get("type", "")).lower()
            if kind == "mime":
                return MultiPartRichText(value.get("value"))
            return CompositeRichText(value.get("value"))
        return CompositeRichText(value)


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class ViewDefinition:
    """Selection and ordering of a view of the legacy store."""

    select: Callable[[SourceDocument], bool]
    sort_key: Optional[Callable[[SourceDocument], Any]] = None
    descending: bool = False


def is_project(doc: SourceDocument) -> bool:
    return doc.get_text("Form").strip().lower() == "project"


def _release_date(doc: SourceDocument) -> datetime:
    try:
        value = doc.get_datetime("ReleaseDate", doc.last_modified)
    except ValueError:
        value = doc.last_modified
    # Sort naive and aware values together
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


VIEWS: Dict[str, ViewDefinition] = {
    "(ProjectList)": ViewDefinition(select=is_project),
    "ReleasesByDate": ViewDefinition(
        select=lambda doc: not is_project(doc),
        sort_key=_release_date,
        descending=True,
    ),
}


class LegacyDocumentStore:
    """
    The exported legacy database.

    Documents are loaded once when the store is opened.  Views are evaluated
    lazily and enumerate documents in their natural order: document order in
    the export, or the view's sort order when it defines one.
    """

    def __init__(self, documents: List[SourceDocument], *, title: str = "", path: str = "") -> None:
        self.documents = documents
        self.title = title
        self.relative_path = path

    @classmethod
    def open(cls, file_path: str) -> "LegacyDocumentStore":
        """Open an export file.

        Raises:
            StoreConnectError: if the file is missing or is not a valid export.
        """
        if not os.path.exists(file_path):
            raise StoreConnectError(f"Unable to open source database: {file_path}")
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeError, json.JSONDecodeError) as e:
            raise StoreConnectError(f"Unable to open source database: {file_path}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("documents"), list):
            raise StoreConnectError(f"Source database {file_path} has no 'documents' list")

        documents = []
        for idx, raw in enumerate(data["documents"]):
            try:
                documents.append(_document_from_json(raw))
            except (KeyError, TypeError, ValueError) as e:
                raise StoreConnectError(f"Invalid document #{idx} in {file_path}: {e}") from e

        path = data.get("path") or os.path.basename(file_path)
        return cls(documents, title=data.get("title", ""), path=path)

    def view_names(self) -> List[str]:
        return list(VIEWS)

    def open_collection(self, view_name: str) -> Iterator[Tuple[int, SourceDocument]]:
        """Enumerate ``(index, document)`` pairs of a view.

        Raises:
            StoreConnectError: if the view does not exist.
        """
        view = VIEWS.get(view_name)
        if view is None:
            raise StoreConnectError(f"{view_name} collection not found!")
        docs = [d for d in self.documents if view.select(d)]
        if view.sort_key is not None:
            docs.sort(key=view.sort_key, reverse=view.descending)
        return iter(enumerate(docs))


def _document_from_json(raw: Dict[str, Any]) -> SourceDocument:
    unid = raw["unid"]
    if not isinstance(unid, str) or not unid:
        raise ValueError("document without unid")
    created = parse_datetime(raw["created"])
    last_modified = parse_datetime(raw.get("lastModified") or raw["created"])
    items = raw.get("items") or {}
    if not isinstance(items, dict):
        raise TypeError("'items' must be an object")
    return SourceDocument(
        unid,
        items,
        created=created,
        last_modified=last_modified,
        conflict=bool(raw.get("conflict", False)),
    )
