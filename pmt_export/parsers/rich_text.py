"""
Rich text normalization.

Legacy documents carry rich text in one of two encodings:

* :class:`CompositeRichText` – structured content that has to be rendered
  to markup first (see :mod:`pmt_export.parsers.composite`);
* :class:`MultiPartRichText` – an already encoded MIME message whose
  ``text/html`` part (or sole part) is the authoritative content.

:func:`normalize` turns either one into a plain text projection and a
:class:`PortableBody`.  The text is always extracted from the HTML found
inside the body, so the two can never drift apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from email import errors as email_errors
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from typing import Optional, Tuple, Union

from pmt_export.parsers.composite import CompositeContent, render_composite_html
from pmt_export.parsers.html_text import html_to_text
from pmt_export.utils.errors import RichTextDecodeError

logger = logging.getLogger(__name__)

__all__ = [
    "CompositeRichText",
    "MultiPartRichText",
    "PortableBody",
    "RichTextField",
    "normalize",
]

# Parser defects that mean the multipart structure cannot be trusted.
_FATAL_DEFECTS = (
    email_errors.NoBoundaryInMultipartDefect,
    email_errors.StartBoundaryNotFoundDefect,
    email_errors.MultipartInvariantViolationDefect,
)


@dataclass(frozen=True)
class CompositeRichText:
    content: CompositeContent


@dataclass(frozen=True)
class MultiPartRichText:
    raw: Union[str, bytes]


RichTextField = Union[CompositeRichText, MultiPartRichText]


@dataclass(frozen=True)
class PortableBody:
    """A serialized MIME entity holding the rendered rich text."""

    raw: bytes

    def message(self) -> EmailMessage:
        return BytesParser(policy=policy.default).parsebytes(self.raw)

    def html(self) -> str:
        """Return the authoritative HTML content of the body."""
        return _select_content(self.message())

    def as_text(self) -> str:
        """The MIME entity as text, as stored in the metadata store and JSON."""
        return self.raw.decode("utf-8", errors="replace")


def normalize(field: RichTextField, *, label: Optional[str] = None) -> Tuple[str, PortableBody]:
    """
    Normalize a rich text field to ``(plain_text, portable_body)``.

    :param field: The rich text value read from the source document.
    :param label: Optional description of the owning document, used only in
        diagnostics.
    :raises RichTextDecodeError: if the content is malformed.
    """
    if isinstance(field, CompositeRichText):
        body = _composite_body(field)
    elif isinstance(field, MultiPartRichText):
        body = _multipart_body(field, label)
    else:
        raise RichTextDecodeError(f"Unsupported rich text field: {type(field).__name__}")

    try:
        html = body.html()
    except (LookupError, UnicodeError, ValueError) as e:
        raise RichTextDecodeError(f"Unable to decode rich text content: {e}") from e
    return html_to_text(html), body


def _composite_body(field: CompositeRichText) -> PortableBody:
    html = render_composite_html(field.content)

    msg = EmailMessage()
    msg.set_content(html, subtype="html", charset="utf-8", cte="8bit")
    msg.replace_header("Content-Type", "text/html; charset=UTF-8")
    return PortableBody(msg.as_bytes())


def _multipart_body(field: MultiPartRichText, label: Optional[str]) -> PortableBody:
    raw = field.raw
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    if not isinstance(raw, bytes):
        raise RichTextDecodeError(f"Unsupported MIME payload: {type(raw).__name__}")
    if not raw.strip():
        raise RichTextDecodeError("Empty MIME payload")

    msg = BytesParser(policy=policy.default).parsebytes(raw)
    _check_structure(msg)

    if msg.is_multipart():
        count = len(list(msg.iter_parts()))
        logger.info("%s has %d mime parts", label or "Rich text field", count)

    # The original entity is kept as-is, attachments included.
    return PortableBody(raw)


def _check_structure(msg: EmailMessage) -> None:
    for part in msg.walk():
        for defect in part.defects:
            if isinstance(defect, _FATAL_DEFECTS):
                raise RichTextDecodeError(f"Malformed MIME structure: {defect.__class__.__name__}")
        if part.is_multipart() and not list(part.iter_parts()):
            raise RichTextDecodeError("Multipart entity without parts")


def _select_content(msg: EmailMessage) -> str:
    if not msg.is_multipart():
        return _part_text(msg)

    parts = list(msg.iter_parts())
    if not parts:
        raise RichTextDecodeError("Multipart entity without parts")
    for part in parts:
        if part.get_content_type() == "text/html":
            return _part_text(part)
    # No html part: the first part wins.
    return _select_content(parts[0])


def _part_text(part: EmailMessage) -> str:
    if part.get_content_maintype() == "text":
        return part.get_content()
    payload = part.get_payload(decode=True) or b""
    return payload.decode(part.get_content_charset() or "utf-8", errors="replace")
