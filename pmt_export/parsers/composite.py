"""
Rendering of composite (structured) rich text to HTML.

Composite content comes in two shapes:

* a legacy markup fragment (``str``), which is re-serialized so that it is
  valid standalone markup: void elements are self-closed, text is escaped
  and scripts/styles are dropped;
* a list of paragraphs, each either a plain string or a list of runs.  A
  run is a dict with a ``text`` key and optional decoration flags
  (``bold``, ``italic``, ``underline``, ``strikethrough``, ``code``) and an
  optional ``href``.

Both shapes produce the same kind of XML-compatible HTML fragment, which
is what the normalizer wraps into the portable MIME body.
"""

from __future__ import annotations

import html
import re
from typing import Any, Dict, Sequence, Union

from bs4 import BeautifulSoup

from pmt_export.utils.errors import RichTextDecodeError

CompositeContent = Union[str, Sequence[Any]]

# Decoration flag -> HTML element, applied innermost first.
_DECORATION_TAGS: Dict[str, str] = {
    "code": "code",
    "strikethrough": "s",
    "underline": "u",
    "italic": "em",
    "bold": "strong",
}

_RUN_KEYS = set(_DECORATION_TAGS) | {"text", "href"}


def render_composite_html(content: CompositeContent) -> str:
    """Render composite rich text content to an XML-compatible HTML fragment."""
    if isinstance(content, str):
        return _sanitize_markup(content)
    if isinstance(content, (list, tuple)):
        return "".join(_render_paragraph(p, idx) for idx, p in enumerate(content))
    raise RichTextDecodeError(
        f"Unsupported composite rich text payload: {type(content).__name__}"
    )


def _sanitize_markup(markup: str) -> str:
    # Pre-process to remove stray CDATA wrappers left by legacy exports
    cleaned = re.sub(r"<!\[CDATA\[|\]\]>", "", markup)
    soup = BeautifulSoup(cleaned, "html.parser")

    for bad in soup.find_all(["script", "style"]):
        bad.decompose()

    # html.parser output keeps void elements self-closed (<br/>) and applies
    # minimal entity escaping, which is enough for XML consumers.
    return soup.decode(formatter="minimal").strip()


def _render_paragraph(paragraph: Any, idx: int) -> str:
    if isinstance(paragraph, str):
        return f"<p>{_escape(paragraph)}</p>"
    if isinstance(paragraph, (list, tuple)):
        return "<p>" + "".join(_render_run(run, idx) for run in paragraph) + "</p>"
    raise RichTextDecodeError(
        f"Paragraph {idx} has unsupported type {type(paragraph).__name__}"
    )


def _render_run(run: Any, idx: int) -> str:
    if isinstance(run, str):
        return _escape(run)
    if not isinstance(run, dict):
        raise RichTextDecodeError(
            f"Run in paragraph {idx} has unsupported type {type(run).__name__}"
        )
    unknown = set(run) - _RUN_KEYS
    if unknown:
        raise RichTextDecodeError(
            f"Run in paragraph {idx} has unknown keys: {', '.join(sorted(unknown))}"
        )
    text = run.get("text")
    if not isinstance(text, str):
        raise RichTextDecodeError(f"Run in paragraph {idx} has no text")

    out = "<br/>".join(_escape(line) for line in text.split("\n"))
    for flag, tag in _DECORATION_TAGS.items():
        if run.get(flag):
            out = f"<{tag}>{out}</{tag}>"
    href = run.get("href")
    if href:
        out = f'<a href="{_escape(str(href), quote=True)}">{out}</a>'
    return out


def _escape(text: str, *, quote: bool = False) -> str:
    return html.escape(text, quote=quote)
