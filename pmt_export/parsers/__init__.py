"""
Rich text parsers used by the export pipeline.

This subpackage exposes :func:`normalize` together with the two rich text
encodings it understands and the :class:`PortableBody` it produces.
"""

from .html_text import html_to_text
from .rich_text import (
    CompositeRichText,
    MultiPartRichText,
    PortableBody,
    RichTextField,
    normalize,
)

__all__ = [
    "CompositeRichText",
    "MultiPartRichText",
    "PortableBody",
    "RichTextField",
    "html_to_text",
    "normalize",
]
