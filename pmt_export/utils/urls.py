from __future__ import annotations

from urllib.parse import quote_plus

PROJECT_URL_TEMPLATE = "https://www.openntf.org/main.nsf/project.xsp?r=project/{name}"


def encode_project_name(name: str) -> str:
    """
    Form-encode a project name the way the catalogue links were built.

    UTF-8 bytes are percent-encoded, spaces become ``+`` and only
    ``A-Z a-z 0-9 - _ . *`` are kept as-is.  ``~`` is left unencoded by
    :func:`urllib.parse.quote_plus` and therefore encoded explicitly.
    """
    return quote_plus(name or "", safe="*").replace("~", "%7E")


def project_source_url(name: str) -> str:
    """Persistent catalogue URL of the project called ``name``."""
    return PROJECT_URL_TEMPLATE.format(name=encode_project_name(name))
