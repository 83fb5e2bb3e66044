from __future__ import annotations

from bs4 import BeautifulSoup

# Elements whose boundaries separate words in the rendered text.
_BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3",
    "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre",
    "section", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
]


def html_to_text(html: str) -> str:
    """
    Extract the visible text of an HTML fragment.

    Parsing is tolerant (unbalanced or unknown tags are accepted).  Tags are
    dropped, scripts and styles removed, block elements and ``<br>`` act as
    word separators and every run of whitespace, including non-breaking
    spaces, collapses to a single space.  Inline elements do not add
    spacing, so ``<b>Hi</b>there`` reads ``Hithere``.
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for bad in soup.find_all(["script", "style", "head", "title"]):
        bad.decompose()

    for br in soup.find_all("br"):
        br.replace_with(" ")

    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_before(" ")
        block.insert_after(" ")

    return " ".join(soup.get_text().split())
