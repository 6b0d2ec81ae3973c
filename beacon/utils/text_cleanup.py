"""
Text cleanup utilities

Turns the HTML-ish event descriptions returned by the API into a single line of plain text.
"""
import logging

from lxml import etree, html  # type: ignore


logger = logging.getLogger(__name__)

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "ol", "p", "pre", "section", "table", "td", "th",
    "tr", "ul",
})


def collapse_whitespace(text: str) -> str:
    """Join all whitespace runs (newlines, tabs, nbsp) into single spaces."""
    return " ".join(text.split())


def html_to_text(markup: str | None) -> str:
    """
    Convert an HTML fragment to plain text.

    Block-level elements are separated by a space, scripts and styles are dropped,
    entities are decoded and whitespace is collapsed.

    Args:
        markup: HTML fragment (plain text passes through unchanged)

    Returns:
        Cleaned single-line text, or an empty string for empty input
    """
    if not markup or not markup.strip():
        return ""

    try:
        root = html.fromstring(markup)
    except (etree.ParserError, ValueError) as exc:
        logger.warning("Could not parse description markup, using raw text: %s", exc)
        return collapse_whitespace(markup)

    for element in root.xpath("//script|//style"):
        if element is root:
            return ""
        element.drop_tree()

    for element in root.iter():
        if element is root or not isinstance(element.tag, str):
            continue
        tag = element.tag.lower()
        if tag in BLOCK_TAGS:
            element.tail = " " + (element.tail or "")
            if tag != "br":
                element.text = " " + (element.text or "")

    return collapse_whitespace(root.text_content())
