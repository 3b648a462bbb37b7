"""Parse rendered HTML into raw, uninterpreted page content."""
import logging
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from gallery_scout.parse.models import Anchor, Image, RawDetailContent

logger = logging.getLogger(__name__)


def node_text(node: Node | None) -> str:
    """
    Text of a node, trimmed, with internal whitespace collapsed to single spaces.

    Unlike a browser's innerText this reads the markup, so text hidden with CSS
    is included and a label split over several lines reads as one line
    ("View" and "Jobs" on separate lines match "View Jobs").
    """
    if node is None:
        return ""
    return " ".join(node.text(deep=True, separator=" ").split())


def resolve_url(base_url: str, value: str | None) -> str:
    """Resolve an attribute value against the page URL; missing stays empty."""
    if not value:
        return ""
    return urljoin(base_url, value.strip())


def extract_anchors(parser: HTMLParser, base_url: str) -> list[Anchor]:
    """All anchors in document order as (trimmed text, resolved href)."""
    return [
        Anchor(text=node_text(node), href=resolve_url(base_url, node.attributes.get("href")))
        for node in parser.css("a")
    ]


def extract_images(parser: HTMLParser, base_url: str) -> list[Image]:
    """All images in document order as (resolved src, alt)."""
    return [
        Image(
            src=resolve_url(base_url, node.attributes.get("src")),
            alt=node.attributes.get("alt") or "",
        )
        for node in parser.css("img")
    ]


def parse_detail_page(html: str, page_url: str, title: str = "", text: str = "") -> RawDetailContent:
    """
    Build RawDetailContent from a rendered detail page.

    `title` and `text` come from the browser (document.title and the body's
    innerText) since only the renderer knows the visible line layout. When
    they are missing, they are recovered from the markup.
    """
    if not html:
        return RawDetailContent(title=title, text=text)

    parser = HTMLParser(html)
    if not title:
        title = node_text(parser.css_first("title"))
    if not text and parser.body is not None:
        text = parser.body.text(deep=True, separator="\n")

    content = RawDetailContent(
        title=title,
        text=text,
        anchors=extract_anchors(parser, page_url),
        images=extract_images(parser, page_url),
    )
    logger.debug(
        f"Parsed {page_url}: {len(content.anchors)} anchors, {len(content.images)} images"
    )
    return content
