"""Pattern-based helpers for pulling pieces out of OPF and XHTML markup.

EPUBs in the wild are often not well-formed XML, so nothing here validates
structure. Missing tags or attributes produce empty results, never errors.
"""

import html
import re
from typing import Iterator, Optional

_PREFIX = r"(?:[\w.-]+:)?"

_XML_DECLARATION_RE = re.compile(r"<\?xml[^>]*\?>", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_BODY_RE = re.compile(r"<body\b[^>]*>(.*)</body\s*>", re.IGNORECASE | re.DOTALL)
_HTML_TAG_RE = re.compile(r"</?html\b[^>]*>", re.IGNORECASE)
_HEAD_RE = re.compile(r"<head\b[^>]*>.*?</head\s*>", re.IGNORECASE | re.DOTALL)
_META_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_LINK_RE = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_ANY_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

# Tags tried in order when deriving a chapter title
TITLE_TAGS = ("h1", "h2", "title")

DOCUMENT_SUFFIXES = (".html", ".xhtml")


def _element_re(tag: str, any_prefix: bool = False) -> re.Pattern:
    prefix = _PREFIX if any_prefix else ""
    name = re.escape(tag)
    return re.compile(
        rf"<{prefix}{name}\b[^>]*(?<!/)>(.*?)</{prefix}{name}\s*>",
        re.IGNORECASE | re.DOTALL,
    )


def get_tag_content(xml: str, tag: str, any_prefix: bool = False) -> Optional[str]:
    """Inner markup of the first ``tag`` element, or None if absent.

    Args:
        xml: Markup to search
        tag: Tag name, optionally with a namespace prefix ("dc:title")
        any_prefix: Also match the tag under any namespace prefix
    """
    match = _element_re(tag, any_prefix).search(xml)
    return match.group(1) if match else None


def iter_tag_contents(xml: str, tag: str) -> Iterator[str]:
    """Inner markup of every ``tag`` element, in document order."""
    for match in _element_re(tag).finditer(xml):
        yield match.group(1)


def iter_start_tags(xml: str, tag: str) -> Iterator[str]:
    """Every opening (or self-closing) ``tag`` in document order.

    ``item`` does not match ``itemref``.
    """
    pattern = re.compile(rf"<{re.escape(tag)}\b[^>]*>", re.IGNORECASE)
    for match in pattern.finditer(xml):
        yield match.group(0)


def get_attr(tag_xml: str, attr: str) -> Optional[str]:
    """Value of ``attr`` inside a single tag, entities unescaped.

    Quote style, attribute order and surrounding whitespace are free.
    The name must start at an attribute boundary, so ``id`` never matches
    ``idref`` or ``xml:id``.
    """
    pattern = re.compile(
        rf"(?<![\w:.-]){re.escape(attr)}\s*=\s*([\"'])(.*?)\1",
        re.IGNORECASE | re.DOTALL,
    )
    match = pattern.search(tag_xml)
    if not match:
        return None
    return html.unescape(match.group(2))


def strip_tags(markup: str) -> str:
    """Plain text of a markup snippet with whitespace collapsed."""
    text = _ANY_TAG_RE.sub("", markup)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def derive_title(document: str) -> Optional[str]:
    """First non-empty <h1>, then <h2>, then <title> text of a document."""
    for tag in TITLE_TAGS:
        for inner in iter_tag_contents(document, tag):
            text = strip_tags(inner)
            if text:
                return text
    return None


def extract_body(document: str) -> str:
    """Body markup of an XHTML document with wrapper noise removed.

    Documents without a <body> are used whole. The result is trimmed.
    """
    cleaned = _XML_DECLARATION_RE.sub("", document)
    cleaned = _DOCTYPE_RE.sub("", cleaned)

    body = _BODY_RE.search(cleaned)
    if body:
        cleaned = body.group(1)

    cleaned = _HTML_TAG_RE.sub("", cleaned)
    cleaned = _HEAD_RE.sub("", cleaned)
    cleaned = _META_RE.sub("", cleaned)
    cleaned = _LINK_RE.sub("", cleaned)
    return cleaned.strip()


def is_document_name(name: str) -> bool:
    """Whether an archive entry looks like an (X)HTML content document."""
    return name.lower().endswith(DOCUMENT_SUFFIXES)
