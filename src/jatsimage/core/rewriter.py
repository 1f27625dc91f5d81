"""Graphic reference rewriter: points JATS graphic hrefs at resolved file URLs.

The rewriter parses the document once, collects every ``graphic`` and
``inline-graphic`` element in document order, and replaces each href it
can resolve against a name index. Anything it cannot handle is passed
through: unparseable input, an empty index, elements without an href and
hrefs with no matching file all leave the document as it was.
"""

from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import Any
from urllib.parse import unquote

from lxml import etree

from jatsimage.core.models import (
    GraphicReference,
    HrefSlot,
    ParseResult,
    ResolveResult,
    RewriteResult,
)
from jatsimage.core.name_index import NameIndex, basename

logger = logging.getLogger(__name__)

XLINK_NS = "http://www.w3.org/1999/xlink"
XLINK_PREFIX = "xlink"
LITERAL_HREF = f"{XLINK_PREFIX}:href"

GRAPHIC_TAGS = frozenset({"graphic", "inline-graphic"})

# XML declaration plus the whitespace that follows it, optionally after a UTF-8 BOM
_DECLARATION_PATTERN = re.compile(rb"^(?:\xef\xbb\xbf)?<\?xml[ \t\r\n][^?]*\?>[ \t\r\n]*")
_TRAILING_WHITESPACE = re.compile(rb"[ \t\r\n]*\Z")

# lxml refuses to set attribute names containing a colon, so attributes with
# an undeclared prefix are renamed while an element is edited and restored on
# serialization. The placeholder carries the original name hex-encoded.
_LITERAL_PLACEHOLDER = "jatsimage-literal-"
_PLACEHOLDER_PATTERN = re.compile(rf"(?<= ){_LITERAL_PLACEHOLDER}([0-9a-f]+)(?==)")


def _make_parser(recover: bool = False) -> etree.XMLParser:
    """Create a parser that keeps content as written and never touches the network."""
    return etree.XMLParser(
        remove_blank_text=False,
        strip_cdata=False,
        resolve_entities=False,
        load_dtd=False,
        no_network=True,
        recover=recover,
    )


def _only_namespace_errors(error_log: Any) -> bool:
    entries = list(error_log)
    return bool(entries) and all(
        entry.domain == etree.ErrorDomains.NAMESPACE for entry in entries
    )


def parse_document(data: bytes) -> ParseResult:
    """Parse document bytes into an element tree.

    A document whose only problem is an undeclared namespace prefix (such as
    ``xlink:href`` without an ``xmlns:xlink`` declaration) is parsed again in
    recovery mode, which keeps the prefixed names as literal names. Never
    raises for malformed input; the failure is reported in the result.
    """
    try:
        tree = etree.parse(BytesIO(data), _make_parser())
    except etree.XMLSyntaxError as e:
        if not _only_namespace_errors(e.error_log):
            return ParseResult(error=str(e))
        logger.debug("Reparsing with undeclared namespace prefixes: %s", e)
    else:
        return ParseResult(tree=tree)

    try:
        tree = etree.parse(BytesIO(data), _make_parser(recover=True))
    except etree.XMLSyntaxError as e:
        return ParseResult(error=str(e))
    if tree.getroot() is None:
        return ParseResult(error="Document has no root element")
    return ParseResult(tree=tree, recovered=True)


def _has_placeholders(tree: Any) -> bool:
    return any(
        key.startswith(_LITERAL_PLACEHOLDER)
        for element in tree.getroot().iter(etree.Element)
        for key in element.attrib
    )


def _restore_literal_names(body: bytes, encoding: str) -> bytes:
    text = body.decode(encoding)
    text = _PLACEHOLDER_PATTERN.sub(lambda m: bytes.fromhex(m.group(1)).decode("utf-8"), text)
    return text.encode(encoding)


def serialize_document(tree: Any, original: bytes) -> bytes:
    """Serialize a parsed tree back to bytes in the input's encoding.

    The input's XML declaration and trailing whitespace are reused verbatim,
    so the output differs from the input only where the tree was changed.
    """
    encoding = tree.docinfo.encoding or "UTF-8"
    body = etree.tostring(tree, encoding=encoding, xml_declaration=False)
    if _has_placeholders(tree):
        body = _restore_literal_names(body, encoding)

    # Multi-byte encodings are written as lxml serializes them
    if encoding.lower().startswith(("utf-16", "utf-32", "ucs")):
        return body

    declaration = _DECLARATION_PATTERN.match(original)
    if declaration is not None:
        body = declaration.group(0) + body

    trailing = _TRAILING_WHITESPACE.search(original)
    if trailing is not None and not body.endswith(trailing.group(0)):
        body += trailing.group(0)
    return body


def qualified_name(element: Any) -> str:
    """Return the element name as written in the document (``prefix:local`` or ``local``)."""
    tag = element.tag
    if not tag.startswith("{"):
        # No namespace, or a prefix left undeclared in a recovered document
        return tag
    local = tag.split("}", 1)[1]
    if element.prefix:
        return f"{element.prefix}:{local}"
    return local


def iter_graphic_elements(tree: Any) -> list[Any]:
    """Collect graphic and inline-graphic elements in document order, in one traversal."""
    return [
        element
        for element in tree.getroot().iter(etree.Element)
        if qualified_name(element) in GRAPHIC_TAGS
    ]


def _placeholder(name: str) -> str:
    return _LITERAL_PLACEHOLDER + name.encode("utf-8").hex()


def _is_literal_name(key: str) -> bool:
    return ":" in key and not key.startswith("{")


def _slot_attribute(element: Any, slot: HrefSlot) -> str | None:
    """Return the lxml attribute key for a slot on this element, if it can exist."""
    if slot is HrefSlot.XLINK_NAMESPACED:
        return f"{{{XLINK_NS}}}href"
    if slot is HrefSlot.XLINK_LITERAL:
        # xlink:href with the prefix undeclared, or bound to some other URI
        for key in (LITERAL_HREF, _placeholder(LITERAL_HREF)):
            if key in element.attrib:
                return key
        uri = element.nsmap.get(XLINK_PREFIX)
        if uri is None or uri == XLINK_NS:
            return None
        return f"{{{uri}}}href"
    return "href"


def _set_literal_attribute(element: Any, name: str, value: str) -> None:
    """Set an attribute whose name keeps an undeclared prefix.

    Attributes are re-added in their original order, with every literal
    prefixed name swapped for its placeholder.
    """
    attributes = element.items()
    element.attrib.clear()
    for key, current in attributes:
        if key == name:
            current = value
        if _is_literal_name(key):
            key = _placeholder(key)
        element.set(key, current)


def read_href(element: Any) -> GraphicReference | None:
    """Read an element's href from the first slot that is present.

    Slots are checked in ``HrefSlot`` order. An attribute that is present
    but empty still claims its slot.

    Returns:
        The slot and value, or None if the element has no href attribute.
    """
    for slot in HrefSlot:
        attribute = _slot_attribute(element, slot)
        if attribute is None:
            continue
        value = element.get(attribute)
        if value is not None:
            return GraphicReference(slot=slot, value=value)
    return None


def write_href(element: Any, slot: HrefSlot, value: str) -> None:
    """Write an href back into the given slot.

    Raises:
        ValueError: If the slot cannot exist on this element.
    """
    attribute = _slot_attribute(element, slot)
    if attribute is None:
        raise ValueError(f"Element <{qualified_name(element)}> has no {slot.value} href slot")
    if _is_literal_name(attribute):
        _set_literal_attribute(element, attribute, value)
    else:
        element.set(attribute, value)


def resolve_graphic_url(href: str, index: NameIndex) -> ResolveResult:
    """Resolve an href against a name index.

    Candidates are tried in order: the href as written, the href
    percent-decoded, and the basename of each. For every candidate the
    exact spelling is looked up before its lower-cased form.
    """
    decoded = unquote(href)
    for candidate in (href, decoded, basename(href), basename(decoded)):
        for key in (candidate, candidate.lower()):
            url = index.get(key)
            if url is not None:
                return ResolveResult(found=True, url=url, matched_key=key)
    return ResolveResult.not_found()


def rewrite_document(data: bytes, index: NameIndex) -> RewriteResult:
    """Rewrite graphic hrefs and report how many were replaced.

    The input bytes are returned unchanged when the index is empty, the
    document cannot be parsed, or no href resolved.
    """
    if not index:
        return RewriteResult(content=data)

    parsed = parse_document(data)
    if not parsed.ok:
        logger.debug("Passing through unparseable document: %s", parsed.error)
        return RewriteResult(content=data)

    references = 0
    rewritten = 0
    for element in iter_graphic_elements(parsed.tree):
        href = read_href(element)
        if href is None or href.value == "":
            continue
        references += 1

        result = resolve_graphic_url(href.value, index)
        if not result.found or not result.url:
            logger.debug("No dependent file matches graphic href %r", href.value)
            continue

        write_href(element, href.slot, result.url)
        rewritten += 1
        logger.debug("Rewrote graphic href %r via key %r", href.value, result.matched_key)

    if rewritten == 0:
        return RewriteResult(content=data, parsed=True, references=references)

    return RewriteResult(
        content=serialize_document(parsed.tree, data),
        parsed=True,
        references=references,
        rewritten=rewritten,
    )


def rewrite(data: bytes, index: NameIndex) -> bytes:
    """Return ``data`` with every resolvable graphic href replaced by its file URL."""
    return rewrite_document(data, index).content
