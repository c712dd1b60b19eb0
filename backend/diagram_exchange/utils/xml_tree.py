"""
Thin wrappers around lxml for the two parse modes the pipeline needs.

- strict: well-formedness check, raises on the first syntax error
- recover: best-effort tree for salvaging cells out of broken markup

Parsers are built per call; lxml parser objects must not be shared
between threads.
"""

import base64
import urllib.parse
import zlib
from typing import Optional

from lxml import etree

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def _parser(recover: bool = False) -> etree.XMLParser:
    return etree.XMLParser(
        recover=recover,
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
    )


def parse_strict(text: str) -> etree._Element:
    """Parse markup or raise etree.XMLSyntaxError."""
    return etree.fromstring(text.encode("utf-8"), parser=_parser())


def well_formedness_error(text: str) -> Optional[str]:
    """Return the parser's message for malformed markup, None when well-formed."""
    if not text or not text.strip():
        return "Document is empty"
    try:
        parse_strict(text)
    except etree.XMLSyntaxError as e:
        return str(e)
    except UnicodeError as e:
        # lone surrogates survive json.loads but cannot be encoded
        return f"Invalid character encoding: {e}"
    return None


def parse_recover(text: str) -> Optional[etree._Element]:
    """Best-effort parse. Returns None when nothing usable was recovered."""
    if not text or not text.strip():
        return None
    try:
        return etree.fromstring(text.encode("utf-8"), parser=_parser(recover=True))
    except (etree.XMLSyntaxError, ValueError):
        return None


def serialize(root: etree._Element) -> str:
    return etree.tostring(
        root,
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    ).decode("utf-8").strip()


def local_name(element) -> str:
    """Tag name without namespace; comments and PIs yield ''."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def child_elements(element, name: str) -> list:
    return [c for c in element if local_name(c) == name]


def decode_compressed_diagram(payload: str) -> Optional[str]:
    """
    Decode the compressed <diagram> body draw.io writes by default:
    base64 -> deflate -> URL-encoded XML. Returns None if any step fails.
    """
    text = (payload or "").strip()
    if not text:
        return None
    try:
        raw = base64.b64decode(text, validate=False)
    except (ValueError, TypeError):
        return None

    inflated = None
    for wbits in (-15, 15, 31):
        try:
            inflated = zlib.decompress(raw, wbits=wbits)
            break
        except zlib.error:
            continue
    if inflated is None:
        return None

    try:
        decoded = urllib.parse.unquote(inflated.decode("utf-8"))
    except UnicodeDecodeError:
        return None
    if "<mxGraphModel" not in decoded:
        return None
    return decoded


def parse_fragment(text: str) -> Optional[etree._Element]:
    """Strict parse that returns None instead of raising."""
    try:
        return parse_strict(text)
    except (etree.XMLSyntaxError, ValueError):
        return None
