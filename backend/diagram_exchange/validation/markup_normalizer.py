"""
Tier A repair: textual normalization of draw.io markup.

Works on raw text, before any tree exists:
- drops characters XML 1.0 does not allow (raw or as character references)
- trims outer whitespace and prepends the XML declaration
- escapes &, <, > and stray delimiter quotes inside attribute values only
- rewrites unclosed mxCell / mxGeometry / mxPoint open tags as self-closing

normalize_markup(normalize_markup(x)) == normalize_markup(x)
"""

import re
from collections import defaultdict
from typing import Dict, List, Tuple

from diagram_exchange.utils.xml_tree import XML_DECLARATION

SELF_CLOSING_TAGS = ("mxCell", "mxGeometry", "mxPoint")

# Only the predefined XML entities and character references survive;
# anything else (&nbsp;, a bare &) gets its ampersand escaped.
_BARE_AMP_RE = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#\d{1,7}|#x[0-9A-Fa-f]{1,6});)")

# Complement of the XML 1.0 Char production; lone surrogates included
_INVALID_CHAR_RE = re.compile("[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")
_CHAR_REF_RE = re.compile(r"&#(?:x([0-9A-Fa-f]{1,6})|(\d{1,7}));")

_TAG_NAME_RE = re.compile(r"[A-Za-z_:][\w:.-]*")
_ATTR_NAME_RE = re.compile(r"[^\s=/>\"']+")
_EQUALS_RE = re.compile(r"\s*=\s*")
_WS_RE = re.compile(r"\s*")
_UNQUOTED_RE = re.compile(r"[^\s>]*")

# A closing quote is the one followed by the tag end or by the next attribute
_VALUE_END_RE = {
    q: re.compile(q + r"(?=\s*/?>|\s+[\w:.-]+\s*=)") for q in ("\"", "'")
}

_SKIP_BLOCKS = (
    ("<!--", "-->"),
    ("<![CDATA[", "]]>"),
    ("<?", "?>"),
    ("<!", ">"),
    ("</", ">"),
)

_LEAF_TAG_RE = re.compile(
    r"<!--.*?-->|<!\[CDATA\[.*?\]\]>|<(/?)(" + "|".join(SELF_CLOSING_TAGS) + r")(?=[\s/>])([^>]*)>",
    re.DOTALL,
)


def is_xml_char(code_point: int) -> bool:
    return (
        code_point in (0x9, 0xA, 0xD)
        or 0x20 <= code_point <= 0xD7FF
        or 0xE000 <= code_point <= 0xFFFD
        or 0x10000 <= code_point <= 0x10FFFF
    )


def _keep_char_ref(match: re.Match) -> str:
    hex_digits, digits = match.groups()
    code_point = int(hex_digits, 16) if hex_digits else int(digits)
    return match.group(0) if is_xml_char(code_point) else ""


def strip_invalid_chars(text: str) -> str:
    """Remove characters, and references to characters, that no XML document may contain."""
    text = _INVALID_CHAR_RE.sub("", text)
    # removing "&#0;" from "&#&#0;0;" leaves a new reference behind
    while True:
        stripped = _CHAR_REF_RE.sub(_keep_char_ref, text)
        if stripped == text:
            return text
        text = stripped


def escape_attribute_value(value: str, quote: str) -> str:
    value = _BARE_AMP_RE.sub("&amp;", value)
    value = value.replace("<", "&lt;").replace(">", "&gt;")
    return value.replace(quote, "&quot;" if quote == "\"" else "&apos;")


def _rewrite_open_tag(text: str, start: int, name_end: int) -> Tuple[str, int]:
    """Rewrite the open tag starting at `start`; returns (tag text, end index)."""
    n = len(text)
    parts = [text[start:name_end]]
    i = name_end

    while i < n:
        j = _WS_RE.match(text, i).end()
        if text.startswith("/>", j):
            parts.append(text[i:j + 2])
            return "".join(parts), j + 2
        if j < n and text[j] == ">":
            parts.append(text[i:j + 1])
            return "".join(parts), j + 1

        name = _ATTR_NAME_RE.match(text, j)
        if not name:
            parts.append(text[i:j + 1])
            i = j + 1
            continue

        eq = _EQUALS_RE.match(text, name.end())
        if eq is None:
            # valueless attribute; copied as-is
            parts.append(text[i:name.end()])
            i = name.end()
            continue

        v = eq.end()
        if v < n and text[v] in ("\"", "'"):
            quote = text[v]
            boundary = _VALUE_END_RE[quote].search(text, v + 1)
            close = boundary.start() if boundary else text.find(quote, v + 1)
            if close == -1:
                parts.append(text[i:])
                return "".join(parts), n
            value = escape_attribute_value(text[v + 1:close], quote)
            parts.append(text[i:v + 1] + value + quote)
            i = close + 1
        else:
            unquoted = _UNQUOTED_RE.match(text, v)
            parts.append(text[i:unquoted.end()])
            i = unquoted.end()

    parts.append(text[i:])
    return "".join(parts), n


def escape_attributes(text: str) -> str:
    """Escape special characters inside attribute values, leaving everything else untouched."""
    out: List[str] = []
    pos = 0
    n = len(text)

    while pos < n:
        lt = text.find("<", pos)
        if lt == -1:
            out.append(text[pos:])
            break
        out.append(text[pos:lt])

        skipped = False
        for opener, closer in _SKIP_BLOCKS:
            if text.startswith(opener, lt):
                end = text.find(closer, lt + len(opener))
                end = n if end == -1 else end + len(closer)
                out.append(text[lt:end])
                pos = end
                skipped = True
                break
        if skipped:
            continue

        name = _TAG_NAME_RE.match(text, lt + 1)
        if not name:
            out.append("<")
            pos = lt + 1
            continue

        tag, pos = _rewrite_open_tag(text, lt, name.end())
        out.append(tag)

    return "".join(out)


def self_close_leaf_tags(text: str) -> str:
    """Turn unmatched mxCell/mxGeometry/mxPoint open tags into self-closing ones."""
    stacks: Dict[str, List[re.Match]] = defaultdict(list)

    for m in _LEAF_TAG_RE.finditer(text):
        name = m.group(2)
        if name is None:
            continue
        if m.group(1):
            if stacks[name]:
                stacks[name].pop()
            continue
        if m.group(3).rstrip().endswith("/"):
            continue
        stacks[name].append(m)

    unmatched = sorted(
        (m for stack in stacks.values() for m in stack),
        key=lambda m: m.start(),
    )
    if not unmatched:
        return text

    out: List[str] = []
    pos = 0
    for m in unmatched:
        out.append(text[pos:m.end() - 1])
        out.append("/>")
        pos = m.end()
    out.append(text[pos:])
    return "".join(out)


def normalize_markup(text: str) -> str:
    text = strip_invalid_chars(text or "").strip()
    if not text:
        return ""

    text = escape_attributes(text)
    text = self_close_leaf_tags(text)

    if not text.startswith("<?xml"):
        text = XML_DECLARATION + "\n" + text
    return text
