import re
from typing import List, Optional

# A backslash that already starts a JSON escape, or a lone one
_ESCAPE_RE = re.compile(r'\\(?:u[0-9a-fA-F]{4}|["\\/bfnrt])|\\')

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def strip_fence_lines(text: str) -> str:
    """
    Drop the first and last line when there are at least three lines
    (the ```json / ``` markers models are asked to emit); otherwise trim.
    """
    lines = _LINE_SPLIT_RE.split(text)
    if len(lines) >= 3:
        return "\n".join(lines[1:-1])
    return text.strip()


def outermost_object(text: str) -> Optional[str]:
    """First '{' to last '}' span, or None."""
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        return None
    return match.group(0)


def escape_newlines_in_strings(text: str) -> str:
    """
    Escape raw line breaks inside quoted-string spans only.
    Characters outside quotes are copied untouched.
    """
    out: List[str] = []
    in_string = False
    escaped = False

    for ch in text:
        if not in_string:
            if ch == '"':
                in_string = True
            out.append(ch)
            continue

        if escaped:
            escaped = False
            # backslash followed by a raw newline: keep it as a \n escape
            if ch == "\n":
                out.append("n")
            elif ch == "\r":
                out.append("r")
            else:
                out.append(ch)
            continue

        if ch == "\\":
            escaped = True
            out.append(ch)
        elif ch == '"':
            in_string = False
            out.append(ch)
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        else:
            out.append(ch)

    return "".join(out)


def escape_stray_backslashes(text: str) -> str:
    """
    Double every backslash that does not start a JSON escape
    (Windows paths, regexes). Valid escapes are left as they are.
    """
    return _ESCAPE_RE.sub(
        lambda m: m.group(0) if len(m.group(0)) > 1 else "\\\\",
        text,
    )
