import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.utils.json_extract import (
    escape_newlines_in_strings,
    escape_stray_backslashes,
    outermost_object,
    strip_fence_lines,
)

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Generated diagram"

_MXFILE_RE = re.compile(r"<mxfile\b[^>]*>.*</mxfile>", re.DOTALL)
_FENCE_RE = re.compile(r"^\s*```")


@dataclass(frozen=True)
class Envelope:
    xml: str
    commentary: str
    # which attempt produced it: "direct", "newlines", "backslashes"
    recovered_by: str = field(default="direct", compare=False)

    def to_dict(self) -> dict:
        return {"xml": self.xml, "commentary": self.commentary}


# ============================================================
# SAFE ENVELOPE LOADER (LLM TRUST BOUNDARY)
# ============================================================

def _load_envelope(text: str) -> Tuple[Optional[Envelope], Optional[str]]:
    """(envelope, None) on success, (None, reason) otherwise. Never raises."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        return None, str(e)

    if not isinstance(data, dict):
        return None, f"Expected a JSON object, got {type(data).__name__}"

    for key in ("xml", "commentary"):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            return None, f"Field '{key}' is missing or empty"

    return Envelope(xml=data["xml"], commentary=data["commentary"]), None


def _candidates(raw: str) -> List[str]:
    out: List[str] = []
    for text in (strip_fence_lines(raw), raw.strip(), outermost_object(raw)):
        if text and text not in out:
            out.append(text)
    return out


def parse_envelope(raw: str) -> Union[Envelope, PipelineError]:
    """
    Extract {xml, commentary} from raw model output.

    Strategy, per candidate text (fence-stripped, trimmed, outermost {...}):
    1. Direct json.loads
    2. Escape raw line breaks inside string literals
    3. Additionally escape stray backslashes

    NEVER throws. Returns PipelineError(ParseFailure) carrying the
    first direct-parse error when every attempt fails.
    """
    if not raw or not isinstance(raw, str) or not raw.strip():
        return PipelineError(ErrorKind.PARSE_FAILURE, "Empty model output")

    first_error: Optional[str] = None

    for candidate in _candidates(raw):
        envelope, error = _load_envelope(candidate)
        if envelope is not None:
            return envelope
        if first_error is None:
            first_error = error

        pass_one = escape_newlines_in_strings(candidate)
        envelope, _ = _load_envelope(pass_one)
        if envelope is not None:
            logger.info("[ENVELOPE] Recovered after escaping line breaks in strings")
            return Envelope(envelope.xml, envelope.commentary, recovered_by="newlines")

        pass_two = escape_stray_backslashes(pass_one)
        envelope, _ = _load_envelope(pass_two)
        if envelope is not None:
            logger.info("[ENVELOPE] Recovered after escaping stray backslashes")
            return Envelope(envelope.xml, envelope.commentary, recovered_by="backslashes")

    logger.warning("[ENVELOPE] Could not recover envelope: %s", first_error)
    return PipelineError(ErrorKind.PARSE_FAILURE, first_error or "No JSON object found")


# ============================================================
# BARE MARKUP RESPONSES
# ============================================================

def extract_markup(text: str) -> Optional[str]:
    """The <mxfile>...</mxfile> span of free text (or <?xml ... last </mxfile>), else None."""
    if not text:
        return None

    match = _MXFILE_RE.search(text)
    if match:
        return match.group(0)

    start = text.find("<?xml")
    end = text.rfind("</mxfile>")
    if start != -1 and end > start:
        return text[start:end + len("</mxfile>")]
    return None


def extract_description(text: str) -> str:
    """Non-markup, non-fence lines of the response joined by spaces."""
    if not text:
        return DEFAULT_DESCRIPTION

    markup = extract_markup(text)
    if markup:
        text = text.replace(markup, "\n")

    lines = [
        line.strip() for line in text.splitlines()
        if line.strip() and not _FENCE_RE.match(line)
    ]
    return " ".join(lines) or DEFAULT_DESCRIPTION
