"""Heuristic confidence that generated markup is valid and matches the prompt."""

BASE_SCORE = 0.5
DOCUMENT_BONUS = 0.3
CELL_BONUS = 0.2
COVERAGE_WEIGHT = 0.2
MIN_WORD_LENGTH = 4


def prompt_coverage(xml: str, source_prompt: str) -> float:
    """Fraction of prompt words (length > 3) found, case-insensitively, in the markup."""
    words = [w for w in (source_prompt or "").lower().split() if len(w) >= MIN_WORD_LENGTH]
    if not words:
        return 0.0
    haystack = (xml or "").lower()
    covered = sum(1 for w in words if w in haystack)
    return covered / len(words)


def score_confidence(xml: str, source_prompt: str = "") -> float:
    xml = xml or ""
    score = BASE_SCORE

    if "<mxfile" in xml and "</mxfile>" in xml:
        score += DOCUMENT_BONUS
    if "<mxCell" in xml:
        score += CELL_BONUS

    score += COVERAGE_WEIGHT * prompt_coverage(xml, source_prompt)
    return max(0.0, min(1.0, score))
