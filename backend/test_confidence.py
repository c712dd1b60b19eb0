"""Tests for the confidence heuristic"""

import pytest
from conftest import SCENARIO_C_XML, VALID_XML

from diagram_exchange.validation import score_confidence
from diagram_exchange.validation.confidence import prompt_coverage


def test_complete_document_scores_full():
    assert score_confidence(VALID_XML, "orders database") == 1.0


def test_base_score_without_markers():
    assert score_confidence("", "") == 0.5
    assert score_confidence("<mxfile>", "") == 0.5


def test_cells_without_wrapper_tags():
    assert score_confidence('<mxCell id="0"/>') == pytest.approx(0.7)


def test_prompt_coverage_counts_long_words_only():
    xml = "<diagram>payment gateway</diagram>"
    prompt = "payment service gateway for shop"

    assert prompt_coverage(xml, prompt) == pytest.approx(0.5)
    assert score_confidence(xml, prompt) == pytest.approx(0.6)


def test_coverage_is_case_insensitive():
    assert prompt_coverage("<x>ORDER SERVICE</x>", "Order Service") == 1.0


def test_score_is_bounded():
    prompts = ["", "a b c", "orders database api gateway", "x" * 500]
    docs = ["", "garbage", SCENARIO_C_XML, VALID_XML, VALID_XML * 3]
    for xml in docs:
        for prompt in prompts:
            assert 0.0 <= score_confidence(xml, prompt) <= 1.0
