"""Tests for the two-tier DiagramRepairer"""

from conftest import SCENARIO_C_XML, VALID_XML, default_cells, wrap_cells

from diagram_exchange.ir.diagram import parse_document
from diagram_exchange.ir.errors import ErrorKind
from diagram_exchange.utils.xml_tree import XML_DECLARATION
from diagram_exchange.validation import (
    DiagramRepairer,
    normalize_markup,
    repair_markup,
    validate_and_repair,
    validate_diagram,
)
from diagram_exchange.validation import diagram_fixer
from diagram_exchange.validation.markup_normalizer import strip_invalid_chars

BROKEN_INPUTS = [
    SCENARIO_C_XML,
    VALID_XML.replace('value="API"', 'value="R&D <API>"'),
    '<mxfile><diagram><mxGraphModel><root><mxCell id="a" value="x" vertex="1" parent="1">',
    wrap_cells('<mxCell id="a" value="A" vertex="1" parent="1"/>'),
    "<mxfile><diagram></mxfile>",
    VALID_XML,
    VALID_XML.replace('value="API"', 'value="A\ufffePI"'),
    wrap_cells('<mxCell id="a" value="x\ud800&#1;" vertex="1" parent="ghost"/>'),
]


def test_missing_default_cells_are_rebuilt():
    repaired = repair_markup(SCENARIO_C_XML)

    assert repaired is not None
    document = parse_document(repaired)
    assert document.cell("0") is not None
    assert document.cell("1").parent == "0"
    assert validate_diagram(repaired).is_valid


def test_repair_is_idempotent():
    for xml in BROKEN_INPUTS:
        once = repair_markup(xml)
        assert once is not None, xml
        assert repair_markup(once) == once, xml


def test_tier_a_is_used_when_normalization_suffices():
    xml = VALID_XML.replace('value="API"', 'value="R&D <API>"')

    result = DiagramRepairer().repair(xml)

    assert result.success
    assert result.tier == "A"
    assert 'value="R&amp;D &lt;API&gt;"' in result.xml


def test_tier_b_salvages_content_cells():
    xml = wrap_cells(
        '<mxCell id="a" value="A" vertex="1" parent="1"><mxGeometry x="10" y="20" width="30" height="40" as="geometry"/></mxCell>'
        '<mxCell id="b" value="B" style="ellipse" vertex="1" parent="1"/>'
    )

    result = DiagramRepairer().repair(xml)

    assert result.tier == "B"
    document = parse_document(result.xml)
    assert [c.id for c in document.cells] == ["0", "1", "a", "b"]
    assert document.cell("a").geometry.height == 40
    assert document.cell("b").style == "ellipse"
    assert document.primary.name == "Generated Diagram"


def test_tier_b_output_is_deterministic():
    first = repair_markup(SCENARIO_C_XML)
    second = repair_markup(SCENARIO_C_XML)

    assert first == second
    assert "modified" not in first


def test_edge_policy_drops_dangling_edges_and_reparents_orphans():
    xml = wrap_cells(
        '<mxCell id="a" value="A" vertex="1" parent="1"/>'
        '<mxCell id="b" value="B" vertex="1" parent="ghost"/>'
        '<mxCell id="a" value="A again" vertex="1" parent="1"/>'
        '<mxCell id="e1" edge="1" parent="1" source="a" target="b"/>'
        '<mxCell id="e2" edge="1" parent="1" source="a" target="missing"/>'
    )

    result = DiagramRepairer().repair(xml)

    assert result.tier == "B"
    document = parse_document(result.xml)
    assert [c.id for c in document.cells] == ["0", "1", "a", "b", "e1"]
    assert document.cell("a").label == "A"
    assert document.cell("b").parent == "1"
    assert "Dropped duplicate cell 'a'" in result.changes
    assert "Dropped edge 'e2' with unresolved target" in result.changes
    assert "Re-parented cell 'b' to layer '1'" in result.changes
    assert validate_diagram(result.xml, strict=True).is_valid


def test_strict_repair_fixes_dangling_edge_in_otherwise_valid_document():
    xml = wrap_cells(
        default_cells()
        + '<mxCell id="a" value="A" vertex="1" parent="1"/>'
        + '<mxCell id="e" edge="1" parent="1" source="a" target="gone"/>'
    )

    repaired = repair_markup(xml, strict=True)

    assert repaired is not None
    document = parse_document(repaired)
    assert document.cell("e") is None
    assert document.cell("a") is not None


def test_unclosed_cells_are_salvaged_from_broken_markup():
    xml = '<mxfile><diagram><mxGraphModel><root><mxCell id="a" value="x" vertex="1" parent="1">'

    result = DiagramRepairer().repair(xml)

    assert result.success
    assert parse_document(result.xml).cell("a").label == "x"


def test_repair_failure_is_reported(monkeypatch):
    def broken_serialize(root):
        raise ValueError("serializer exploded")

    monkeypatch.setattr(diagram_fixer, "serialize", broken_serialize)

    result = DiagramRepairer().repair(SCENARIO_C_XML)

    assert not result.success
    assert result.xml is None
    assert result.error.kind == ErrorKind.REPAIR_FAILURE
    assert repair_markup(SCENARIO_C_XML) is None


def test_validate_and_repair_runs_one_repair():
    result, repair = validate_and_repair(SCENARIO_C_XML)

    assert result.is_valid
    assert repair.tier == "B"
    assert result.corrected_xml == repair.xml
    assert result.repaired is not None
    assert result.repaired.cell("1") is not None


def test_invalid_character_in_value_does_not_fail_the_request():
    xml = VALID_XML.replace('value="API"', 'value="A\ufffePI"')

    result, repair = validate_and_repair(xml)

    assert result.is_valid
    assert result.errors == ()
    assert repair is None
    assert result.document.cell("api").label == "API"


def test_tier_b_output_has_no_invalid_characters():
    xml = wrap_cells('<mxCell id="a" value="A\ufffe\x00&#xFFFF;" vertex="1" parent="1"/>')

    result = DiagramRepairer().repair(xml)

    assert result.success
    assert result.tier == "B"
    assert parse_document(result.xml).cell("a").label == "A"
    assert validate_diagram(result.xml).is_valid


def test_validate_and_repair_leaves_valid_input_alone():
    result, repair = validate_and_repair(VALID_XML)

    assert result.is_valid
    assert repair is None
    assert result.repaired is None


# ============================================================
# Tier A normalization
# ============================================================

def test_declaration_is_prepended_once():
    assert normalize_markup("  <mxfile/>  ") == XML_DECLARATION + "\n<mxfile/>"
    assert normalize_markup('<?xml version="1.0"?><mxfile/>') == '<?xml version="1.0"?><mxfile/>'


def test_attribute_values_are_escaped():
    xml = '<mxCell id="2" value="a < b & c > d" vertex="1"/>'

    assert 'value="a &lt; b &amp; c &gt; d"' in normalize_markup(xml)


def test_existing_entities_survive_and_unknown_ones_are_escaped():
    xml = '<mxCell id="2" value="x &amp; y&#10;z &nbsp;"/>'

    assert 'value="x &amp; y&#10;z &amp;nbsp;"' in normalize_markup(xml)


def test_stray_delimiter_quotes_are_escaped():
    double = normalize_markup('<mxCell id="2" value="say "hi" now" vertex="1"/>')
    single = normalize_markup("<mxCell id='2' value='it's \"fine\"' vertex='1'/>")

    assert 'value="say &quot;hi&quot; now"' in double
    assert "value='it&apos;s \"fine\"'" in single


def test_text_outside_attributes_is_untouched():
    xml = "<mxfile><!-- a & b --><diagram name=\"x\">text & more</diagram></mxfile>"

    assert normalize_markup(xml) == XML_DECLARATION + "\n" + xml


def test_unclosed_leaf_tags_become_self_closing():
    xml = (
        '<root><mxCell id="0"><mxCell id="1" parent="0"></mxCell>'
        '<mxCell id="2" vertex="1"><mxGeometry x="1" as="geometry"></mxCell></root>'
    )

    normalized = normalize_markup(xml)

    assert '<mxCell id="0"/>' in normalized
    assert '<mxGeometry x="1" as="geometry"/>' in normalized
    assert validate_diagram(normalized).error_kinds == [ErrorKind.MISSING_ROOT]


def test_characters_outside_xml_are_removed():
    assert strip_invalid_chars("a\x00b\ud800c\ufffed\U0001F600") == "abcd\U0001F600"
    assert strip_invalid_chars("&#10;&#x9;&#0;&#xFFFE;&#xD800;") == "&#10;&#x9;"
    assert strip_invalid_chars("&#&#0;0;") == ""
    assert normalize_markup("\x00 <mxfile/>") == XML_DECLARATION + "\n<mxfile/>"


def test_normalization_is_idempotent():
    for xml in BROKEN_INPUTS + ['<mxCell value="a "b" & c"><mxGeometry>']:
        once = normalize_markup(xml)
        assert normalize_markup(once) == once
