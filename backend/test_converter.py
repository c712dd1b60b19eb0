"""Tests for one-way projection into Mermaid / PlantUML / D2"""

from conftest import VALID_XML, default_cells, wrap_cells

from diagram_exchange.compiler import (
    D2Text,
    MermaidText,
    NativeXml,
    PlantUmlText,
    TargetFormat,
    project_to,
)
from diagram_exchange.ir.diagram import parse_document
from diagram_exchange.ir.errors import ErrorKind, PipelineError


def sample():
    return parse_document(VALID_XML)


def test_mermaid_emits_labelled_shapes_only():
    result = project_to(sample(), TargetFormat.MERMAID)

    assert isinstance(result, MermaidText)
    assert result.source == 'flowchart TD\n    api["API"]\n    db["Orders DB"]'
    assert "-->" not in result.source


def test_plantuml_template():
    result = project_to(sample(), "plantuml")

    assert isinstance(result, PlantUmlText)
    assert result.source == '@startuml\nrectangle "API" as api\nrectangle "Orders DB" as db\n@enduml'


def test_d2_keeps_round_and_diamond_shapes():
    doc = parse_document(wrap_cells(
        default_cells()
        + '<mxCell id="start" value="Start" style="ellipse" vertex="1" parent="1"/>'
        + '<mxCell id="check" value="OK?" style="rhombus" vertex="1" parent="1"/>'
        + '<mxCell id="step" value="Do it" vertex="1" parent="1"/>'
    ))

    result = project_to(doc, TargetFormat.D2)

    assert isinstance(result, D2Text)
    assert result.source.startswith("direction: down")
    assert 'start: "Start" { shape: oval }' in result.source
    assert 'check: "OK?" { shape: diamond }' in result.source
    assert 'step: "Do it"' in result.source


def test_native_is_identity():
    doc = sample()
    result = project_to(doc, "native")

    assert isinstance(result, NativeXml)
    assert result.source == VALID_XML


def test_unknown_target_is_reported():
    result = project_to(sample(), "svg")

    assert isinstance(result, PipelineError)
    assert result.kind == ErrorKind.CONVERSION_UNSUPPORTED
    assert "svg" in result.detail


def test_target_names_are_case_insensitive():
    assert isinstance(project_to(sample(), "Mermaid"), MermaidText)


def test_ids_are_sanitized_and_kept_unique():
    doc = parse_document(wrap_cells(
        default_cells()
        + '<mxCell id="node-1" value="First" vertex="1" parent="1"/>'
        + '<mxCell id="node 1" value="Second" vertex="1" parent="1"/>'
        + '<mxCell id="---" value="Third" vertex="1" parent="1"/>'
        + '<mxCell id="q" value="Say &quot;hi&quot;" vertex="1" parent="1"/>'
        + '<mxCell id="blank" value="" vertex="1" parent="1"/>'
    ))

    lines = project_to(doc, "mermaid").source.splitlines()

    assert lines == [
        "flowchart TD",
        '    node1["First"]',
        '    node1_2["Second"]',
        '    n2["Third"]',
        '    q["Say #quot;hi#quot;"]',
    ]


def test_projection_values_carry_their_format():
    assert project_to(sample(), "d2").format == TargetFormat.D2
    assert project_to(sample(), "native").format == TargetFormat.NATIVE
