"""Sample draw.io documents shared by the test modules."""

import base64
import urllib.parse
import zlib

import pytest

VALID_XML = """<mxfile host="app.diagrams.net">
  <diagram id="d1" name="Page-1">
    <mxGraphModel dx="800" dy="600" grid="1" gridSize="10" pageWidth="850" pageHeight="1100">
      <root>
        <mxCell id="0"/>
        <mxCell id="1" parent="0"/>
        <mxCell id="api" value="API" style="rounded=1;whiteSpace=wrap;" vertex="1" parent="1">
          <mxGeometry x="40" y="40" width="120" height="60" as="geometry"/>
        </mxCell>
        <mxCell id="db" value="Orders DB" style="shape=cylinder3;" vertex="1" parent="1">
          <mxGeometry x="240" y="40" width="80" height="80" as="geometry"/>
        </mxCell>
        <mxCell id="e1" style="endArrow=classic;" edge="1" parent="1" source="api" target="db">
          <mxGeometry relative="1" as="geometry"/>
        </mxCell>
      </root>
    </mxGraphModel>
  </diagram>
</mxfile>"""

SCENARIO_C_XML = '<mxfile><diagram><mxGraphModel><root><mxCell id="0"/></root></mxGraphModel></diagram></mxfile>'


def wrap_cells(cells: str) -> str:
    return (
        '<mxfile><diagram id="d" name="Test"><mxGraphModel><root>'
        + cells
        + "</root></mxGraphModel></diagram></mxfile>"
    )


def default_cells() -> str:
    return '<mxCell id="0"/><mxCell id="1" parent="0"/>'


def compress_model(model_xml: str) -> str:
    """Encode a graph model the way draw.io stores compressed pages."""
    deflater = zlib.compressobj(9, zlib.DEFLATED, -15)
    data = deflater.compress(urllib.parse.quote(model_xml).encode("utf-8")) + deflater.flush()
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def valid_xml() -> str:
    return VALID_XML


@pytest.fixture
def scenario_c_xml() -> str:
    return SCENARIO_C_XML
