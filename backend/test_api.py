import json

import pytest
from conftest import SCENARIO_C_XML, VALID_XML
from fastapi.testclient import TestClient

from diagram_exchange.main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_process_returns_document_and_analysis(client):
    raw = json.dumps({"xml": VALID_XML, "commentary": "Orders flow"})

    body = client.post("/diagrams/process", json={"raw_output": raw, "prompt": "orders"}).json()

    assert body["status"] == "success"
    assert body["xml"] == VALID_XML
    assert body["commentary"] == "Orders flow"
    assert [e["id"] for e in body["elements"]] == ["api", "db"]
    assert body["confidence"] == 1.0
    assert body["validation"]["is_valid"] is True


def test_process_reports_failed_stage(client):
    body = client.post("/diagrams/process", json={"raw_output": "no json here"}).json()

    assert body["status"] == "error"
    assert body["stage"] == "envelope"
    assert body["error"]["kind"] == "ParseFailure"


def test_process_markup(client):
    body = client.post("/diagrams/process-markup", json={"raw_output": "Result:\n" + VALID_XML}).json()

    assert body["status"] == "success"
    assert body["commentary"] == "Result:"


def test_validate_repairs_missing_default_cells(client):
    body = client.post("/diagrams/validate", json={"xml": SCENARIO_C_XML}).json()

    assert body["isValid"] is True
    assert body["errors"] == []
    assert body["elementCount"] == 2
    assert 'id="1"' in body["correctedXML"]


def test_validate_valid_markup_has_no_correction(client):
    body = client.post("/diagrams/validate", json={"xml": VALID_XML}).json()

    assert body == {"isValid": True, "errors": [], "elementCount": 5}


def test_analyze(client):
    body = client.post("/diagrams/analyze", json={"xml": VALID_XML}).json()

    assert body["status"] == "success"
    assert len(body["elements"]) == 2
    assert body["layout"]["complexity"] == "simple"
    assert body["suggestions"] == []
    assert body["info"]["title"] == "Page-1"


def test_project_to_mermaid(client):
    body = client.post("/diagrams/project", json={"xml": VALID_XML, "target": "mermaid"}).json()

    assert body == {
        "status": "success",
        "format": "mermaid",
        "source": 'flowchart TD\n    api["API"]\n    db["Orders DB"]',
    }


def test_project_to_unknown_target(client):
    body = client.post("/diagrams/project", json={"xml": VALID_XML, "target": "svg"}).json()

    assert body["status"] == "error"
    assert body["stage"] == "conversion"
    assert body["error"]["kind"] == "ConversionUnsupported"


def test_score(client):
    body = client.post("/diagrams/score", json={"xml": "", "prompt": ""}).json()

    assert body == {"status": "success", "confidence": 0.5}


def test_initial_prompt(client):
    payload = {
        "files": [{"name": "app.py", "content": "print('hi')"}],
        "additional_context": "shop backend",
    }

    body = client.post("/prompts/initial", json=payload).json()

    assert body["status"] == "success"
    assert "File 1 (app.py):\nprint('hi')" in body["prompt"]
    assert "shop backend" in body["prompt"]
    assert "{{" not in body["prompt"]
    assert body["style_guide"]


def test_follow_up_prompt(client):
    body = client.post("/prompts/follow-up", json={"follow_up": "add a cache"}).json()

    assert "add a cache" in body["prompt"]
    assert body["system_prompt"]


def test_process_survives_surrogate_escape(client):
    raw = '{"xml": "<mxfile>\\ud800</mxfile>", "commentary": "ok"}'

    body = client.post("/diagrams/process", json={"raw_output": raw}).json()

    assert body["status"] == "success"
    assert body["recovered_by"] == "direct"
    assert body["repair"]["tier"] == "B"


def test_validate_reparents_orphan_cells(client):
    xml = VALID_XML.replace('value="Orders DB" style="shape=cylinder3;" vertex="1" parent="1"',
                            'value="Orders DB" style="shape=cylinder3;" vertex="1" parent="ghost"')

    body = client.post("/diagrams/validate", json={"xml": xml}).json()

    assert body["isValid"] is True
    assert 'parent="ghost"' not in body["correctedXML"]
