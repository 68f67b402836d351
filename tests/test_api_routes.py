"""
API route integration tests using FastAPI TestClient.
Tests the full HTTP request/response cycle; the service is stateless.
Run: pytest tests/test_api_routes.py -v
"""
import copy

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="module")
def client():
    """Create a TestClient for the FastAPI app."""
    from cutscene.api.server import app
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def doc(runtime_document):
    return copy.deepcopy(runtime_document)


# ══════════════════════════════════════════════════════════════════
# SYSTEM / HEALTH
# ══════════════════════════════════════════════════════════════════


class TestSystemRoutes:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "schema_version": 1}

    def test_info(self, client):
        r = client.get("/info")
        assert r.status_code == 200
        data = r.json()
        assert data["name"] == "cutscene-toolkit"
        assert data["schema_version"] == 1
        assert data["export_fps"] == 30

    def test_openapi_tags_present(self, client):
        schema = client.get("/openapi.json").json()
        assert schema["info"]["title"] == "Cutscene Toolkit API"
        tag_names = [t["name"] for t in schema.get("tags", [])]
        assert "System" in tag_names
        assert "Cutscenes" in tag_names
        assert "/cutscenes/export" in schema["paths"]

    def test_docs_page(self, client):
        assert client.get("/docs").status_code == 200


# ══════════════════════════════════════════════════════════════════
# VALIDATE
# ══════════════════════════════════════════════════════════════════


class TestValidateRoute:

    def test_clean_document(self, client, doc):
        r = client.post("/cutscenes/validate", json=doc)
        assert r.status_code == 200
        data = r.json()
        assert data["hasErrors"] is False
        assert data["entries"] == []

    def test_findings_use_editor_field_names(self, client, doc):
        doc["nodes"].append({"id": "X", "type": "move", "name": "Stray"})
        data = client.post("/cutscenes/validate", json=doc).json()
        assert data["hasErrors"] is False
        stray = [d for d in data["entries"] if d["nodeId"] == "X"]
        assert {d["severity"] for d in stray} == {"warn"}

    def test_errors_reported_with_200(self, client, doc):
        doc["nodes"] = [n for n in doc["nodes"] if n["type"] != "start"]
        r = client.post("/cutscenes/validate", json=doc)
        assert r.status_code == 200
        assert r.json()["hasErrors"] is True

    def test_unsupported_schema_version(self, client, doc):
        doc["schemaVersion"] = 7
        r = client.post("/cutscenes/validate", json=doc)
        assert r.status_code == 400
        assert "schemaVersion" in r.json()["detail"]

    def test_non_object_body(self, client):
        r = client.post("/cutscenes/validate", json=[1, 2])
        assert r.status_code == 422


# ══════════════════════════════════════════════════════════════════
# COMPILE
# ══════════════════════════════════════════════════════════════════


class TestCompileRoute:

    def test_compile_success(self, client, doc):
        r = client.post("/cutscenes/compile", json=doc)
        assert r.status_code == 200
        data = r.json()
        assert data["success"] is True
        assert data["node_count"] == 3
        assert {"type": "wait", "seconds": 2.5} in data["actions"]
        assert {"type": "dialogue", "text": "Hello"} in data["actions"]

    def test_compile_failure_in_body(self, client, doc):
        doc["edges"].append({"id": "loop", "source": "A", "target": "start"})
        doc["edges"].append({"id": "back", "source": "end", "target": "A"})
        r = client.post("/cutscenes/compile", json=doc)
        assert r.status_code == 200
        data = r.json()
        assert data["success"] is False
        assert data["error_kind"] == "structural"
        assert data["error_node_id"] == "A"


# ══════════════════════════════════════════════════════════════════
# EXPORT
# ══════════════════════════════════════════════════════════════════


class TestExportRoute:

    def test_export_envelope(self, client, doc):
        r = client.post("/cutscenes/export", json=doc)
        assert r.status_code == 200
        data = r.json()
        assert data["schema_version"] == 1
        assert data["cutscene_id"] == "intro_scene"
        assert data["settings"] == {"fps": 30}
        assert data["actions"][0] == {"type": "mark_node", "name": "Start"}

    def test_export_blocked(self, client, doc):
        doc["nodes"] = [n for n in doc["nodes"] if n["type"] != "end"]
        r = client.post("/cutscenes/export", json=doc)
        assert r.status_code == 409
        detail = r.json()["detail"]
        assert detail["errors"]
        assert all(e["severity"] == "error" for e in detail["errors"])
        assert any('no "end" node' in e["message"] for e in detail["errors"])

    def test_export_compile_failure(self, client, doc):
        doc["nodes"].append({"id": "B", "type": "dialogue", "name": "Other"})
        doc["edges"].append({"id": "e3", "source": "A", "target": "B"})
        doc["edges"].append({"id": "e4", "source": "B", "target": "end"})
        r = client.post("/cutscenes/export", json=doc)
        assert r.status_code == 422
        detail = r.json()["detail"]
        assert detail["kind"] == "structural"
        assert detail["nodeId"] == "A"

    def test_export_bad_document(self, client):
        r = client.post("/cutscenes/export", json={"schemaVersion": 2, "nodes": []})
        assert r.status_code == 400
