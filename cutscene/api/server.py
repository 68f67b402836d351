"""
Cutscene Toolkit - HTTP API
Stateless FastAPI service for editors and build tooling that cannot call the
library directly. Every request carries the full runtime document; nothing is
stored between requests.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Body
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from cutscene import __version__
from cutscene.config.settings import settings
from cutscene.graph.document import CutsceneDocument, DocumentError, load_document
from cutscene.validator.validator import validate_graph
from cutscene.compiler.compiler import GraphCompiler
from cutscene.compiler.errors import CompileError
from cutscene.exporter.exporter import SCHEMA_VERSION
from cutscene.exporter.pipeline import ExportBlockedError, export_document

logger = logging.getLogger(__name__)

_openapi_tags = [
    {"name": "System", "description": "Health check and service information"},
    {"name": "Cutscenes", "description": "Validate, compile and export cutscene documents"},
]

app = FastAPI(
    title="Cutscene Toolkit API",
    description=(
        "Validates authored cutscene graphs, compiles them into the engine's "
        "action list and wraps the result in the versioned export envelope."
    ),
    version=__version__,
    openapi_tags=_openapi_tags,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


class HealthResponse(BaseModel):
    status: str = "ok"
    schema_version: int = SCHEMA_VERSION


class InfoResponse(BaseModel):
    name: str = "cutscene-toolkit"
    version: str = __version__
    schema_version: int = SCHEMA_VERSION
    export_fps: int = 30


def _parse(raw: Dict[str, Any]) -> CutsceneDocument:
    try:
        return load_document(raw)
    except DocumentError as e:
        logger.info(f"[API] Rejected document: {e}")
        raise HTTPException(400, str(e))


# ── System ────────────────────────────────────────────────────────────

@app.get("/health", response_model=HealthResponse, tags=["System"])
def health():
    return HealthResponse()


@app.get("/info", response_model=InfoResponse, tags=["System"])
def info():
    return InfoResponse(export_fps=settings.export_fps)


# ── Cutscenes ─────────────────────────────────────────────────────────

@app.post("/cutscenes/validate", tags=["Cutscenes"])
def validate_cutscene(document: Dict[str, Any] = Body(...)):
    """Run the validator. Always 200 for a readable document; findings are in the body."""
    doc = _parse(document)
    result = validate_graph(doc.graph)
    return result.model_dump(mode="json", by_alias=True)


@app.post("/cutscenes/compile", tags=["Cutscenes"])
def compile_cutscene(document: Dict[str, Any] = Body(...)):
    """Compile without validating. A failed walk is reported in the result, not as an HTTP error."""
    doc = _parse(document)
    result = GraphCompiler().compile(doc.graph)
    return result.model_dump(mode="json")


@app.post("/cutscenes/export", tags=["Cutscenes"])
def export_cutscene_document(document: Dict[str, Any] = Body(...)):
    doc = _parse(document)
    try:
        exported = export_document(doc)
    except ExportBlockedError as e:
        raise HTTPException(409, {
            "message": f"Cannot export; graph has {len(e.errors)} error(s)",
            "errors": [d.model_dump(mode="json", by_alias=True) for d in e.errors],
        })
    except CompileError as e:
        raise HTTPException(422, {
            "message": e.message,
            "kind": e.kind,
            "nodeId": e.node_id,
            "edgeId": e.edge_id,
        })
    return exported.model_dump(mode="json")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
