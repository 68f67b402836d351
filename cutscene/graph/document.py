"""
Runtime Document - Reader for the editor's versioned cutscene file.
Tolerant on purpose: malformed node/edge entries are dropped with a warning
so a half-edited scene can still be validated.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cutscene.graph.model import CutsceneGraph, CutsceneNode, CutsceneEdge

logger = logging.getLogger(__name__)

DOCUMENT_SCHEMA_VERSION = 1
DEFAULT_TITLE = "Untitled Cutscene"


class DocumentError(ValueError):
    """Raised when a runtime document cannot be turned into a graph."""


class CutsceneDocument(BaseModel):
    """Title plus graph, as saved by the editor."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_version: int = Field(default=DOCUMENT_SCHEMA_VERSION, alias="schemaVersion")
    title: str = DEFAULT_TITLE
    graph: CutsceneGraph = Field(default_factory=CutsceneGraph)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _load_nodes(raw_nodes: Any) -> List[CutsceneNode]:
    nodes: List[CutsceneNode] = []
    seen: set = set()
    if not isinstance(raw_nodes, list):
        return nodes
    for i, raw in enumerate(raw_nodes):
        if not isinstance(raw, dict) or not _is_str(raw.get("id")) or not _is_str(raw.get("type")):
            logger.warning(f"[DOCUMENT] Skipping malformed node entry #{i}")
            continue
        if raw["id"] in seen:
            logger.warning(f"[DOCUMENT] Skipping duplicate node id '{raw['id']}'")
            continue
        params = raw.get("params")
        name = raw.get("name")
        nodes.append(CutsceneNode(
            id=raw["id"],
            type=raw["type"],
            name=name if _is_str(name) else None,
            params=dict(params) if isinstance(params, dict) else {},
        ))
        seen.add(raw["id"])
    return nodes


def _load_edges(raw_edges: Any) -> List[CutsceneEdge]:
    edges: List[CutsceneEdge] = []
    seen: set = set()
    if not isinstance(raw_edges, list):
        return edges
    for i, raw in enumerate(raw_edges):
        if not isinstance(raw, dict) or not all(_is_str(raw.get(k)) for k in ("id", "source", "target")):
            logger.warning(f"[DOCUMENT] Skipping malformed edge entry #{i}")
            continue
        if raw["id"] in seen:
            logger.warning(f"[DOCUMENT] Skipping duplicate edge id '{raw['id']}'")
            continue
        # Editor handles are only meaningful as strings.
        data = {k: v for k, v in raw.items() if v is not None}
        for handle in ("sourceHandle", "targetHandle"):
            if handle in data and not _is_str(data[handle]):
                data.pop(handle)
        try:
            edges.append(CutsceneEdge.model_validate(data))
        except ValidationError as e:
            logger.warning(f"[DOCUMENT] Skipping edge '{raw['id']}': {e.error_count()} invalid field(s)")
            continue
        seen.add(raw["id"])
    return edges


def load_document(raw: Any) -> CutsceneDocument:
    """Parse an editor runtime document (already decoded JSON) into a CutsceneDocument."""
    if not isinstance(raw, dict):
        raise DocumentError("Cutscene document must be a JSON object")

    version = raw.get("schemaVersion")
    if version != DOCUMENT_SCHEMA_VERSION:
        raise DocumentError(
            f"Unsupported cutscene document schemaVersion {version!r} "
            f"(expected {DOCUMENT_SCHEMA_VERSION})"
        )

    title = raw.get("title")
    graph = CutsceneGraph(
        nodes=_load_nodes(raw.get("nodes")),
        edges=_load_edges(raw.get("edges")),
    )
    logger.debug(f"[DOCUMENT] Loaded {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return CutsceneDocument(
        schema_version=DOCUMENT_SCHEMA_VERSION,
        title=title if _is_str(title) else DEFAULT_TITLE,
        graph=graph,
    )


def read_document(path: Union[str, Path]) -> CutsceneDocument:
    """Read and parse a runtime document from disk."""
    path = Path(path)
    try:
        raw: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise DocumentError(f"{path}: not valid UTF-8 (byte {e.start})") from e
    except json.JSONDecodeError as e:
        raise DocumentError(f"{path}: invalid JSON ({e.msg} at line {e.lineno})") from e
    return load_document(raw)
