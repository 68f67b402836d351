"""Cutscene Graph - immutable node/edge model, adjacency index and document reader"""
from .model import (
    CutsceneNode,
    CutsceneEdge,
    CutsceneGraph,
    NodeType,
    IfFalsePolicy,
    StopWaitingWhen,
    PAIR_HANDLE,
)
from .index import GraphIndex
from .document import CutsceneDocument, DocumentError, load_document, read_document

__all__ = [
    "CutsceneNode",
    "CutsceneEdge",
    "CutsceneGraph",
    "NodeType",
    "IfFalsePolicy",
    "StopWaitingWhen",
    "PAIR_HANDLE",
    "GraphIndex",
    "CutsceneDocument",
    "DocumentError",
    "load_document",
    "read_document",
]
