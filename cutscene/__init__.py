"""
Cutscene Toolkit - validate, compile and export authored cutscene graphs
for the game engine's cutscene runtime.
"""

__version__ = "1.0.0"

from cutscene.graph import CutsceneGraph, CutsceneNode, CutsceneEdge, load_document, read_document
from cutscene.validator import validate_graph, ValidationResult, Diagnostic, Severity
from cutscene.compiler import compile_graph, CompileError, StructuralError, ReferentialError, CycleError
from cutscene.exporter import export_cutscene, export_document, ExportedCutscene, ExportBlockedError

__all__ = [
    "__version__",
    "CutsceneGraph",
    "CutsceneNode",
    "CutsceneEdge",
    "load_document",
    "read_document",
    "validate_graph",
    "ValidationResult",
    "Diagnostic",
    "Severity",
    "compile_graph",
    "CompileError",
    "StructuralError",
    "ReferentialError",
    "CycleError",
    "export_cutscene",
    "export_document",
    "ExportedCutscene",
    "ExportBlockedError",
]
