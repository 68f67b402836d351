"""Graph Compiler - compile authored cutscene graphs into the engine's flat action list"""
from .compiler import GraphCompiler, CompilationResult, compile_graph
from .errors import CompileError, StructuralError, ReferentialError, CycleError

__all__ = [
    "GraphCompiler",
    "CompilationResult",
    "compile_graph",
    "CompileError",
    "StructuralError",
    "ReferentialError",
    "CycleError",
]
