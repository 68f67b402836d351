"""Graph Validator - advisory static analysis of cutscene graphs"""
from .validator import GraphValidator, Diagnostic, Severity, ValidationResult, validate_graph
from .rules import REQUIRED_PARAMS

__all__ = [
    "GraphValidator",
    "Diagnostic",
    "Severity",
    "ValidationResult",
    "validate_graph",
    "REQUIRED_PARAMS",
]
