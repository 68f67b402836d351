from typing import Optional


class CompileError(Exception):
    """Base compile error. Names the graph element the engine author must fix."""

    kind = "compile"

    def __init__(self, message: str, *, node_id: Optional[str] = None, edge_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.node_id = node_id
        self.edge_id = edge_id


class StructuralError(CompileError):
    """The graph shape cannot be linearized (start/end, ambiguous flow, broken lanes)."""

    kind = "structural"


class ReferentialError(StructuralError):
    """An edge endpoint or fork linkage points at a node that does not exist."""

    kind = "referential"


class CycleError(CompileError):
    """A node was re-entered on the current walk path."""

    kind = "cycle"

    def __init__(self, node_id: str, *, context: str = ""):
        where = f" {context}" if context else ""
        super().__init__(
            f'Cycle detected at node "{node_id}"{where}. Cycles are not allowed.',
            node_id=node_id,
        )
