"""
Graph Compiler - Compiles an authored cutscene graph into the flat action list
consumed by the engine.

Compilation walk:
1. Precondition check (exactly one start, at least one end)
2. Linear walk from start, one node at a time, following single transitions
3. Branch nodes compile each side recursively into true/false sub-lists
4. Parallel forks compile every lane linearly up to the paired join, then
   the walk resumes after the join
5. Edge waits become `wait` actions; enabled edge guards wrap only the wait

Fail-fast: the first structural problem or cycle aborts compilation, since a
partial action list is unsafe to hand to the engine.
"""

import logging
import time
from enum import Enum
from typing import Optional, List, Set
from pydantic import BaseModel, Field

from cutscene.config.settings import Settings, settings as default_settings
from cutscene.graph.index import GraphIndex
from cutscene.graph.model import CutsceneGraph, CutsceneNode, CutsceneEdge, NodeType, FORK_OUT_PREFIX
from cutscene.compiler.actions import (
    Action, mark_node_action, node_to_action, wait_action, wrap_with_guard,
)
from cutscene.compiler.errors import CompileError, StructuralError, ReferentialError, CycleError

logger = logging.getLogger(__name__)


class NodeShape(str, Enum):
    """Control-flow role of a node during compilation."""
    TERMINAL = "terminal"
    LINEAR = "linear"
    BRANCH = "branch"
    FORK = "fork"
    JOIN = "join"


def shape_of(node: CutsceneNode) -> NodeShape:
    if node.type in (NodeType.START, NodeType.END):
        return NodeShape.TERMINAL
    if node.type == NodeType.BRANCH:
        return NodeShape.BRANCH
    if node.type == NodeType.PARALLEL_START:
        return NodeShape.FORK
    if node.type == NodeType.PARALLEL_JOIN:
        return NodeShape.JOIN
    return NodeShape.LINEAR


class CompilationResult(BaseModel):
    """Result of compiling a cutscene graph."""
    success: bool = False
    node_count: int = 0
    edge_count: int = 0
    action_count: int = 0
    compilation_time_ms: float = 0.0
    actions: List[Action] = Field(default_factory=list)
    error: str = ""
    error_kind: str = ""
    error_node_id: Optional[str] = None
    error_edge_id: Optional[str] = None


class _Walk:
    """State of one compilation: the borrowed graph index and the current DFS path."""

    def __init__(self, index: GraphIndex, config: Settings):
        self._index = index
        self._prefix = config.global_var_prefix
        self._mark_nodes = config.mark_named_nodes
        self._path: Set[str] = set()

    def run(self) -> List[Action]:
        starts = self._index.of_type(NodeType.START)
        if not starts:
            raise StructuralError('No "start" node found in the graph.')
        if len(starts) > 1:
            ids = ", ".join(f'"{n.id}"' for n in starts)
            raise StructuralError(f'Graph has {len(starts)} "start" nodes ({ids}); exactly 1 is required.')
        if not self._index.of_type(NodeType.END):
            raise StructuralError('No "end" node found in the graph.')
        return self._sequence(starts[0].id)

    # ── Path bookkeeping ──────────────────────────────────────────────

    def _enter(self, node_id: str, entered: List[str], context: str = "") -> CutsceneNode:
        if node_id in self._path:
            raise CycleError(node_id, context=context)
        if not self._index.has_node(node_id):
            raise ReferentialError(f'Node "{node_id}" not found.', node_id=node_id)
        self._path.add(node_id)
        entered.append(node_id)
        return self._index.node(node_id)

    def _leave(self, entered: List[str]) -> None:
        for node_id in entered:
            self._path.discard(node_id)

    def _mark(self, node: CutsceneNode, actions: List[Action]) -> None:
        if self._mark_nodes and node.display_name:
            actions.append(mark_node_action(node.display_name))

    # ── Transitions ───────────────────────────────────────────────────

    def _edge_actions(self, edge: CutsceneEdge) -> List[Action]:
        """Actions contributed by the edge itself; the guard covers only the wait."""
        if not self._index.has_node(edge.target):
            raise ReferentialError(
                f'Edge "{edge.id}" references target "{edge.target}" which does not exist.',
                edge_id=edge.id,
            )
        if not edge.has_wait:
            return []
        return wrap_with_guard(edge, [wait_action(edge.wait_seconds)], self._prefix)

    def _transition(self, node: CutsceneNode, actions: List[Action]) -> Optional[str]:
        """Follow the node's single successor edge. Returns the next node id, or None."""
        outs = self._index.out_edges(node.id)
        if not outs:
            return None
        if len(outs) > 1:
            raise StructuralError(
                f'Node "{node.id}" has {len(outs)} outgoing edges. '
                f'Only parallel_start and branch can have multiple outputs.',
                node_id=node.id,
            )
        edge = outs[0]
        actions.extend(self._edge_actions(edge))
        return edge.target

    # ── Sequences ─────────────────────────────────────────────────────

    def _sequence(self, node_id: str) -> List[Action]:
        actions: List[Action] = []
        entered: List[str] = []
        current: Optional[str] = node_id

        while current is not None:
            node = self._enter(current, entered)
            shape = shape_of(node)
            if shape != NodeShape.JOIN:
                self._mark(node, actions)

            if shape == NodeShape.TERMINAL:
                if node.type == NodeType.END:
                    break
                current = self._transition(node, actions)
            elif shape == NodeShape.LINEAR:
                actions.append(node_to_action(node))
                current = self._transition(node, actions)
            elif shape == NodeShape.BRANCH:
                actions.append(self._branch(node))
                break
            elif shape == NodeShape.FORK:
                parallel, join = self._parallel(node)
                actions.append(parallel)
                self._enter(join.id, entered)
                current = self._transition(join, actions)
            elif shape == NodeShape.JOIN:
                logger.debug(f'[COMPILER] parallel_join "{node.id}" reached outside its fork; sequence ends')
                break

        self._leave(entered)
        return actions

    # ── Branch ────────────────────────────────────────────────────────

    def _branch(self, node: CutsceneNode) -> Action:
        outs = self._index.out_edges(node.id)
        if len(outs) > 2:
            raise StructuralError(
                f'Branch "{node.id}" has {len(outs)} outgoing edges; expected at most 2 (true/false).',
                node_id=node.id,
            )

        true_edges = [e for e in outs if e.source_handle == "out_true"]
        false_edges = [e for e in outs if e.source_handle == "out_false"]
        if len(true_edges) > 1 or len(false_edges) > 1:
            raise StructuralError(
                f'Branch "{node.id}" has more than one edge on the same output.',
                node_id=node.id,
            )

        # Edges without a true/false handle fill the missing sides in order.
        unlabeled = [e for e in outs if e.source_handle not in ("out_true", "out_false")]
        true_edge = true_edges[0] if true_edges else (unlabeled.pop(0) if unlabeled else None)
        false_edge = false_edges[0] if false_edges else (unlabeled.pop(0) if unlabeled else None)

        return {
            "type": "branch",
            "condition": node.param_str("condition"),
            "true_actions": self._branch_side(true_edge),
            "false_actions": self._branch_side(false_edge),
        }

    def _branch_side(self, edge: Optional[CutsceneEdge]) -> List[Action]:
        if edge is None:
            return []
        actions = self._edge_actions(edge)
        actions.extend(self._sequence(edge.target))
        return actions

    # ── Parallel ──────────────────────────────────────────────────────

    def _parallel(self, node: CutsceneNode):
        join_id = node.param_str("joinId")
        if not join_id:
            raise StructuralError(
                f'parallel_start "{node.id}" has no joinId; cannot find its parallel_join.',
                node_id=node.id,
            )
        if not self._index.has_node(join_id):
            raise ReferentialError(
                f'parallel_start "{node.id}" references joinId "{join_id}" which does not exist.',
                node_id=node.id,
            )
        join = self._index.node(join_id)
        if join.type != NodeType.PARALLEL_JOIN:
            raise StructuralError(
                f'parallel_start "{node.id}" joinId "{join_id}" is not a parallel_join node.',
                node_id=node.id,
            )

        outs = self._index.out_edges(node.id)
        lanes: list = []
        for branch_id in dict.fromkeys(node.branch_ids()):
            edge = next((e for e in outs if e.source_handle == f"{FORK_OUT_PREFIX}{branch_id}"), None)
            if edge is None:
                continue

            seq = self._edge_actions(edge)
            seq.extend(self._lane(edge.target, join_id, node.id))
            if not seq:
                continue

            # Without a wait to hang the guard on, the guard gates the whole lane.
            if edge.condition_enabled and not edge.has_wait:
                gated = wrap_with_guard(edge, seq, self._prefix)
                if gated is not seq:
                    lanes.append(gated[0])
                    continue

            lanes.append(seq[0] if len(seq) == 1 else seq)

        return {"type": "parallel", "actions": lanes}, join

    def _lane(self, node_id: str, join_id: str, fork_id: str) -> List[Action]:
        """Walk one parallel lane until the join. Lanes must be linear and must reach it."""
        actions: List[Action] = []
        entered: List[str] = []
        current = node_id

        while current != join_id:
            node = self._enter(current, entered, context="inside parallel branch")
            shape = shape_of(node)
            if shape in (NodeShape.BRANCH, NodeShape.FORK):
                raise StructuralError(
                    f'Parallel branch of "{fork_id}" forks again at node "{node.id}" '
                    f'before join "{join_id}". Branches must be linear.',
                    node_id=node.id,
                )
            if shape != NodeShape.JOIN:
                self._mark(node, actions)
            if shape == NodeShape.LINEAR:
                actions.append(node_to_action(node))

            outs = self._index.out_edges(node.id)
            if not outs:
                raise StructuralError(
                    f'Parallel branch reached dead-end at node "{node.id}" before join "{join_id}".',
                    node_id=node.id,
                )
            if len(outs) > 1:
                raise StructuralError(
                    f'Parallel branch has a split at node "{node.id}" ({len(outs)} outgoing edges). '
                    f'Branches must be linear.',
                    node_id=node.id,
                )
            edge = outs[0]
            actions.extend(self._edge_actions(edge))
            current = edge.target

        self._leave(entered)
        return actions


class GraphCompiler:
    """
    Compiles a CutsceneGraph into engine actions. `compile_actions` raises
    CompileError; `compile` reports the same outcome as a CompilationResult.
    """

    def __init__(self, config: Optional[Settings] = None):
        self._settings = config or default_settings

    def compile_actions(self, graph: CutsceneGraph) -> List[Action]:
        return _Walk(GraphIndex(graph), self._settings).run()

    def compile(self, graph: CutsceneGraph) -> CompilationResult:
        start = time.time()
        result = CompilationResult(
            node_count=len(graph.nodes),
            edge_count=len(graph.edges),
        )
        try:
            result.actions = self.compile_actions(graph)
            result.action_count = len(result.actions)
            result.success = True
        except CompileError as e:
            result.error = e.message
            result.error_kind = e.kind
            result.error_node_id = e.node_id
            result.error_edge_id = e.edge_id
            logger.warning(f"[COMPILER] Compilation failed ({e.kind}): {e.message}")

        result.compilation_time_ms = round((time.time() - start) * 1000, 1)
        if result.success:
            logger.info(
                f"[COMPILER] Compiled {result.action_count} top-level action(s) from "
                f"{result.node_count} nodes in {result.compilation_time_ms}ms"
            )
        return result


def compile_graph(graph: CutsceneGraph, config: Optional[Settings] = None) -> List[Action]:
    """Compile a graph into its action list. Raises CompileError."""
    return GraphCompiler(config).compile_actions(graph)
