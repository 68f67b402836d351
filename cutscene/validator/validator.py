"""
Graph Validator - Static analysis of a cutscene graph before export.
Accumulates every finding into a report so the editor can show all problems
at once. Never raises and never mutates the graph.

Severity:
- error: blocks export
- warn: export still possible, result likely wrong
- tip: advisory
"""

import json
import logging
from collections import deque
from typing import Optional, Dict, List, Set
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

from cutscene.config.settings import Settings, settings as default_settings
from cutscene.graph.index import GraphIndex
from cutscene.graph.model import (
    CutsceneGraph, CutsceneNode, CutsceneEdge,
    NodeType, IfFalsePolicy, StopWaitingWhen,
    FORK_OUT_PREFIX, JOIN_IN_PREFIX,
)
from cutscene.validator.rules import REQUIRED_PARAMS, SINGLE_OUTPUT_EXEMPT

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    TIP = "tip"


class Diagnostic(BaseModel):
    """One validator finding, optionally pinned to a node or edge."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    severity: Severity
    node_id: Optional[str] = Field(default=None, alias="nodeId")
    edge_id: Optional[str] = Field(default=None, alias="edgeId")
    message: str


class ValidationResult(BaseModel):
    """Ordered diagnostics plus the export-blocking summary."""
    model_config = ConfigDict(populate_by_name=True)

    entries: List[Diagnostic] = Field(default_factory=list)
    has_errors: bool = Field(default=False, alias="hasErrors")

    def errors(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity == Severity.ERROR]

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity == Severity.WARN]

    def tips(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity == Severity.TIP]


def _is_empty(value) -> bool:
    return value is None or value == ""


class GraphValidator:
    """Runs every structural, parameter and guard check over one graph."""

    def __init__(self, config: Optional[Settings] = None):
        self._settings = config or default_settings

    def validate(self, graph: CutsceneGraph) -> ValidationResult:
        index = GraphIndex(graph)
        entries: List[Diagnostic] = []

        self._check_names(index, entries)
        starts, ends = self._check_start_end(index, entries)
        unreachable_by_construction = self._check_node_structure(index, entries)
        self._check_required_params(index, entries)
        self._check_parallel_pairs(index, entries)
        self._check_edge_references(index, entries)
        self._check_edge_guards(index, entries)
        if len(starts) == 1:
            self._check_reachability(index, starts[0], ends, unreachable_by_construction, entries)

        result = ValidationResult(
            entries=entries,
            has_errors=any(d.severity == Severity.ERROR for d in entries),
        )
        logger.debug(
            f"[VALIDATOR] {len(graph.nodes)} nodes, {len(graph.edges)} edges: "
            f"{len(result.errors())} error(s), {len(result.warnings())} warning(s), "
            f"{len(result.tips())} tip(s)"
        )
        return result

    # ── Names ─────────────────────────────────────────────────────────

    def _check_names(self, index: GraphIndex, out: List[Diagnostic]) -> None:
        name_to_ids: Dict[str, List[str]] = {}
        for n in index.graph.nodes:
            if not n.display_name:
                out.append(Diagnostic(
                    severity=Severity.TIP, node_id=n.id,
                    message=f'Node "{n.id}" ({n.type}) has empty name.',
                ))
                continue
            name_to_ids.setdefault(n.display_name, []).append(n.id)

        for name, ids in name_to_ids.items():
            if len(ids) <= 1:
                continue
            for node_id in ids:
                out.append(Diagnostic(
                    severity=Severity.TIP, node_id=node_id,
                    message=f'Node name "{name}" is used by {len(ids)} nodes ({", ".join(ids)}).',
                ))

    # ── Start / End ───────────────────────────────────────────────────

    def _check_start_end(self, index: GraphIndex, out: List[Diagnostic]):
        starts = index.of_type(NodeType.START)
        ends = index.of_type(NodeType.END)
        if not starts:
            out.append(Diagnostic(severity=Severity.ERROR, message='Graph has no "start" node.'))
        elif len(starts) > 1:
            out.append(Diagnostic(
                severity=Severity.ERROR,
                message=f'Graph has {len(starts)} "start" nodes; only 1 is allowed.',
            ))
        if not ends:
            out.append(Diagnostic(severity=Severity.ERROR, message='Graph has no "end" node.'))
        return starts, ends

    # ── Per-node structure ────────────────────────────────────────────

    def _check_node_structure(self, index: GraphIndex, out: List[Diagnostic]) -> Set[str]:
        """Edge-count rules per node. Returns ids already reported as unreachable."""
        flagged: Set[str] = set()
        for node in index.graph.nodes:
            incoming = index.in_edges(node.id)
            outgoing = index.out_edges(node.id)

            if node.type == NodeType.START:
                if incoming:
                    out.append(Diagnostic(
                        severity=Severity.WARN, node_id=node.id,
                        message=f'"start" node "{node.id}" has {len(incoming)} incoming edge(s); start should have none.',
                    ))
                if not outgoing:
                    out.append(Diagnostic(
                        severity=Severity.ERROR, node_id=node.id,
                        message=f'"start" node "{node.id}" has no outgoing edges; graph cannot proceed.',
                    ))

            if node.type == NodeType.END and outgoing:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=f'"end" node "{node.id}" has {len(outgoing)} outgoing edge(s); end should have none.',
                ))

            if node.type not in (NodeType.START, NodeType.END, NodeType.PARALLEL_JOIN):
                if not incoming and not outgoing:
                    flagged.add(node.id)
                    out.append(Diagnostic(
                        severity=Severity.WARN, node_id=node.id,
                        message=f'Node "{node.id}" ({node.type}) is disconnected; no edges at all.',
                    ))
                elif not incoming and node.type != NodeType.PARALLEL_START:
                    flagged.add(node.id)
                    out.append(Diagnostic(
                        severity=Severity.WARN, node_id=node.id,
                        message=f'Node "{node.id}" ({node.type}) has no incoming edges; unreachable from start.',
                    ))

            if node.type not in SINGLE_OUTPUT_EXEMPT and len(outgoing) > 1:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=f'Node "{node.id}" ({node.type}) has {len(outgoing)} outgoing edges; only 1 expected.',
                ))
        return flagged

    # ── Parameters ────────────────────────────────────────────────────

    def _check_required_params(self, index: GraphIndex, out: List[Diagnostic]) -> None:
        for node in index.graph.nodes:
            for field in REQUIRED_PARAMS.get(node.type, []):
                if _is_empty(node.params.get(field)):
                    out.append(Diagnostic(
                        severity=Severity.WARN, node_id=node.id,
                        message=f'Node "{node.id}" ({node.type}): required field "{field}" is empty.',
                    ))

            if node.type == NodeType.ACTOR_CREATE:
                self._check_actor_create(node, out)
            elif node.type == NodeType.BRANCH:
                if not any(e.source_handle == "out_false" for e in index.out_edges(node.id)):
                    out.append(Diagnostic(
                        severity=Severity.TIP, node_id=node.id,
                        message=f'Branch "{node.id}" has no "false" output; if condition is false, nothing will happen.',
                    ))
            elif node.type == NodeType.RUN_FUNCTION:
                self._check_run_function(node, out)

    def _check_actor_create(self, node: CutsceneNode, out: List[Diagnostic]) -> None:
        def present(value) -> bool:
            return bool(value.strip()) if isinstance(value, str) else bool(value)

        if not present(node.params.get("sprite_or_object")) and not present(node.params.get("copy_from")):
            out.append(Diagnostic(
                severity=Severity.WARN, node_id=node.id,
                message=(
                    f'Node "{node.id}" (actor_create): neither "sprite_or_object" nor "copy_from" '
                    f'is set; engine will use default object.'
                ),
            ))

    def _check_run_function(self, node: CutsceneNode, out: List[Diagnostic]) -> None:
        fn = node.param_str("function").strip() or node.param_str("function_name").strip()
        if not fn:
            out.append(Diagnostic(
                severity=Severity.WARN, node_id=node.id,
                message=f'Node "{node.id}" (run_function): required field "function" is empty.',
            ))

        raw_args = node.params.get("args")
        if isinstance(raw_args, str) and raw_args.strip():
            try:
                json.loads(raw_args)
            except ValueError:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=f'Node "{node.id}" (run_function): args is not valid JSON.',
                ))

    # ── Parallel fork / join pairing ──────────────────────────────────

    def _check_parallel_pairs(self, index: GraphIndex, out: List[Diagnostic]) -> None:
        for node in index.graph.nodes:
            if node.type == NodeType.PARALLEL_START:
                self._check_fork(index, node, out)
            elif node.type == NodeType.PARALLEL_JOIN:
                self._check_join(index, node, out)

    def _check_fork(self, index: GraphIndex, node: CutsceneNode, out: List[Diagnostic]) -> None:
        join_id = node.param_str("joinId")
        if not join_id:
            out.append(Diagnostic(
                severity=Severity.ERROR, node_id=node.id,
                message=f'parallel_start "{node.id}" has no joinId; missing parallel_join pair.',
            ))
        elif not index.has_node(join_id):
            out.append(Diagnostic(
                severity=Severity.ERROR, node_id=node.id,
                message=f'parallel_start "{node.id}" references joinId "{join_id}" which does not exist.',
            ))
        elif index.node(join_id).type != NodeType.PARALLEL_JOIN:
            out.append(Diagnostic(
                severity=Severity.ERROR, node_id=node.id,
                message=(
                    f'parallel_start "{node.id}" references joinId "{join_id}" which is a '
                    f'"{index.node(join_id).type}" node, not parallel_join.'
                ),
            ))

        self._check_branch_handles(
            node, index.out_edges(node.id), out,
            kind="parallel_start", prefix=FORK_OUT_PREFIX,
            handle_of=lambda e: e.source_handle,
            handle_label="sourceHandle", direction="outgoing",
        )

    def _check_join(self, index: GraphIndex, node: CutsceneNode, out: List[Diagnostic]) -> None:
        pair_id = node.param_str("pairId")
        if not pair_id:
            out.append(Diagnostic(
                severity=Severity.WARN, node_id=node.id,
                message=f'parallel_join "{node.id}" has no pairId; orphaned join node.',
            ))
        elif not index.has_node(pair_id):
            out.append(Diagnostic(
                severity=Severity.ERROR, node_id=node.id,
                message=f'parallel_join "{node.id}" references pairId "{pair_id}" which does not exist.',
            ))
        else:
            fork = index.node(pair_id)
            if fork.type != NodeType.PARALLEL_START or fork.param_str("joinId") != node.id:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=f'parallel_join "{node.id}" pairId "{pair_id}" does not point back to this join.',
                ))
            elif set(fork.branch_ids()) != set(node.branch_ids()):
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=(
                        f'parallel_join "{node.id}" declares branches {sorted(set(node.branch_ids()))} '
                        f'but parallel_start "{pair_id}" declares {sorted(set(fork.branch_ids()))}.'
                    ),
                ))

        self._check_branch_handles(
            node, index.in_edges(node.id), out,
            kind="parallel_join", prefix=JOIN_IN_PREFIX,
            handle_of=lambda e: e.target_handle,
            handle_label="targetHandle", direction="incoming",
        )

    def _check_branch_handles(
        self,
        node: CutsceneNode,
        edges: List[CutsceneEdge],
        out: List[Diagnostic],
        *,
        kind: str,
        prefix: str,
        handle_of,
        handle_label: str,
        direction: str,
    ) -> None:
        """Every lane edge must name a declared branch; every declared branch needs one edge."""
        branches = node.branch_ids()
        declared = list(dict.fromkeys(branches))
        if len(declared) != len(branches):
            out.append(Diagnostic(
                severity=Severity.WARN, node_id=node.id,
                message=f'{kind} "{node.id}" has duplicate branch ids in params.branches.',
            ))

        counts: Dict[str, int] = {}
        for edge in edges:
            handle = handle_of(edge)
            if not handle:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id, edge_id=edge.id,
                    message=f'{kind} "{node.id}" has edge "{edge.id}" without {handle_label}.',
                ))
                continue
            if not handle.startswith(prefix):
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id, edge_id=edge.id,
                    message=f'{kind} "{node.id}" has edge "{edge.id}" with unexpected {handle_label} "{handle}".',
                ))
                continue
            branch_id = handle[len(prefix):]
            counts[branch_id] = counts.get(branch_id, 0) + 1
            if branch_id not in declared:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id, edge_id=edge.id,
                    message=(
                        f'{kind} "{node.id}" has edge "{edge.id}" for branch "{branch_id}" '
                        f'not listed in params.branches.'
                    ),
                ))

        for branch_id in declared:
            count = counts.get(branch_id, 0)
            if count == 0:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=f'{kind} "{node.id}" has branch "{branch_id}" without {direction} edge.',
                ))
            elif count > 1:
                out.append(Diagnostic(
                    severity=Severity.WARN, node_id=node.id,
                    message=f'{kind} "{node.id}" has {count} {direction} edges for branch "{branch_id}"; expected 1.',
                ))

    # ── Edges ─────────────────────────────────────────────────────────

    def _check_edge_references(self, index: GraphIndex, out: List[Diagnostic]) -> None:
        for edge in index.graph.edges:
            if not index.has_node(edge.source):
                out.append(Diagnostic(
                    severity=Severity.ERROR, edge_id=edge.id,
                    message=f'Edge "{edge.id}" references source "{edge.source}" which does not exist.',
                ))
            if not index.has_node(edge.target):
                out.append(Diagnostic(
                    severity=Severity.ERROR, edge_id=edge.id,
                    message=f'Edge "{edge.id}" references target "{edge.target}" which does not exist.',
                ))
            if edge.wait_seconds is not None and edge.wait_seconds < 0:
                out.append(Diagnostic(
                    severity=Severity.WARN, edge_id=edge.id,
                    message=f'Edge "{edge.id}" has negative waitSeconds ({edge.wait_seconds:g}).',
                ))

    def _check_edge_guards(self, index: GraphIndex, out: List[Diagnostic]) -> None:
        prefix = self._settings.global_var_prefix

        def warn(edge: CutsceneEdge, text: str) -> None:
            out.append(Diagnostic(severity=Severity.WARN, edge_id=edge.id, message=f'Edge "{edge.id}": {text}'))

        for edge in index.graph.edges:
            if not edge.condition_enabled:
                continue

            var_name = edge.condition_var.strip()
            if not var_name:
                warn(edge, "Condition is enabled, but Variable is empty.")
            elif prefix and var_name.startswith(prefix):
                warn(edge, f'Variable should be without "{prefix}" prefix (write just the key).')

            if not edge.condition_equals.strip():
                warn(edge, "Condition is enabled, but Equals is empty.")

            policies = [p.value for p in IfFalsePolicy]
            if edge.condition_if_false not in policies:
                warn(edge, f'Unknown "if false" policy "{edge.condition_if_false}" (expected one of {policies}).')
                continue
            if edge.condition_if_false != IfFalsePolicy.WAIT_UNTIL_TRUE:
                continue

            stop_when = edge.stop_waiting_when
            if stop_when == StopWaitingWhen.GLOBAL_VAR:
                end_var = edge.end_condition_var.strip()
                if not end_var:
                    warn(edge, 'Stop-waiting "global_var" is set, but End Variable is empty.')
                elif prefix and end_var.startswith(prefix):
                    warn(edge, f'End Variable should be without "{prefix}" prefix.')
                if not edge.end_condition_equals.strip():
                    warn(edge, 'Stop-waiting "global_var" is set, but End Equals is empty.')
            elif stop_when == StopWaitingWhen.NODE_REACHED:
                node_name = edge.end_node_name.strip()
                if not node_name:
                    warn(edge, 'Stop-waiting "node_reached" is set, but Node name is empty.')
                elif node_name not in index.names:
                    warn(edge, f'Stop-waiting node "{node_name}" not found in graph.')
            elif stop_when == StopWaitingWhen.TIMEOUT:
                t = edge.end_timeout_seconds
                if t is None or t <= 0:
                    warn(edge, 'Stop-waiting "timeout" is set, but Timeout is empty or zero.')
            elif stop_when != StopWaitingWhen.NONE:
                warn(edge, f'Unknown stop-waiting condition "{stop_when}".')

    # ── Reachability ──────────────────────────────────────────────────

    def _check_reachability(
        self,
        index: GraphIndex,
        start: CutsceneNode,
        ends: List[CutsceneNode],
        already_flagged: Set[str],
        out: List[Diagnostic],
    ) -> None:
        reachable: Set[str] = {start.id}
        queue = deque([start.id])
        while queue:
            current = queue.popleft()
            for e in index.out_edges(current):
                if e.target not in reachable:
                    reachable.add(e.target)
                    queue.append(e.target)

        for n in index.graph.nodes:
            if n.id in reachable or n.id in already_flagged:
                continue
            out.append(Diagnostic(
                severity=Severity.WARN, node_id=n.id,
                message=f'Node "{n.id}" ({n.type}) is unreachable from start.',
            ))

        if ends and not any(n.id in reachable for n in ends):
            out.append(Diagnostic(
                severity=Severity.ERROR,
                message='No "end" node is reachable from "start"; graph has no valid path to completion.',
            ))


def validate_graph(graph: CutsceneGraph, config: Optional[Settings] = None) -> ValidationResult:
    """Validate a graph with the default (or given) settings."""
    return GraphValidator(config).validate(graph)
