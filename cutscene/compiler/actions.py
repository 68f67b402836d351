"""
Action builders - translate nodes and edge transitions into engine action records.
Actions are open dicts `{"type": ..., **fields}` so unknown node kinds pass
through unchanged.
"""

import copy
import json
from typing import Dict, List, Any, Union

from cutscene.graph.model import (
    CutsceneNode, CutsceneEdge, NodeType, IfFalsePolicy, StopWaitingWhen,
    BOOKKEEPING_PARAMS,
)

Action = Dict[str, Any]

RUN_FUNCTION_KEYS = ("function_name", "function", "args")


def mark_node_action(name: str) -> Action:
    return {"type": "mark_node", "name": name}


def wait_action(seconds: Union[int, float]) -> Action:
    return {"type": "wait", "seconds": seconds}


def _parse_args(raw: Any) -> Any:
    """run_function args: list as-is, JSON text parsed, anything else dropped (None)."""
    if isinstance(raw, list):
        return copy.deepcopy(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    return parsed if isinstance(parsed, list) else [parsed]


def node_to_action(node: CutsceneNode) -> Action:
    """Copy a node's params into an action, dropping empty values and fork/join linkage."""
    action: Action = {"type": node.type}

    if node.type == NodeType.RUN_FUNCTION:
        # Engine key is `function`; older scenes saved `function_name`.
        fn = node.param_str("function_name") or node.param_str("function")
        if fn:
            action["function"] = fn
        args = _parse_args(node.params.get("args"))
        if args is not None:
            action["args"] = args

    for key, value in node.params.items():
        if key in BOOKKEEPING_PARAMS:
            continue
        if node.type == NodeType.RUN_FUNCTION and key in RUN_FUNCTION_KEYS:
            continue
        if value is None or value == "":
            continue
        action[key] = copy.deepcopy(value)

    return action


def _strip_prefix(name: str, prefix: str) -> str:
    if prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


def wrap_with_guard(edge: CutsceneEdge, inner: List[Action], global_prefix: str) -> List[Action]:
    """
    Wrap `inner` in a guard_global action when the edge guard is enabled.
    The engine evaluates the guard at runtime; `skip` drops the inner actions
    when false, `wait_until_true` blocks until true or until the stop condition.
    """
    if not edge.condition_enabled:
        return inner

    var_name = _strip_prefix(edge.condition_var.strip(), global_prefix)
    if not var_name:
        return inner

    if_false = edge.condition_if_false or IfFalsePolicy.SKIP.value
    guard: Action = {
        "type": "guard_global",
        "var": var_name,
        "equals": edge.condition_equals,
        "if_false": if_false,
        "actions": inner,
    }

    if if_false == IfFalsePolicy.WAIT_UNTIL_TRUE:
        stop_when = edge.stop_waiting_when or StopWaitingWhen.NONE.value
        guard["stop_when"] = stop_when

        if stop_when == StopWaitingWhen.GLOBAL_VAR:
            end_var = _strip_prefix(edge.end_condition_var.strip(), global_prefix)
            if end_var:
                guard["end_var"] = end_var
                guard["end_equals"] = edge.end_condition_equals
        elif stop_when == StopWaitingWhen.NODE_REACHED:
            node_name = edge.end_node_name.strip()
            if node_name:
                guard["end_node"] = node_name
        elif stop_when == StopWaitingWhen.TIMEOUT:
            if edge.end_timeout_seconds is not None and edge.end_timeout_seconds > 0:
                guard["end_timeout"] = edge.end_timeout_seconds

    return [guard]
