"""
Cutscene Graph Model - Immutable value types for authored cutscene graphs.
The external editor owns the graph; the validator and compiler only borrow
a frozen snapshot for the duration of one call.
"""

from typing import Optional, Dict, List, Any, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Reserved handle for the bookkeeping link between a fork and its join.
PAIR_HANDLE = "__pair"

FORK_OUT_PREFIX = "out_"
JOIN_IN_PREFIX = "in_"

# Node params that only tie fork and join together in the editor.
BOOKKEEPING_PARAMS = ("branches", "joinId", "pairId")

DEFAULT_PARALLEL_BRANCHES = ["b0"]


class NodeType(str, Enum):
    """Node kinds with dedicated handling. Any other string is a generic action."""
    START = "start"
    END = "end"
    BRANCH = "branch"
    PARALLEL_START = "parallel_start"
    PARALLEL_JOIN = "parallel_join"
    RUN_FUNCTION = "run_function"
    ACTOR_CREATE = "actor_create"


class IfFalsePolicy(str, Enum):
    """What a guarded transition does while its condition is false."""
    SKIP = "skip"
    WAIT_UNTIL_TRUE = "wait_until_true"


class StopWaitingWhen(str, Enum):
    """Secondary exit for a wait_until_true guard."""
    NONE = "none"
    GLOBAL_VAR = "global_var"
    NODE_REACHED = "node_reached"
    TIMEOUT = "timeout"


def _stringify(value: Any) -> str:
    """Render a comparison value the way the editor's text fields hold it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class CutsceneNode(BaseModel):
    """A single typed unit of cutscene behavior."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    type: str
    name: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return (self.name or "").strip()

    def param_str(self, key: str) -> str:
        value = self.params.get(key)
        return value if isinstance(value, str) else ""

    def branch_ids(self) -> List[str]:
        """Branch ids declared on a fork or join, in declaration order."""
        raw = self.params.get("branches")
        if not isinstance(raw, list):
            return list(DEFAULT_PARALLEL_BRANCHES)
        return [str(b) for b in raw]


class CutsceneEdge(BaseModel):
    """A directed transition, optionally delayed and/or guarded."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    # Numbers keep their authored type so an exported wait of 2 stays 2.
    wait_seconds: Optional[Union[int, float]] = Field(default=None, alias="waitSeconds")

    # Edge guard
    condition_enabled: bool = Field(default=False, alias="conditionEnabled")
    condition_var: str = Field(default="", alias="conditionVar")
    condition_equals: str = Field(default="", alias="conditionEquals")
    condition_if_false: str = Field(default=IfFalsePolicy.SKIP.value, alias="conditionIfFalse")
    stop_waiting_when: str = Field(default=StopWaitingWhen.NONE.value, alias="stopWaitingWhen")
    end_condition_var: str = Field(default="", alias="endConditionVar")
    end_condition_equals: str = Field(default="", alias="endConditionEquals")
    end_node_name: str = Field(default="", alias="endNodeName")
    end_timeout_seconds: Optional[Union[int, float]] = Field(default=None, alias="endTimeoutSeconds")

    @field_validator(
        "condition_var", "condition_equals", "end_condition_var",
        "end_condition_equals", "end_node_name",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _stringify(v)

    # None means "unset" in editor documents.
    @field_validator("condition_if_false", mode="before")
    @classmethod
    def coerce_if_false(cls, v: Any) -> str:
        if v is None:
            return IfFalsePolicy.SKIP.value
        return v.value if isinstance(v, Enum) else _stringify(v)

    @field_validator("stop_waiting_when", mode="before")
    @classmethod
    def coerce_stop_when(cls, v: Any) -> str:
        if v is None:
            return StopWaitingWhen.NONE.value
        return v.value if isinstance(v, Enum) else _stringify(v)

    @property
    def is_pair_link(self) -> bool:
        return self.source_handle == PAIR_HANDLE or self.target_handle == PAIR_HANDLE

    @property
    def has_wait(self) -> bool:
        return self.wait_seconds is not None and self.wait_seconds > 0


class CutsceneGraph(BaseModel):
    """
    Node set plus edge set. Node ids and edge ids are unique within a graph;
    everything else (start/end counts, fork pairing) is checked by the
    validator and enforced by the compiler.
    """
    model_config = ConfigDict(frozen=True)

    nodes: List[CutsceneNode] = Field(default_factory=list)
    edges: List[CutsceneEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_ids(self) -> "CutsceneGraph":
        seen: set = set()
        for n in self.nodes:
            if n.id in seen:
                raise ValueError(f"Duplicate node id '{n.id}'")
            seen.add(n.id)
        seen = set()
        for e in self.edges:
            if e.id in seen:
                raise ValueError(f"Duplicate edge id '{e.id}'")
            seen.add(e.id)
        return self

    def get_node(self, node_id: str) -> Optional[CutsceneNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None
