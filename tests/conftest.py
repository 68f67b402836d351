"""
Shared fixtures for the cutscene toolkit test suite.
"""
import sys
import os
import pytest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


class GraphBuilder:
    """Small helper for assembling graphs in tests. Edge ids are generated."""

    def __init__(self):
        self.nodes = []
        self.edges = []

    def node(self, node_id, node_type="dialogue", name=None, **params):
        from cutscene.graph.model import CutsceneNode
        self.nodes.append(CutsceneNode(id=node_id, type=node_type, name=name, params=params))
        return self

    def edge(self, source, target, edge_id=None, **fields):
        from cutscene.graph.model import CutsceneEdge
        edge_id = edge_id or f"e{len(self.edges) + 1}"
        self.edges.append(CutsceneEdge(id=edge_id, source=source, target=target, **fields))
        return self

    def build(self):
        from cutscene.graph.model import CutsceneGraph
        return CutsceneGraph(nodes=self.nodes, edges=self.edges)


@pytest.fixture
def gb():
    """Fresh GraphBuilder."""
    return GraphBuilder()


@pytest.fixture
def settings():
    """Default Settings instance, independent of the module-level one."""
    from cutscene.config.settings import Settings
    return Settings()


@pytest.fixture
def linear_graph(gb):
    """start -> A -> end, all nodes named."""
    return (
        gb.node("start", "start", name="Start")
        .node("A", "dialogue", name="Talk", text="Hello")
        .node("end", "end", name="End")
        .edge("start", "A")
        .edge("A", "end")
        .build()
    )


@pytest.fixture
def branch_graph(gb):
    """start -> B(branch); true -> X -> end, false -> Y -> end."""
    return (
        gb.node("start", "start", name="Start")
        .node("B", "branch", name="Check", condition="has_key")
        .node("X", "dialogue", name="Open", text="open")
        .node("Y", "dialogue", name="Locked", text="locked")
        .node("end", "end", name="End")
        .edge("start", "B")
        .edge("B", "X", source_handle="out_true")
        .edge("B", "Y", source_handle="out_false")
        .edge("X", "end")
        .edge("Y", "end")
        .build()
    )


@pytest.fixture
def parallel_graph(gb):
    """start -> P(fork b0,b1); b0: A, b1: B; join J -> C -> end. Includes the pair link."""
    return (
        gb.node("start", "start", name="Start")
        .node("P", "parallel_start", name="Fork", branches=["b0", "b1"], joinId="J")
        .node("A", "move", name="Walk", target="hero", x=10)
        .node("B", "camera_pan", name="Pan", x=5, y=7)
        .node("J", "parallel_join", name="Join", branches=["b0", "b1"], pairId="P")
        .node("C", "dialogue", name="After", text="done")
        .node("end", "end", name="End")
        .edge("start", "P")
        .edge("P", "J", edge_id="pair", source_handle="__pair", target_handle="__pair")
        .edge("P", "A", source_handle="out_b0")
        .edge("P", "B", source_handle="out_b1")
        .edge("A", "J", target_handle="in_b0")
        .edge("B", "J", target_handle="in_b1")
        .edge("J", "C")
        .edge("C", "end")
        .build()
    )


@pytest.fixture
def runtime_document():
    """Editor runtime document (schemaVersion 1) for start -> A (2.5s wait) -> end."""
    return {
        "schemaVersion": 1,
        "title": "Intro Scene",
        "nodes": [
            {"id": "start", "type": "start", "name": "Start", "position": {"x": 0, "y": 0}},
            {"id": "A", "type": "dialogue", "name": "Talk", "params": {"text": "Hello"}},
            {"id": "end", "type": "end", "name": "End"},
        ],
        "edges": [
            {"id": "e1", "source": "start", "target": "A", "waitSeconds": 2.5},
            {"id": "e2", "source": "A", "target": "end"},
        ],
    }
