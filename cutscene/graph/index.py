"""
Graph Index - One-pass adjacency maps shared by the validator and the compiler.
"""

from typing import Dict, List, Set

from cutscene.graph.model import CutsceneGraph, CutsceneNode, CutsceneEdge


class GraphIndex:
    """
    Lookup tables over a borrowed graph. `outgoing`/`incoming` skip fork/join
    pair links. Lists keep edge order.
    """

    def __init__(self, graph: CutsceneGraph):
        self.graph = graph
        self.nodes_by_id: Dict[str, CutsceneNode] = {}
        self.outgoing: Dict[str, List[CutsceneEdge]] = {}
        self.incoming: Dict[str, List[CutsceneEdge]] = {}
        self.names: Set[str] = set()

        for n in graph.nodes:
            self.nodes_by_id[n.id] = n
            if n.display_name:
                self.names.add(n.display_name)

        for e in graph.edges:
            if e.is_pair_link:
                continue
            self.outgoing.setdefault(e.source, []).append(e)
            self.incoming.setdefault(e.target, []).append(e)

    def node(self, node_id: str) -> CutsceneNode:
        return self.nodes_by_id[node_id]

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes_by_id

    def out_edges(self, node_id: str) -> List[CutsceneEdge]:
        return self.outgoing.get(node_id, [])

    def in_edges(self, node_id: str) -> List[CutsceneEdge]:
        return self.incoming.get(node_id, [])

    def of_type(self, node_type: str) -> List[CutsceneNode]:
        return [n for n in self.graph.nodes if n.type == node_type]
