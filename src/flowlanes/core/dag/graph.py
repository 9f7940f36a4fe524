# src/flowlanes/core/dag/graph.py
"""FlowGraph class: validation, ordering, and index construction.

Uses NetworkX for graph operations including:
- Acyclicity validation and cycle reporting
- Topological sorting (reachability is filled in reverse order)
- Topological generations (layering for depth-based placement)

The decomposition algorithm itself lives in decomposer.py and only reads
the FlowIndex built here.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

import networkx as nx
import structlog
from networkx import DiGraph

from flowlanes.contracts.types import NodeID
from flowlanes.core.dag.models import (
    CycleDetectedError,
    FlowIndex,
    GraphNode,
    MalformedGraphError,
)

logger = structlog.get_logger(__name__)


class FlowGraph:
    """Flow graph built from an ordered node list.

    Wraps a NetworkX DiGraph with domain-specific operations. The input
    GraphNode objects are kept alongside the NetworkX graph so successor
    order (which fixes lane order) is never lost.
    """

    def __init__(self) -> None:
        self._graph: DiGraph[str] = nx.DiGraph()
        self._nodes: dict[NodeID, GraphNode] = {}

    @classmethod
    def from_nodes(cls, nodes: Iterable[GraphNode]) -> FlowGraph:
        """Build and validate a graph from a node list.

        Args:
            nodes: Nodes in input order

        Returns:
            A FlowGraph containing every node and edge

        Raises:
            MalformedGraphError: If node ids repeat or a successor names no node
        """
        graph = cls()
        for node in nodes:
            if node.node_id in graph._nodes:
                raise MalformedGraphError(f"Duplicate node id: '{node.node_id}'", node_ids=[node.node_id])
            graph._nodes[node.node_id] = node
            graph._graph.add_node(node.node_id)

        for node in graph._nodes.values():
            for next_id in node.next_ids:
                if next_id not in graph._nodes:
                    raise MalformedGraphError(
                        f"Node '{node.node_id}' points to unknown node '{next_id}'",
                        node_ids=[node.node_id, next_id],
                    )
                graph._graph.add_edge(node.node_id, next_id)

        return graph

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Number of edges in the graph."""
        return self._graph.number_of_edges()

    def in_degrees(self) -> dict[NodeID, int]:
        """Count distinct predecessors per node.

        Nodes that never appear as a successor get no entry.
        """
        counts = Counter(next_id for node in self._nodes.values() for next_id in node.next_ids)
        return dict(counts)

    def get_sources(self) -> list[NodeID]:
        """Nodes with in-degree zero, in input order."""
        degrees = self.in_degrees()
        return [node_id for node_id in self._nodes if node_id not in degrees]

    def get_sinks(self) -> list[NodeID]:
        """Nodes with no successors, in input order."""
        return [node_id for node_id, node in self._nodes.items() if not node.next_ids]

    def is_acyclic(self) -> bool:
        """Check if the graph is acyclic (a valid DAG)."""
        return nx.is_directed_acyclic_graph(self._graph)

    def validate_acyclic(self) -> None:
        """Raise if the graph contains a cycle (self-loops included).

        Raises:
            CycleDetectedError: Naming one offending cycle
        """
        if not self.is_acyclic():
            raise self._cycle_error("Graph contains a cycle")

    def _cycle_error(self, prefix: str) -> CycleDetectedError:
        try:
            cycle = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            return CycleDetectedError(prefix)
        members = [str(edge[0]) for edge in cycle]
        cycle_str = " -> ".join([*members, members[0]])
        logger.warning("graph_has_cycles", cycle=members)
        return CycleDetectedError(f"{prefix}: {cycle_str}", node_ids=members)

    def topological_order(self) -> list[NodeID]:
        """Return nodes so that every edge points forward.

        Raises:
            CycleDetectedError: If graph has cycles
        """
        self.validate_acyclic()
        return [NodeID(node_id) for node_id in nx.topological_sort(self._graph)]

    def topological_layers(self) -> list[list[NodeID]]:
        """Group nodes into layers; each node's predecessors sit in earlier layers.

        The first layer holds every source. Within a layer, nodes keep their
        input order so the output is stable across runs.

        Raises:
            CycleDetectedError: If some node can never be assigned a layer
        """
        position = {node_id: index for index, node_id in enumerate(self._nodes)}
        try:
            generations = list(nx.topological_generations(self._graph))
        except nx.NetworkXUnfeasible as e:
            raise self._cycle_error("Graph has cycles") from e
        return [sorted((NodeID(node_id) for node_id in layer), key=position.__getitem__) for layer in generations]

    def reachability(self) -> dict[NodeID, frozenset[NodeID]]:
        """Transitive successors of every node.

        Nodes are processed in reverse topological order, so each
        successor's set is complete before its predecessors read it.

        Raises:
            CycleDetectedError: If graph has cycles
        """
        reachable: dict[NodeID, frozenset[NodeID]] = {}
        for node_id in reversed(self.topological_order()):
            acc: set[NodeID] = set()
            for next_id in self._nodes[node_id].next_ids:
                acc.add(next_id)
                acc.update(reachable[next_id])
            reachable[node_id] = frozenset(acc)
        return reachable

    def build_index(self) -> FlowIndex:
        """Precompute the read-only lookups used by decomposition.

        Raises:
            CycleDetectedError: If graph has cycles
        """
        return FlowIndex(
            successors={node_id: node.next_ids for node_id, node in self._nodes.items()},
            reachability=self.reachability(),
            in_degrees=self.in_degrees(),
            sources=tuple(self.get_sources()),
        )

    def __repr__(self) -> str:
        return f"FlowGraph(nodes={self.node_count}, edges={self.edge_count})"


def build_flow_index(nodes: Iterable[GraphNode]) -> FlowIndex:
    """Build reachability and in-degree lookups for a node list.

    Raises:
        MalformedGraphError: If the node list is structurally broken
        CycleDetectedError: If the graph has cycles
    """
    return FlowGraph.from_nodes(nodes).build_index()


def topological_layers(nodes: Iterable[GraphNode]) -> list[list[NodeID]]:
    """Layer a node list for depth-based placement.

    Raises:
        MalformedGraphError: If the node list is structurally broken
        CycleDetectedError: If the graph has cycles
    """
    return FlowGraph.from_nodes(nodes).topological_layers()
