# src/flowlanes/core/dag/models.py
"""Types and exceptions for flow graph operations.

Leaf module: no intra-package imports beyond contracts (prevents import
cycles between graph.py and decomposer.py).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from flowlanes.contracts.enums import FailureCause
from flowlanes.contracts.types import NodeID


class GraphValidationError(ValueError):
    """Raised when a graph cannot be decomposed.

    Every failure is fatal for the call that raised it: the input graph is
    fixed, so retrying changes nothing, and no partial structure is ever
    returned. Callers that only need "did it work" catch this class and
    read ``cause``.

    Attributes:
        cause: Machine-readable failure tag
        node_ids: Nodes implicated in the failure (may be empty)
    """

    cause: FailureCause = FailureCause.MALFORMED_GRAPH

    def __init__(self, message: str, *, node_ids: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.node_ids: tuple[str, ...] = tuple(node_ids)


class MalformedGraphError(GraphValidationError):
    """Node list is structurally broken (duplicate ids, dangling successors)."""

    cause = FailureCause.MALFORMED_GRAPH


class CycleDetectedError(GraphValidationError):
    """A node is reachable from itself."""

    cause = FailureCause.CYCLE_DETECTED


class InvalidSourceCountError(GraphValidationError):
    """Zero or several nodes have in-degree zero."""

    cause = FailureCause.INVALID_SOURCE_COUNT


class UnresolvedDivergenceError(GraphValidationError):
    """A divergence never reconverged inside the graph."""

    cause = FailureCause.UNRESOLVED_DIVERGENCE


class AmbiguousReconvergenceError(GraphValidationError):
    """Several join nodes became resolvable after the same divergence."""

    cause = FailureCause.AMBIGUOUS_RECONVERGENCE


@dataclass(frozen=True, slots=True)
class GraphNode:
    """A node in the input graph.

    Successor order is significant: it fixes the order in which parallel
    lanes are emitted after a divergence.

    Attributes:
        node_id: Unique, stable identifier
        next_ids: Ordered successor identifiers, no duplicates
    """

    node_id: NodeID
    next_ids: tuple[NodeID, ...] = ()

    def __post_init__(self) -> None:
        # Accept any iterable (lists from JSON/YAML) but store a tuple
        object.__setattr__(self, "next_ids", tuple(self.next_ids))
        if len(set(self.next_ids)) != len(self.next_ids):
            duplicates = sorted({nid for nid in self.next_ids if self.next_ids.count(nid) > 1})
            raise MalformedGraphError(
                f"Node '{self.node_id}' lists duplicate successors: {duplicates}",
                node_ids=[self.node_id, *duplicates],
            )


@dataclass(frozen=True, slots=True)
class FlowIndex:
    """Precomputed, read-only lookups shared by one decomposition.

    All dict fields are stored as MappingProxyType to enforce true
    immutability: frozen=True only prevents attribute reassignment,
    not mutation of mutable values held by those attributes.

    Attributes:
        successors: Ordered successors per node
        reachability: Every node transitively reachable from each node
        in_degrees: Distinct predecessor count; nodes with none are absent
        sources: Nodes with in-degree zero, in input order
    """

    successors: Mapping[NodeID, tuple[NodeID, ...]]
    reachability: Mapping[NodeID, frozenset[NodeID]]
    in_degrees: Mapping[NodeID, int]
    sources: tuple[NodeID, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "successors", MappingProxyType(dict(self.successors)))
        object.__setattr__(self, "reachability", MappingProxyType(dict(self.reachability)))
        object.__setattr__(self, "in_degrees", MappingProxyType(dict(self.in_degrees)))

    def in_degree(self, node_id: str) -> int:
        """Return the in-degree of a node (0 for source candidates)."""
        return self.in_degrees.get(NodeID(node_id), 0)

    @property
    def edge_count(self) -> int:
        """Total number of edges, equal to the sum of in-degrees."""
        return sum(self.in_degrees.values())
