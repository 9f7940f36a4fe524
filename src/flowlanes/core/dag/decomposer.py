# src/flowlanes/core/dag/decomposer.py
"""Branch decomposition: flat node list to nested lane structure.

The walk follows a chain from a start node, appending one Step per node.
At a divergence it walks every successor as a separate lane. Each lane is
bounded by its siblings (and everything they reach), so lanes never
consume each other's nodes. A lane that runs into its boundary reports the
node it stopped at as "outgoing". Once every incoming edge of an outgoing
node is accounted for, the divergence has fully reconverged there and the
enclosing walk continues from that join node, so the join is emitted
exactly once.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

import structlog

from flowlanes.contracts.branch import Branch, BranchElement, Group, Step, nesting_depth
from flowlanes.contracts.types import NodeID
from flowlanes.core.dag.graph import FlowGraph
from flowlanes.core.dag.models import (
    AmbiguousReconvergenceError,
    CycleDetectedError,
    FlowIndex,
    GraphNode,
    InvalidSourceCountError,
    MalformedGraphError,
    UnresolvedDivergenceError,
)

logger = structlog.get_logger(__name__)


class BranchDecomposer:
    """Walks a flow graph and builds its nested Branch tree.

    One instance serves one decomposition: the ``seen`` set it owns spans
    every lane of that decomposition and is what detects revisits.

    Example:
        >>> index = build_flow_index(nodes)
        >>> branch, outgoing = BranchDecomposer(index).walk(index.sources[0])
    """

    def __init__(self, index: FlowIndex) -> None:
        self._index = index
        self._seen: set[NodeID] = set()

    def walk(
        self,
        start: NodeID,
        stop_on: frozenset[NodeID] = frozenset(),
    ) -> tuple[Branch, list[NodeID]]:
        """Walk from ``start`` without crossing ``stop_on``.

        Args:
            start: Node to begin at
            stop_on: Nodes owned by a sibling lane or an enclosing walk

        Returns:
            The branch built, and every boundary node this walk stopped at
            that it could not resolve itself (one entry per stopping edge)

        Raises:
            MalformedGraphError: If ``start`` is not in the index
            CycleDetectedError: If a node is reached a second time
            AmbiguousReconvergenceError: If several joins resolve at once
        """
        if start not in self._index.successors:
            raise MalformedGraphError(f"Unknown start node '{start}'", node_ids=[start])

        branch: list[BranchElement] = []
        outgoing: list[NodeID] = []
        current = start

        while True:
            if current in self._seen:
                raise CycleDetectedError(f"Cycle at '{current}'", node_ids=[current])
            if current in stop_on:
                logger.debug("walk_stopped_at_boundary", start=start, node_id=current)
                outgoing.append(current)
                break

            branch.append(Step(current))
            self._seen.add(current)

            next_ids = self._index.successors[current]
            if not next_ids:
                break
            if len(next_ids) == 1:
                current = next_ids[0]
                continue

            lanes, lane_outgoing = self._walk_lanes(current, next_ids, stop_on)
            branch.append(Group(lanes))
            outgoing.extend(lane_outgoing)

            join = self._resolve_join(current, outgoing)
            if join is None:
                break
            outgoing = [node_id for node_id in outgoing if node_id != join]
            current = join

        return tuple(branch), outgoing

    def _walk_lanes(
        self,
        divergence: NodeID,
        next_ids: Sequence[NodeID],
        stop_on: frozenset[NodeID],
    ) -> tuple[tuple[Branch, ...], list[NodeID]]:
        """Walk each successor of a divergence as its own lane, in order."""
        logger.debug("divergence", node_id=divergence, successors=list(next_ids))
        lanes: list[Branch] = []
        outgoing: list[NodeID] = []

        for next_id in next_ids:
            # Already owned by an enclosing walk: no lane of its own
            if next_id in stop_on:
                outgoing.append(next_id)
                continue

            siblings = [sibling for sibling in next_ids if sibling != next_id]
            boundary = set(stop_on)
            boundary.update(siblings)
            for sibling in siblings:
                boundary.update(self._index.reachability[sibling])

            lane, lane_outgoing = self.walk(next_id, frozenset(boundary))
            lanes.append(lane)
            outgoing.extend(lane_outgoing)

        return tuple(lanes), outgoing

    def _resolve_join(self, divergence: NodeID, outgoing: list[NodeID]) -> NodeID | None:
        """Pick the node every incoming edge has now reached, if any.

        Raises:
            AmbiguousReconvergenceError: If more than one node qualifies
        """
        # Counter keeps first-seen order, so error output is stable
        arrivals = Counter(outgoing)
        resolvable = [node_id for node_id, count in arrivals.items() if count == self._index.in_degree(node_id)]

        if not resolvable:
            return None
        if len(resolvable) > 1:
            raise AmbiguousReconvergenceError(
                f"Multiple outgoing branches resolve after '{divergence}': {resolvable}",
                node_ids=resolvable,
            )

        logger.debug("reconvergence_resolved", divergence=divergence, join=resolvable[0])
        return resolvable[0]


def decompose(nodes: Iterable[GraphNode]) -> Branch:
    """Decompose a single-source DAG into its nested Branch tree.

    Args:
        nodes: The graph's nodes; list order does not affect the result,
            successor order within each node does

    Returns:
        Branch covering every node exactly once

    Raises:
        MalformedGraphError: Duplicate ids or dangling successors
        CycleDetectedError: The graph has a cycle
        InvalidSourceCountError: Not exactly one node has in-degree zero
        UnresolvedDivergenceError: Some divergence never reconverged
        AmbiguousReconvergenceError: Several joins resolved at once
    """
    graph = FlowGraph.from_nodes(nodes)
    index = graph.build_index()

    if len(index.sources) != 1:
        raise InvalidSourceCountError(
            f"Graph must have exactly one start node, found {len(index.sources)}: {list(index.sources)}",
            node_ids=index.sources,
        )

    branch, outgoing = BranchDecomposer(index).walk(index.sources[0])
    if outgoing:
        pending = list(dict.fromkeys(outgoing))
        raise UnresolvedDivergenceError(
            f"Unresolved outgoing branches into {pending}",
            node_ids=pending,
        )

    logger.debug(
        "graph_decomposed",
        source=index.sources[0],
        node_count=graph.node_count,
        nesting_depth=nesting_depth(branch),
    )
    return branch
