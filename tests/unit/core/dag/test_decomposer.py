"""Tests for BranchDecomposer and decompose().

Expected structures for the reference graphs are written in the plain
nested-list shape; see tests/fixtures/graphs.py.
"""

from __future__ import annotations

from collections import Counter

import pytest

from flowlanes.contracts import FailureCause, Group, NodeID, Step, iter_node_ids, to_nested
from flowlanes.core.dag import (
    AmbiguousReconvergenceError,
    BranchDecomposer,
    CycleDetectedError,
    FlowIndex,
    GraphValidationError,
    InvalidSourceCountError,
    MalformedGraphError,
    UnresolvedDivergenceError,
    build_flow_index,
    decompose,
)
from tests.fixtures.graphs import (
    BYPASS,
    BYPASS_EXPECTED,
    CYCLE_AFTER_SOURCE,
    DIAMOND,
    DIAMOND_EXPECTED,
    DOUBLE_JOIN,
    FAN_IN,
    FAN_IN_EXPECTED,
    LINEAR,
    LINEAR_EXPECTED,
    NESTED_DIAMONDS,
    NESTED_DIAMONDS_EXPECTED,
    SELF_LOOP,
    SPLIT_JOINS,
    TWO_SOURCES,
    nodes,
)


class TestDecomposeShapes:
    """Known graphs decompose to known structures."""

    def test_linear_chain(self) -> None:
        assert to_nested(decompose(nodes(LINEAR))) == LINEAR_EXPECTED

    def test_diamond(self) -> None:
        branch = decompose(nodes(DIAMOND))
        assert branch == (
            Step(NodeID("1")),
            Group(((Step(NodeID("2")),), (Step(NodeID("3")),))),
            Step(NodeID("4")),
        )
        assert to_nested(branch) == DIAMOND_EXPECTED

    def test_single_node(self) -> None:
        assert to_nested(decompose(nodes({"only": []}))) == ["only"]

    def test_bypass_edge_becomes_empty_lane(self) -> None:
        assert to_nested(decompose(nodes(BYPASS))) == BYPASS_EXPECTED

    def test_nested_divergences_sharing_one_join(self) -> None:
        assert to_nested(decompose(nodes(FAN_IN))) == FAN_IN_EXPECTED

    def test_diamond_of_diamonds(self) -> None:
        assert to_nested(decompose(nodes(NESTED_DIAMONDS))) == NESTED_DIAMONDS_EXPECTED

    def test_lane_order_follows_successor_order(self) -> None:
        reversed_diamond = {"1": ["3", "2"], "2": ["4"], "3": ["4"], "4": []}
        assert to_nested(decompose(nodes(reversed_diamond))) == ["1", [["3"], ["2"]], "4"]

    def test_node_list_order_does_not_matter(self) -> None:
        shuffled = dict(reversed(list(NESTED_DIAMONDS.items())))
        assert decompose(nodes(shuffled)) == decompose(nodes(NESTED_DIAMONDS))

    @pytest.mark.parametrize("adjacency", [LINEAR, DIAMOND, BYPASS, FAN_IN, NESTED_DIAMONDS])
    def test_every_node_exactly_once(self, adjacency: dict[str, list[str]]) -> None:
        counts = Counter(iter_node_ids(decompose(nodes(adjacency))))
        assert set(counts) == set(adjacency)
        assert set(counts.values()) == {1}

    def test_repeat_calls_give_identical_structure(self) -> None:
        node_list = nodes(NESTED_DIAMONDS)
        assert decompose(node_list) == decompose(node_list)


class TestDecomposeFailures:
    def test_two_sources(self) -> None:
        with pytest.raises(InvalidSourceCountError, match="found 2") as exc_info:
            decompose(nodes(TWO_SOURCES))
        assert exc_info.value.node_ids == ("1", "2")
        assert exc_info.value.cause == FailureCause.INVALID_SOURCE_COUNT

    def test_empty_graph_has_no_source(self) -> None:
        with pytest.raises(InvalidSourceCountError, match="found 0"):
            decompose([])

    def test_self_loop(self) -> None:
        with pytest.raises(CycleDetectedError):
            decompose(nodes(SELF_LOOP))

    def test_cycle_behind_single_source(self) -> None:
        with pytest.raises(CycleDetectedError):
            decompose(nodes(CYCLE_AFTER_SOURCE))

    def test_cycle_with_no_source_reports_cycle(self) -> None:
        with pytest.raises(CycleDetectedError):
            decompose(nodes({"1": ["2"], "2": ["1"]}))

    def test_paths_closing_on_different_joins(self) -> None:
        with pytest.raises(UnresolvedDivergenceError) as exc_info:
            decompose(nodes(SPLIT_JOINS))
        assert exc_info.value.node_ids == ("6",)

    def test_two_joins_closing_at_once(self) -> None:
        with pytest.raises(AmbiguousReconvergenceError, match="Multiple outgoing branches") as exc_info:
            decompose(nodes(DOUBLE_JOIN))
        assert exc_info.value.node_ids == ("4", "5")

    def test_dangling_successor(self) -> None:
        with pytest.raises(MalformedGraphError):
            decompose(nodes({"1": ["2"]}))

    @pytest.mark.parametrize("adjacency", [TWO_SOURCES, SELF_LOOP, SPLIT_JOINS, DOUBLE_JOIN])
    def test_all_failures_share_one_base(self, adjacency: dict[str, list[str]]) -> None:
        with pytest.raises(GraphValidationError):
            decompose(nodes(adjacency))


class TestBranchDecomposerWalk:
    """Direct walks, for boundary and outgoing behaviour."""

    def test_walk_stops_at_boundary_without_consuming_it(self) -> None:
        index = build_flow_index(nodes(LINEAR))
        branch, outgoing = BranchDecomposer(index).walk(NodeID("1"), frozenset({NodeID("3")}))
        assert to_nested(branch) == ["1", "2"]
        assert outgoing == ["3"]

    def test_start_on_boundary_gives_empty_branch(self) -> None:
        index = build_flow_index(nodes(LINEAR))
        branch, outgoing = BranchDecomposer(index).walk(NodeID("2"), frozenset({NodeID("2")}))
        assert branch == ()
        assert outgoing == ["2"]

    def test_unresolved_join_is_returned_once_per_edge(self) -> None:
        index = build_flow_index(nodes(FAN_IN))
        # Walk lane "3" the way its parent would: bounded by sibling 2a
        boundary = frozenset({NodeID("2a"), *index.reachability[NodeID("2a")]})
        branch, outgoing = BranchDecomposer(index).walk(NodeID("3"), boundary)
        assert to_nested(branch) == ["3", [["3a"], ["3b", "3d", "3f"], ["3c", "3e"]]]
        assert outgoing == ["4", "4", "4"]

    def test_successor_on_inherited_boundary_gets_no_lane(self) -> None:
        index = build_flow_index(nodes(DOUBLE_JOIN))
        branch, outgoing = BranchDecomposer(index).walk(NodeID("2"), frozenset({NodeID("4"), NodeID("5")}))
        assert branch == (Step(NodeID("2")), Group(()))
        assert outgoing == ["4", "5"]

    def test_revisit_is_a_cycle_even_without_index_check(self) -> None:
        # Hand-built index: build_flow_index itself refuses cyclic graphs
        index = FlowIndex(
            successors={NodeID("1"): (NodeID("2"),), NodeID("2"): (NodeID("1"),)},
            reachability={NodeID("1"): frozenset(), NodeID("2"): frozenset()},
            in_degrees={NodeID("1"): 1, NodeID("2"): 1},
            sources=(),
        )
        with pytest.raises(CycleDetectedError, match="Cycle at '1'"):
            BranchDecomposer(index).walk(NodeID("1"))

    def test_unknown_start_is_malformed(self) -> None:
        index = build_flow_index(nodes(LINEAR))
        with pytest.raises(MalformedGraphError, match="Unknown start node 'ghost'") as exc_info:
            BranchDecomposer(index).walk(NodeID("ghost"))
        assert exc_info.value.node_ids == ("ghost",)
