# src/flowlanes/contracts/branch.py
"""Nested branch tree produced by graph decomposition.

A Branch is an ordered sequence of elements. Each element is either a
Step (one node, rendered inline) or a Group (parallel lanes that leave a
common divergence node and reconverge on the element that follows the
group). Lanes are Branches themselves, so the tree nests to the depth of
the deepest chain of divergences in the source graph.

Renderers that predate the tagged form consume plain nested lists, where a
string is a step and a list of lists is a group:

    ["1", [["2"], ["3"]], "4"]

to_nested() and from_nested() convert between the two shapes.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

from flowlanes.contracts.types import NodeID


@dataclass(frozen=True, slots=True)
class Step:
    """A single node on a sequential chain."""

    node_id: NodeID


@dataclass(frozen=True, slots=True)
class Group:
    """Parallel lanes leaving one divergence node.

    A lane may be empty: the divergence has a direct edge to the join
    node. A group may hold no lanes at all when every successor of the
    divergence belongs to an enclosing lane's boundary.
    """

    lanes: tuple[Branch, ...]


BranchElement: TypeAlias = Step | Group
Branch: TypeAlias = tuple[BranchElement, ...]

# Plain renderer shape: str for a step, list of lanes for a group
NestedBranch: TypeAlias = list[str | list["NestedBranch"]]


def iter_node_ids(branch: Branch) -> Iterator[NodeID]:
    """Yield every node id in the tree, depth first, in emission order."""
    for element in branch:
        match element:
            case Step(node_id=node_id):
                yield node_id
            case Group(lanes=lanes):
                for lane in lanes:
                    yield from iter_node_ids(lane)


def nesting_depth(branch: Branch) -> int:
    """Return how many group levels the deepest lane sits under.

    A plain chain has depth 0; a single diamond has depth 1.
    """
    depth = 0
    for element in branch:
        if isinstance(element, Group):
            inner = max((nesting_depth(lane) for lane in element.lanes), default=0)
            depth = max(depth, inner + 1)
    return depth


def to_nested(branch: Branch) -> NestedBranch:
    """Convert a tagged branch into the plain nested-list renderer shape."""
    nested: NestedBranch = []
    for element in branch:
        match element:
            case Step(node_id=node_id):
                nested.append(str(node_id))
            case Group(lanes=lanes):
                nested.append([to_nested(lane) for lane in lanes])
    return nested


def from_nested(data: Sequence[Any]) -> Branch:
    """Parse the plain nested-list shape back into a tagged branch.

    Raises:
        TypeError: If an item is neither a string nor a list of lanes
    """
    if isinstance(data, str) or not isinstance(data, Sequence):
        raise TypeError(f"Branch must be a list, got {type(data).__name__}")

    elements: list[BranchElement] = []
    for item in data:
        if isinstance(item, str):
            elements.append(Step(NodeID(item)))
        elif isinstance(item, Sequence):
            elements.append(Group(tuple(from_nested(lane) for lane in item)))
        else:
            raise TypeError(f"Branch item must be a node id or a list of lanes, got {type(item).__name__}")
    return tuple(elements)
