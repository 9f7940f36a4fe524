# src/flowlanes/cli_formatters.py
"""CLI output formatters for decomposition and layering results.

Provides JSON (machine-readable) and console (human-readable) renderings.
JSON output for a branch is the plain nested-list shape renderers consume;
console output is a rich Tree with one subtree per parallel group.
"""

from __future__ import annotations

import json

from rich.markup import escape
from rich.tree import Tree

from flowlanes.contracts.branch import Branch, Group, Step, to_nested
from flowlanes.contracts.types import NodeID


def format_branch_json(branch: Branch, indent: int | None = 2) -> str:
    """Serialize a branch as nested JSON lists."""
    return json.dumps(to_nested(branch), indent=indent)


def build_branch_tree(branch: Branch, label: str = "flow") -> Tree:
    """Build a rich Tree mirroring the branch nesting.

    Steps are leaves; each group becomes a ``∥`` node with one child per
    lane. Empty (bypass) lanes are shown explicitly so the lane count
    always matches the divergence's out-degree.
    """
    tree = Tree(f"[bold]{label}[/]")
    _add_elements(tree, branch)
    return tree


def _add_elements(parent: Tree, branch: Branch) -> None:
    for element in branch:
        match element:
            case Step(node_id=node_id):
                parent.add(f"[cyan]{escape(node_id)}[/]")
            case Group(lanes=lanes):
                group = parent.add(f"[magenta]∥ {len(lanes)} lanes[/]")
                for index, lane in enumerate(lanes, start=1):
                    lane_node = group.add(f"lane {index}")
                    if not lane:
                        lane_node.add("[dim](direct)[/]")
                    _add_elements(lane_node, lane)


def format_layers_json(layers: list[list[NodeID]], indent: int | None = 2) -> str:
    """Serialize layers as a JSON list of lists."""
    return json.dumps([[str(node_id) for node_id in layer] for layer in layers], indent=indent)


def format_layers_text(layers: list[list[NodeID]]) -> list[str]:
    """One line per layer: ``L<depth>: id, id, ...``."""
    return [f"L{depth}: {', '.join(layer)}" for depth, layer in enumerate(layers)]
