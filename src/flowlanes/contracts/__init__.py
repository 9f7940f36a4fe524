"""Shared contracts for cross-boundary data types.

Leaf package: nothing here imports from flowlanes.core, so the graph
layer, the config loaders and the CLI can all depend on it freely.
"""

from flowlanes.contracts.branch import (
    Branch,
    BranchElement,
    Group,
    NestedBranch,
    Step,
    from_nested,
    iter_node_ids,
    nesting_depth,
    to_nested,
)
from flowlanes.contracts.enums import FailureCause, OutputFormat
from flowlanes.contracts.types import NodeID

__all__ = [
    "Branch",
    "BranchElement",
    "FailureCause",
    "Group",
    "NestedBranch",
    "NodeID",
    "OutputFormat",
    "Step",
    "from_nested",
    "iter_node_ids",
    "nesting_depth",
    "to_nested",
]
