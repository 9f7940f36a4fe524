# src/flowlanes/core/dag/__init__.py
"""Flow graph operations: validation, indexing, layering, decomposition."""

from flowlanes.core.dag.decomposer import BranchDecomposer, decompose
from flowlanes.core.dag.graph import FlowGraph, build_flow_index, topological_layers
from flowlanes.core.dag.models import (
    AmbiguousReconvergenceError,
    CycleDetectedError,
    FlowIndex,
    GraphNode,
    GraphValidationError,
    InvalidSourceCountError,
    MalformedGraphError,
    UnresolvedDivergenceError,
)

__all__ = [
    "AmbiguousReconvergenceError",
    "BranchDecomposer",
    "CycleDetectedError",
    "FlowGraph",
    "FlowIndex",
    "GraphNode",
    "GraphValidationError",
    "InvalidSourceCountError",
    "MalformedGraphError",
    "UnresolvedDivergenceError",
    "build_flow_index",
    "decompose",
    "topological_layers",
]
