# src/flowlanes/core/__init__.py
"""Core infrastructure: DAG decomposition, Configuration, Logging."""

from flowlanes.core.config import (
    FlowlanesSettings,
    GraphDocument,
    NodeSettings,
    load_graph,
    load_settings,
)
from flowlanes.core.dag import (
    BranchDecomposer,
    FlowGraph,
    FlowIndex,
    GraphNode,
    GraphValidationError,
    build_flow_index,
    decompose,
    topological_layers,
)
from flowlanes.core.logging import (
    configure_logging,
    get_logger,
)

__all__ = [
    "BranchDecomposer",
    "FlowGraph",
    "FlowIndex",
    "FlowlanesSettings",
    "GraphDocument",
    "GraphNode",
    "GraphValidationError",
    "NodeSettings",
    "build_flow_index",
    "configure_logging",
    "decompose",
    "get_logger",
    "load_graph",
    "load_settings",
    "topological_layers",
]
