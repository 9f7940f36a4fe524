# tests/strategies/__init__.py
"""Hypothesis strategies for property-based tests.

Re-exports commonly used strategies for convenience:
    from tests.strategies import flow_graphs, random_dags, STANDARD_SETTINGS
"""

from tests.strategies.graphs import (
    branch_to_nodes,
    cyclic_graphs,
    flow_branches,
    flow_graphs,
    random_dags,
)
from tests.strategies.settings import DETERMINISM_SETTINGS, STANDARD_SETTINGS

__all__ = [
    "DETERMINISM_SETTINGS",
    "STANDARD_SETTINGS",
    "branch_to_nodes",
    "cyclic_graphs",
    "flow_branches",
    "flow_graphs",
    "random_dags",
]
