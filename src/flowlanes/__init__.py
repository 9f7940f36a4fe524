"""
flowlanes: nested flow-diagram layout for single-source DAGs.

Turns a flat node/edge list into sequential chains and parallel lanes that
reconverge on shared join nodes, ready for a renderer to lay out.
"""

__version__ = "0.1.0"
