"""Status codes, tags, and modes used across subsystem boundaries."""

from enum import StrEnum


class FailureCause(StrEnum):
    """Why a graph could not be decomposed.

    Carried on every GraphValidationError so callers can branch on the
    cause without matching exception classes or message text.
    """

    MALFORMED_GRAPH = "malformed_graph"
    CYCLE_DETECTED = "cycle_detected"
    INVALID_SOURCE_COUNT = "invalid_source_count"
    UNRESOLVED_DIVERGENCE = "unresolved_divergence"
    AMBIGUOUS_RECONVERGENCE = "ambiguous_reconvergence"


class OutputFormat(StrEnum):
    """How the CLI prints decomposition and layering results."""

    JSON = "json"
    TREE = "tree"
