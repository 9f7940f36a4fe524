# src/flowlanes/core/config.py
"""
Configuration schema and loading for flowlanes.

Two kinds of input are loaded here:
- Graph documents (YAML or JSON): the node lists to decompose.
- Runtime settings: logging and output options, from an optional YAML
  file merged with FLOWLANES_* environment variables.

Uses Pydantic for validation and Dynaconf for multi-source settings
loading. Models are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from flowlanes.contracts.enums import OutputFormat
from flowlanes.contracts.types import NodeID
from flowlanes.core.dag.models import GraphNode
from flowlanes.core.logging import get_logger

logger = get_logger(__name__)


class NodeSettings(BaseModel):
    """One node of a graph document.

    Example YAML:
        - id: "2"
          nextIds: ["2a", "3"]
    """

    # YAML reads unquoted ids like 1 as ints
    model_config = {"frozen": True, "populate_by_name": True, "extra": "forbid", "coerce_numbers_to_str": True}

    id: str = Field(min_length=1, description="Unique node identifier")
    next_ids: list[str] = Field(
        default_factory=list,
        alias="nextIds",
        description="Ordered successor ids (lane order after a divergence)",
    )

    @field_validator("next_ids")
    @classmethod
    def validate_unique_successors(cls, v: list[str]) -> list[str]:
        """A node may point at each successor only once."""
        duplicates = sorted({next_id for next_id in v if v.count(next_id) > 1})
        if duplicates:
            raise ValueError(f"duplicate successors: {duplicates}")
        return v


class GraphDocument(BaseModel):
    """A graph document: an ordered node list.

    Example YAML:
        nodes:
          - id: "1"
            nextIds: ["2", "3"]
          - id: "2"
            nextIds: ["4"]
          - id: "3"
            nextIds: ["4"]
          - id: "4"
    """

    model_config = {"frozen": True}

    nodes: list[NodeSettings] = Field(description="Graph nodes in input order")

    @model_validator(mode="after")
    def validate_unique_node_ids(self) -> "GraphDocument":
        """Node ids are map keys everywhere; they must not repeat."""
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in self.nodes:
            if node.id in seen and node.id not in duplicates:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            raise ValueError(f"Duplicate node ids: {duplicates}")
        return self

    @model_validator(mode="after")
    def validate_successors_exist(self) -> "GraphDocument":
        """Every successor must name a node in the document."""
        known = {node.id for node in self.nodes}
        dangling = [f"{node.id} -> {next_id}" for node in self.nodes for next_id in node.next_ids if next_id not in known]
        if dangling:
            raise ValueError(f"Successors reference unknown nodes: {dangling}")
        return self

    def to_nodes(self) -> list[GraphNode]:
        """Convert to the GraphNode objects the graph layer consumes."""
        return [GraphNode(NodeID(node.id), tuple(NodeID(next_id) for next_id in node.next_ids)) for node in self.nodes]


class FlowlanesSettings(BaseModel):
    """Runtime settings for the CLI.

    Example YAML:
        log_level: DEBUG
        json_logs: false
        output_format: tree
        json_indent: 2
    """

    model_config = {"frozen": True}

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit structured JSON logs instead of console output",
    )
    output_format: OutputFormat = Field(
        default=OutputFormat.JSON,
        description="How decompose/layers print their result",
    )
    json_indent: int | None = Field(
        default=2,
        ge=0,
        description="Indent for JSON output (null for compact single-line JSON)",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept lower-case level names from env vars and YAML."""
        if isinstance(v, str):
            return v.upper()
        return v


def load_graph(graph_path: Path) -> GraphDocument:
    """Load a graph document from YAML or JSON.

    The document is either a mapping with a ``nodes`` list or a bare list
    of nodes. JSON is read by the same YAML loader.

    Args:
        graph_path: Path to the graph document

    Returns:
        Validated GraphDocument

    Raises:
        FileNotFoundError: If the file doesn't exist
        OSError: If the path cannot be read (e.g. it is a directory)
        UnicodeDecodeError: If the file is not UTF-8 text
        yaml.YAMLError: If the file is not valid YAML/JSON
        ValidationError: If the document fails Pydantic validation
    """
    if not graph_path.exists():
        raise FileNotFoundError(f"Graph file not found: {graph_path}")

    raw = yaml.safe_load(graph_path.read_text(encoding="utf-8"))
    if isinstance(raw, list):
        raw = {"nodes": raw}

    document = GraphDocument.model_validate(raw)
    logger.debug("graph_loaded", path=str(graph_path), node_count=len(document.nodes))
    return document


def load_settings(config_path: Path | None = None) -> FlowlanesSettings:
    """Load runtime settings with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (FLOWLANES_*) - highest priority
    2. Settings file (YAML), if given
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Optional path to a YAML settings file

    Returns:
        Validated FlowlanesSettings instance

    Raises:
        ValidationError: If settings fail Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="FLOWLANES",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,  # .env is loaded by the CLI, before this runs
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; filter its own bookkeeping keys
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return FlowlanesSettings(**raw_config)
