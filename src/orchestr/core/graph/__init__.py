"""Graph package initialization.

Exposes the builder, the compiled graph and helpers for building workflows.
"""

from orchestr.core.graph.base import CompiledGraph, ConditionalEdge, Edge
from orchestr.core.graph.builder import GraphBuilder
from orchestr.core.graph.constants import END, START, TRUNCATED
from orchestr.core.graph.interrupt import Interrupt, approval_tool, raise_on_interrupt
from orchestr.core.graph.nodes import (
    AgentNode,
    FunctionNode,
    Node,
    ToolNode,
    as_node,
    route_to,
    route_tool_calls,
    tool_node,
)
from orchestr.core.graph.prebuilt import pipeline_graph, react_graph, supervisor_graph
from orchestr.core.graph.state import FieldSpec, Reducer, Snapshot, StateSchema
from orchestr.core.graph.viz import as_mermaid

__all__ = [
    # Core classes
    "GraphBuilder",
    "CompiledGraph",
    "Edge",
    "ConditionalEdge",
    "StateSchema",
    "FieldSpec",
    "Reducer",
    "Snapshot",
    "Interrupt",
    "END",
    "START",
    "TRUNCATED",

    # Nodes
    "Node",
    "FunctionNode",
    "AgentNode",
    "ToolNode",
    "as_node",
    "tool_node",
    "route_tool_calls",
    "route_to",

    # Helpers
    "approval_tool",
    "raise_on_interrupt",
    "as_mermaid",
    "react_graph",
    "pipeline_graph",
    "supervisor_graph",
]
