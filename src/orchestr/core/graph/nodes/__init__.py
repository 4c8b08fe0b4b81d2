"""Node package initialization.

Exposes node types and helpers for building workflows.
"""

from orchestr.core.graph.nodes.base.node import Node, FunctionNode, as_handler
from orchestr.core.graph.nodes.agent import AgentNode, as_node
from orchestr.core.graph.nodes.tools import ToolNode, tool_node, route_tool_calls, route_to

__all__ = [
    # Base node types
    "Node",
    "FunctionNode",
    "AgentNode",
    "ToolNode",

    # Helpers
    "as_handler",
    "as_node",
    "tool_node",
    "route_tool_calls",
    "route_to",
]
