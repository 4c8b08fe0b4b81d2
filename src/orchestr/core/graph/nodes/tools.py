"""Tool dispatch nodes and routing helpers.

These are for manual tool dispatch in custom graphs. Agents backed by
``MirascopeChat`` run their tools inside the chat loop; ``react_graph`` wires
these helpers for agents whose chat leaves tool calls in the state instead.

A pending tool call is a mapping ``{"id": ..., "name": ..., "args": {...}}``.
"""

import warnings
from typing import Any, Callable, Dict, List, Mapping

from mirascope.core import BaseTool
from pydantic import Field

from orchestr.core.errors import UnknownToolWarning
from orchestr.core.graph.nodes.base.node import Node
from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.TOOLS)


def run_tool(tool: Any, args: Mapping[str, Any]) -> Any:
    """Call a plain function or instantiate and call a ``BaseTool`` subclass."""
    if isinstance(tool, type) and issubclass(tool, BaseTool):
        return tool(**args).call()
    return tool(**args)


class ToolNode(Node):
    """Node executing ``state["pending_tool_calls"]``.

    Unknown tool names are skipped with an ``UnknownToolWarning``.

    Attributes:
        tools: Tool name to function or ``BaseTool`` subclass
    """

    tools: Dict[str, Any] = Field(default_factory=dict)

    def process(self, state: Dict[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
        results: List[Dict[str, Any]] = []
        for call in state.get("pending_tool_calls") or []:
            name = call.get("name")
            tool = self.tools.get(name)
            if tool is None:
                message = f"Unknown tool '{name}' in pending_tool_calls, skipping."
                logger.warning(message)
                warnings.warn(message, UnknownToolWarning, stacklevel=2)
                continue
            args = call.get("args") or {}
            logger.debug(f"Calling tool {name} with {args}")
            results.append({"tool_call_id": call.get("id"), "result": run_tool(tool, args)})
        return {"tool_results": results, "pending_tool_calls": []}


def tool_node(tools: Mapping[str, Any]) -> ToolNode:
    """Create a tool execution node from a name-to-tool mapping."""
    if not isinstance(tools, Mapping):
        raise TypeError("`tools` must be a mapping of tool names to callables.")
    for name, tool in tools.items():
        if not isinstance(name, str) or not name:
            raise TypeError("Tool names must be non-empty strings.")
        if not callable(tool):
            raise TypeError(f"Tool '{name}' is not callable.")
    return ToolNode(tools=dict(tools))


def route_tool_calls(state: Mapping[str, Any]) -> str:
    """Return ``"tools"`` if the state has pending tool calls, ``"end"`` otherwise."""
    return "tools" if state.get("pending_tool_calls") else "end"


def route_to(node_name: str) -> Callable[[Mapping[str, Any]], str]:
    """Condition function that always routes to ``node_name``."""
    if not isinstance(node_name, str) or not node_name:
        raise TypeError("`node_name` must be a non-empty string.")

    def condition(state: Mapping[str, Any]) -> str:
        return node_name

    return condition
