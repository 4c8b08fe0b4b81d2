"""Base node classes for the graph system.

A node is a named unit of work in a graph. Its handler receives the current
state and the run config and returns a partial state update:

    handler(state: dict, config: dict) -> dict

Plain functions are wrapped in ``FunctionNode`` by the builder. Subclass
``Node`` and override ``process`` for handlers that carry configuration
(see ``AgentNode`` and ``ToolNode``). ``process`` may be a coroutine
function; such nodes run under ``ainvoke``/``astream`` only.

Example:
    ```python
    class Increment(Node):
        amount: int = 1

        def process(self, state, config):
            return {"value": state.get("value", 0) + self.amount}

    builder.add_node("inc", Increment(amount=2))
    ```
"""

from typing import Any, Callable, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field


class Node(BaseModel):
    """Abstract base node: a handler of ``(state, config) -> partial update``."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    def process(self, state: Dict[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
        """Process node logic. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement process()")

    def __call__(self, state: Dict[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
        return self.process(state, config)


class FunctionNode(Node):
    """Node backed by a plain ``(state, config)`` callable."""

    func: Callable[..., Any] = Field(..., description="Handler called with (state, config)")

    def process(self, state: Dict[str, Any], config: Mapping[str, Any]) -> Any:
        return self.func(state, config)


def as_handler(handler: Any) -> Node:
    """Normalize a ``Node`` or plain callable into a ``Node``."""
    if isinstance(handler, Node):
        return handler
    if callable(handler):
        return FunctionNode(func=handler)
    raise TypeError(f"Expected a Node or a callable handler, got '{type(handler).__name__}'.")
