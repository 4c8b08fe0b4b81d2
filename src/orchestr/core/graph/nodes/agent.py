"""
Agent Node Implementation

This module adapts an ``Agent`` to the node handler contract. The node reads
its prompt from ``state[input_key]`` (the last item of a list, or the string
itself), invokes the agent with the rest of the state as context, and
returns ``{output_key: [response]}`` so an append reducer accumulates the
conversation.
"""

from typing import Any, Dict, Mapping

from pydantic import Field

from orchestr.core.agent.base import Agent
from orchestr.core.graph.nodes.base.node import Node
from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)


def last_message(value: Any) -> str:
    """Prompt text carried by a state field."""
    if isinstance(value, (list, tuple)):
        return str(value[-1]) if value else ""
    if isinstance(value, str):
        return value
    return ""


class AgentNode(Node):
    """
    Node for executing one agent turn.

    Attributes:
        agent: Agent to invoke
        input_key: State key holding the prompt
        output_key: State key receiving the response
    """

    agent: Agent = Field(..., description="Agent instance to use for LLM calls")
    input_key: str = Field(default="messages")
    output_key: str = Field(default="messages")

    def process(self, state: Dict[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
        prompt = last_message(state.get(self.input_key))
        logger.debug(f"Agent node {self.agent.name} prompt: {prompt!r}")
        response = self.agent.invoke(prompt, state=state)
        return {self.output_key: [response]}


def as_node(agent: Agent, input_key: str = "messages", output_key: str = "messages") -> AgentNode:
    """Convert an Agent to a graph node handler."""
    if not isinstance(agent, Agent):
        raise TypeError("`agent` must be an Agent object.")
    return AgentNode(agent=agent, input_key=input_key, output_key=output_key)
