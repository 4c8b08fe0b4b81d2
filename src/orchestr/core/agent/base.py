"""Agents: named wrappers around a chat client.

The graph engine never talks to a language model directly. An ``Agent`` owns
a ``ChatClient`` (anything with ``chat(prompt) -> str`` and a turn history)
and is adapted into a graph node by ``as_node``. ``MirascopeChat`` is the
default client; tests and offline workflows can supply their own.

Example:
    ```python
    from orchestr import Agent, MirascopeChat, pipeline_graph

    writer = Agent(name="writer", chat=MirascopeChat(), system_prompt="Write a draft.")
    editor = Agent(name="editor", chat=MirascopeChat(), system_prompt="Tighten the draft.")
    graph = pipeline_graph(("write", writer), ("edit", editor))
    graph.invoke({"messages": ["A haiku about graphs"]})
    ```
"""

import copy
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.AGENT)


@runtime_checkable
class ChatClient(Protocol):
    """Conversation capability consumed by ``Agent``."""

    def chat(self, prompt: str) -> str: ...

    def get_turns(self) -> List[Any]: ...

    def set_turns(self, turns: List[Any]) -> None: ...

    def register_tool(self, tool: Callable[..., Any]) -> None: ...

    def get_system_prompt(self) -> Optional[str]: ...

    def set_system_prompt(self, prompt: Optional[str]) -> None: ...


def format_context(state: Mapping[str, Any], exclude: tuple = ("messages",)) -> str:
    """Render state fields as ``key: value`` lines for prompt context."""
    lines = []
    for key, value in state.items():
        if key in exclude or not key:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(item) for item in value)
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


class Agent(BaseModel):
    """A named agent backed by a chat client.

    Attributes:
        name: Agent identity
        chat: Chat client holding the conversation
        tools: Tools registered on the chat at construction
        system_prompt: Optional override of the chat's system prompt
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Agent identity")
    chat: ChatClient = Field(..., description="Chat client used for every invocation")
    tools: List[Any] = Field(default_factory=list)
    system_prompt: Optional[str] = Field(default=None)

    @model_validator(mode="after")
    def _configure_chat(self) -> "Agent":
        if self.system_prompt is not None:
            self.chat.set_system_prompt(self.system_prompt)
        for tool in self.tools:
            self.chat.register_tool(tool)
        return self

    def _build_prompt(self, prompt: str, state: Optional[Mapping[str, Any]]) -> str:
        context = format_context(state or {})
        if context:
            return f"Context:\n{context}\n\n{prompt}"
        return prompt

    def invoke(self, prompt: str, state: Optional[Mapping[str, Any]] = None) -> str:
        """Send a prompt, prefixed with non-message state fields as context.

        Returns:
            The chat's text response
        """
        full_prompt = self._build_prompt(prompt, state)
        logger.debug(f"Agent {self.name} prompt:\n{full_prompt}")
        response = self.chat.chat(full_prompt)
        logger.debug(f"Agent {self.name} response:\n{response}")
        return response

    def invoke_turn(self, prompt: str, state: Optional[Mapping[str, Any]] = None) -> Any:
        """Like ``invoke`` but return the last recorded turn instead of text."""
        self.chat.chat(self._build_prompt(prompt, state))
        turns = self.chat.get_turns()
        return turns[-1] if turns else None

    def get_chat(self) -> ChatClient:
        return self.chat

    def get_turns(self) -> List[Any]:
        return self.chat.get_turns()

    def reset(self) -> "Agent":
        """Clear conversation history, keeping registered tools."""
        self.chat.set_turns([])
        return self

    def fork(self) -> "Agent":
        """Copy of this agent with an independent, deep-copied chat."""
        return self.model_copy(update={"chat": copy.deepcopy(self.chat)})

    def __str__(self) -> str:
        return f"Agent: {self.name} (tools: {len(self.tools)})"
