"""Shared test fixtures.

``MockChat`` implements the ``ChatClient`` protocol offline: it replies with
canned responses in order (cycling) and can invoke registered tools on given
turns to simulate a model calling them.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from mirascope.core import BaseMessageParam

from orchestr.core.agent.base import Agent
from orchestr.core.checkpoint import MemoryCheckpointer
from orchestr.core.graph.builder import GraphBuilder
from orchestr.core.graph.constants import END

ToolCall = Optional[Tuple[str, Dict[str, Any]]]


class MockChat:
    """Offline chat client with scripted responses and tool calls."""

    def __init__(
        self,
        responses: Optional[List[str]] = None,
        tool_calls: Optional[List[ToolCall]] = None,
        system_prompt: Optional[str] = None,
    ):
        self.responses = list(responses or ["mock response"])
        self.tool_calls = list(tool_calls or [])
        self.system_prompt = system_prompt
        self.prompts: List[str] = []
        self.turns: List[Any] = []
        self.tools: Dict[str, Callable[..., Any]] = {}
        self.tool_outputs: List[Any] = []

    def chat(self, prompt: str) -> str:
        turn = len(self.prompts)
        self.prompts.append(prompt)
        if turn < len(self.tool_calls) and self.tool_calls[turn] is not None:
            name, kwargs = self.tool_calls[turn]
            self.tool_outputs.append(self.tools[name](**kwargs))
        response = self.responses[turn % len(self.responses)]
        self.turns.append(BaseMessageParam(role="user", content=prompt))
        self.turns.append(BaseMessageParam(role="assistant", content=response))
        return response

    def get_turns(self) -> List[Any]:
        return list(self.turns)

    def set_turns(self, turns: List[Any]) -> None:
        self.turns = list(turns)

    def register_tool(self, tool: Callable[..., Any]) -> None:
        self.tools[getattr(tool, "__name__", type(tool).__name__)] = tool

    def get_system_prompt(self) -> Optional[str]:
        return self.system_prompt

    def set_system_prompt(self, prompt: Optional[str]) -> None:
        self.system_prompt = prompt


def increment(state: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    return {"value": state["value"] + 1}


def double(state: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    return {"value": state["value"] * 2}


@pytest.fixture
def mock_chat() -> MockChat:
    """Fixture providing a mock chat with two canned responses."""
    return MockChat(responses=["first reply", "second reply"])


@pytest.fixture
def mock_agent(mock_chat: MockChat) -> Agent:
    """Fixture providing an agent backed by the mock chat."""
    return Agent(name="tester", chat=mock_chat)


@pytest.fixture
def linear_builder() -> GraphBuilder:
    """Fixture providing the builder of a -> b -> END (increment, double)."""
    return (
        GraphBuilder()
        .add_node("a", increment)
        .add_node("b", double)
        .add_edge("a", "b")
        .add_edge("b", END)
        .set_entry_point("a")
    )


@pytest.fixture
def saver() -> MemoryCheckpointer:
    """Fixture providing an in-memory checkpointer."""
    return MemoryCheckpointer()


@pytest.fixture
def chat_factory() -> Callable[..., MockChat]:
    """Fixture providing the MockChat constructor for scripted chats."""
    return MockChat
