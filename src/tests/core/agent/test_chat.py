"""Tests for the Mirascope chat client, with the provider call faked."""

from typing import Any, List, Optional

import pytest
from mirascope.core import BaseMessageParam

from orchestr.core.agent.base import ChatClient
from orchestr.core.agent.chat import MirascopeChat, tool_name


class FakeTool:
    """Stand-in for a tool call returned by the provider."""

    def __init__(self, result: str):
        self.result = result
        self.called = False

    def call(self) -> str:
        self.called = True
        return self.result


class FakeResponse:
    """Stand-in for a mirascope call response."""

    def __init__(self, content: str, tools: Optional[List[FakeTool]] = None):
        self.content = content
        self.tools = tools
        self.message_param = BaseMessageParam(role="assistant", content=content)

    def tool_message_params(self, outputs: List[Any]) -> List[BaseMessageParam]:
        return [BaseMessageParam(role="tool", content=str(output)) for _, output in outputs]


def get_weather(city: str) -> str:
    """Get the weather for a city."""
    return f"Sunny in {city}"


@pytest.fixture
def chat() -> MirascopeChat:
    """Fixture providing a chat with a system prompt."""
    return MirascopeChat(system_prompt="You are helpful.")


class TestMirascopeChat:
    """Test suite for MirascopeChat."""

    def test_protocol(self, chat: MirascopeChat):
        """Test the client satisfies ChatClient."""
        assert isinstance(chat, ChatClient)
        assert chat.model == "gpt-4o-mini"

    def test_chat(self, chat: MirascopeChat, monkeypatch: pytest.MonkeyPatch):
        """Test a plain reply is recorded in history."""
        queries: List[str] = []

        def fake_call(self, query: str) -> FakeResponse:
            queries.append(query)
            return FakeResponse("Hello!")

        monkeypatch.setattr(MirascopeChat, "_call", fake_call)
        assert chat.chat("Hi") == "Hello!"
        assert queries == ["Hi"]
        assert [(t.role, t.content) for t in chat.get_turns()] == [
            ("user", "Hi"),
            ("assistant", "Hello!"),
        ]

    def test_tool_loop(self, chat: MirascopeChat, monkeypatch: pytest.MonkeyPatch):
        """Test tools are called until the model answers in text."""
        tool = FakeTool("Sunny")
        responses = [FakeResponse("", tools=[tool]), FakeResponse("It is sunny.")]

        def fake_call(self, query: str) -> FakeResponse:
            return responses.pop(0)

        monkeypatch.setattr(MirascopeChat, "_call", fake_call)
        assert chat.chat("Weather?") == "It is sunny."
        assert tool.called
        assert [t.role for t in chat.get_turns()] == ["user", "assistant", "tool", "assistant"]

    def test_turns(self, chat: MirascopeChat):
        """Test history can be replaced and cleared."""
        turns = [BaseMessageParam(role="user", content="x")]
        chat.set_turns(turns)
        assert chat.get_turns() == turns
        chat.set_turns([])
        assert chat.get_turns() == []

    def test_register_tool(self, chat: MirascopeChat):
        """Test tools are keyed by name and replaced on re-registration."""
        chat.register_tool(get_weather)

        def get_weather_v2(city: str) -> str:
            """Get the weather."""
            return city

        get_weather_v2.__name__ = "get_weather"
        chat.register_tool(get_weather_v2)
        assert list(chat.tools) == ["get_weather"]
        assert chat.tools["get_weather"] is get_weather_v2
        assert tool_name(get_weather) == "get_weather"

    def test_system_prompt(self, chat: MirascopeChat):
        """Test system prompt accessors."""
        assert chat.get_system_prompt() == "You are helpful."
        chat.set_system_prompt("Be terse.")
        assert chat.system_prompt == "Be terse."
