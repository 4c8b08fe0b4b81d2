"""Tests for Agent functionality.

This module contains tests for the Agent class, which handles:
- Chat client configuration (system prompt, tools)
- Prompt context built from graph state
- Conversation history management
"""

from typing import Callable

import pytest
from mirascope.core import BaseMessageParam
from pydantic import ValidationError

from orchestr.core.agent.base import Agent, ChatClient, format_context


def lookup(term: str) -> str:
    """Look up a term."""
    return f"definition of {term}"


class TestAgentInitialization:
    """Test suite for agent initialization."""

    def test_agent_init(self, mock_agent: Agent, mock_chat):
        """Test basic agent initialization."""
        assert mock_agent.name == "tester"
        assert mock_agent.get_chat() is mock_chat
        assert mock_agent.tools == []
        assert isinstance(mock_chat, ChatClient)

    def test_configures_chat(self, chat_factory: Callable):
        """Test system prompt and tools are pushed to the chat."""
        chat = chat_factory()
        Agent(name="a", chat=chat, tools=[lookup], system_prompt="Be brief.")
        assert chat.get_system_prompt() == "Be brief."
        assert chat.tools == {"lookup": lookup}

    def test_keeps_chat_prompt(self, chat_factory: Callable):
        """Test the chat's own prompt is kept without an override."""
        chat = chat_factory(system_prompt="Original")
        Agent(name="a", chat=chat)
        assert chat.get_system_prompt() == "Original"

    def test_requires_name(self, mock_chat):
        """Test agents need a name."""
        with pytest.raises(ValidationError):
            Agent(name="", chat=mock_chat)

    def test_requires_chat_client(self):
        """Test the chat must satisfy the ChatClient protocol."""
        with pytest.raises(ValidationError):
            Agent(name="a", chat="not a chat")


class TestAgentInvocation:
    """Test suite for invoking agents."""

    def test_invoke(self, mock_agent: Agent, mock_chat):
        """Test responses are returned in order."""
        assert mock_agent.invoke("hi") == "first reply"
        assert mock_agent.invoke("again") == "second reply"
        assert mock_chat.prompts == ["hi", "again"]

    def test_invoke_with_context(self, mock_agent: Agent, mock_chat):
        """Test non-message state fields prefix the prompt."""
        mock_agent.invoke("summarize", state={"messages": ["ignored"], "topic": "graphs"})
        assert mock_chat.prompts == ["Context:\ntopic: graphs\n\nsummarize"]

    def test_invoke_turn(self, mock_agent: Agent):
        """Test the last recorded turn is returned."""
        turn = mock_agent.invoke_turn("hi")
        assert isinstance(turn, BaseMessageParam)
        assert turn.role == "assistant"
        assert turn.content == "first reply"


class TestAgentHistory:
    """Test suite for conversation history."""

    def test_turns_recorded(self, mock_agent: Agent):
        """Test each exchange adds user and assistant turns."""
        mock_agent.invoke("hi")
        assert [turn.role for turn in mock_agent.get_turns()] == ["user", "assistant"]

    def test_reset(self, mock_agent: Agent):
        """Test reset clears history and returns the agent."""
        mock_agent.invoke("hi")
        assert mock_agent.reset() is mock_agent
        assert mock_agent.get_turns() == []

    def test_fork(self, mock_agent: Agent, mock_chat):
        """Test forks have an independent chat."""
        mock_agent.invoke("hi")
        fork = mock_agent.fork()
        fork.invoke("only in fork")
        assert len(fork.get_turns()) == 4
        assert len(mock_agent.get_turns()) == 2
        assert fork.get_chat() is not mock_chat

    def test_str(self, mock_agent: Agent):
        """Test the summary string."""
        assert str(mock_agent) == "Agent: tester (tools: 0)"


class TestFormatContext:
    """Test suite for format_context."""

    def test_format(self):
        """Test lines, list joining and exclusions."""
        text = format_context({"messages": ["x"], "a": 1, "tags": ["p", "q"]})
        assert text == "a: 1\ntags: p, q"

    def test_empty(self):
        """Test message-only state has no context."""
        assert format_context({"messages": ["x"]}) == ""
