"""Tests for prebuilt graph topologies."""

from typing import Callable

import pytest

from orchestr.core.agent.base import Agent
from orchestr.core.errors import GraphValidationError
from orchestr.core.graph.constants import END
from orchestr.core.graph.prebuilt import pipeline_graph, react_graph, supervisor_graph


class TestReactGraph:
    """Test suite for react_graph."""

    def test_structure(self, mock_agent: Agent):
        """Test nodes, routing and cap."""
        graph = react_graph(mock_agent)
        assert graph.get_nodes() == ["agent", "tools"]
        assert graph.max_iterations == 10
        cond = graph.get_edges()["conditional"][0]
        assert cond.source == "agent"
        assert cond.mapping == {"tools": "tools", "end": END}

    def test_run_without_tool_calls(self, mock_agent: Agent):
        """Test a reply without tool calls ends the run."""
        result = react_graph(mock_agent).invoke({"messages": ["hello"]})
        assert result["messages"] == ["hello", "first reply"]

    def test_tool_loop(self, mock_agent: Agent):
        """Test pending calls go through the tools node and back to the agent."""
        calls = [{"id": "c1", "name": "add", "args": {"a": 2, "b": 3}}]
        graph = react_graph(mock_agent, tools={"add": lambda a, b: a + b})
        result = graph.invoke({"messages": ["hello"], "pending_tool_calls": calls})
        assert result["tool_results"] == [{"tool_call_id": "c1", "result": 5}]
        assert result["pending_tool_calls"] == []
        assert result["messages"] == ["hello", "first reply", "second reply"]

    def test_requires_agent(self):
        """Test the agent type is checked."""
        with pytest.raises(TypeError):
            react_graph(lambda state, config: {})


class TestPipelineGraph:
    """Test suite for pipeline_graph."""

    def test_sequence(self, chat_factory: Callable):
        """Test each agent sees the previous reply."""
        writer_chat = chat_factory(responses=["draft"])
        editor_chat = chat_factory(responses=["final"])
        graph = pipeline_graph(
            ("write", Agent(name="writer", chat=writer_chat)),
            Agent(name="editor", chat=editor_chat),
        )
        assert graph.get_nodes() == ["write", "step_2"]
        result = graph.invoke({"messages": ["topic"]})
        assert result["messages"] == ["topic", "draft", "final"]
        assert editor_chat.prompts == ["draft"]

    def test_requires_agents(self):
        """Test an empty pipeline is rejected."""
        with pytest.raises(GraphValidationError):
            pipeline_graph()

    def test_rejects_non_agents(self, mock_agent: Agent):
        """Test every step must be an agent."""
        with pytest.raises(TypeError):
            pipeline_graph(mock_agent, "not an agent")


class TestSupervisorGraph:
    """Test suite for supervisor_graph."""

    def test_delegation(self, chat_factory: Callable):
        """Test the supervisor routes to a worker, then finishes."""
        boss_chat = chat_factory(
            responses=["ask the researcher", "all done"],
            tool_calls=[("route", {"worker": "researcher"}), ("route", {"worker": "FINISH"})],
            system_prompt="You lead.",
        )
        researcher_chat = chat_factory(responses=["findings"])
        graph = supervisor_graph(
            Agent(name="boss", chat=boss_chat),
            {"researcher": Agent(name="researcher", chat=researcher_chat)},
        )
        result = graph.invoke({"messages": ["investigate"]})

        assert result["messages"] == ["investigate", "ask the researcher", "findings", "all done"]
        assert result["next_worker"] == "FINISH"
        assert boss_chat.tool_outputs == ["Routing to: researcher", "Routing to: FINISH"]
        assert boss_chat.prompts == ["investigate", "findings"]
        assert boss_chat.system_prompt.startswith("You lead.")
        assert "You coordinate a team of workers: researcher." in boss_chat.system_prompt

    def test_no_route_finishes(self, chat_factory: Callable, mock_agent: Agent):
        """Test a turn without a route call ends the run."""
        boss = Agent(name="boss", chat=chat_factory(responses=["nothing to do"]))
        result = supervisor_graph(boss, {"worker": mock_agent}).invoke({"messages": ["hi"]})
        assert result["next_worker"] == "FINISH"
        assert result["messages"] == ["hi", "nothing to do"]

    def test_invalid_worker(self, chat_factory: Callable, mock_agent: Agent):
        """Test an unknown worker name is refused and the run finishes."""
        boss_chat = chat_factory(tool_calls=[("route", {"worker": "ghost"})])
        graph = supervisor_graph(Agent(name="boss", chat=boss_chat), {"worker": mock_agent})
        result = graph.invoke({"messages": ["hi"]})
        assert boss_chat.tool_outputs == ["Invalid worker. Choose one of: worker, FINISH"]
        assert result["next_worker"] == "FINISH"

    def test_reserved_worker_name(self, mock_agent: Agent, chat_factory: Callable):
        """Test FINISH cannot name a worker."""
        boss = Agent(name="boss", chat=chat_factory())
        with pytest.raises(GraphValidationError):
            supervisor_graph(boss, {"FINISH": mock_agent})

    def test_requires_workers(self, mock_agent: Agent):
        """Test workers must be a non-empty mapping."""
        with pytest.raises(TypeError):
            supervisor_graph(mock_agent, {})
