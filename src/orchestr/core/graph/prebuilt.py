"""Ready-made graph topologies for common agent workflows.

- ``react_graph``: one agent alternating with a tool dispatch node
- ``pipeline_graph``: agents run in sequence, each seeing the previous reply
- ``supervisor_graph``: a supervisor agent delegating to named workers
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import Field

from orchestr.core.agent.base import Agent
from orchestr.core.errors import GraphValidationError
from orchestr.core.graph.base import CompiledGraph
from orchestr.core.graph.builder import GraphBuilder
from orchestr.core.graph.constants import END
from orchestr.core.graph.nodes.agent import as_node, last_message
from orchestr.core.graph.nodes.base.node import Node
from orchestr.core.graph.nodes.tools import route_tool_calls, tool_node
from orchestr.core.graph.state import StateSchema
from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.GRAPH)

FINISH = "FINISH"

PipelineStep = Union[Agent, Tuple[str, Agent]]


def _no_pending_tools(state: Dict[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
    return {"pending_tool_calls": []}


def react_graph(
    agent: Agent,
    tools: Optional[Mapping[str, Any]] = None,
    max_iterations: int = 10,
) -> CompiledGraph:
    """Agent/tools loop routed by ``route_tool_calls``.

    Args:
        agent: Agent run in the ``agent`` node
        tools: Tool name to callable for the ``tools`` node; when empty the
            node only clears ``pending_tool_calls``
        max_iterations: Safety cap on executed steps
    """
    if not isinstance(agent, Agent):
        raise TypeError("`agent` must be an Agent object.")

    builder = GraphBuilder(
        StateSchema(
            messages="append:list",
            pending_tool_calls="list",
            tool_results="append:list",
        )
    )
    builder.add_node("agent", as_node(agent))
    builder.add_node("tools", tool_node(tools) if tools else _no_pending_tools)
    builder.add_conditional_edge("agent", route_tool_calls, {"tools": "tools", "end": END})
    builder.add_edge("tools", "agent")
    builder.set_entry_point("agent")
    return builder.compile(max_iterations=max_iterations)


def pipeline_graph(*agents: PipelineStep) -> CompiledGraph:
    """Chain agents in order: first -> second -> ... -> END.

    Steps are ``Agent`` objects or ``(name, agent)`` pairs; unnamed steps
    become ``step_1``, ``step_2``, ... by position.

    Example:
        ```python
        graph = pipeline_graph(("draft", writer), editor)   # nodes: draft, step_2
        graph.invoke({"messages": ["Write about graphs"]})
        ```
    """
    if not agents:
        raise GraphValidationError("At least one agent is required.")

    steps: List[Tuple[str, Agent]] = []
    for i, step in enumerate(agents, start=1):
        name, agent = step if isinstance(step, tuple) else (f"step_{i}", step)
        if not isinstance(agent, Agent):
            raise TypeError("All pipeline steps must be Agent objects or (name, Agent) pairs.")
        steps.append((name, agent))

    builder = GraphBuilder(StateSchema(messages="append:list"))
    for name, agent in steps:
        builder.add_node(name, as_node(agent))
    for (name, _), (next_name, _) in zip(steps, steps[1:]):
        builder.add_edge(name, next_name)
    builder.add_edge(steps[-1][0], END)
    builder.set_entry_point(steps[0][0])
    return builder.compile()


class SupervisorNode(Node):
    """Supervisor turn: chat with a fresh ``route`` tool and record its choice.

    The decision lives in a per-call local and is returned as the
    ``next_worker`` state update, so concurrent graphs never share it.
    A turn without a valid ``route`` call finishes the run.
    """

    supervisor: Agent
    workers: List[str] = Field(default_factory=list)

    def process(self, state: Dict[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
        targets = [*self.workers, FINISH]
        decision: Dict[str, str] = {}

        def route(worker: str) -> str:
            """Route to a worker or finish.

            Args:
                worker: Worker name or FINISH.
            """
            if worker not in targets:
                return f"Invalid worker. Choose one of: {', '.join(targets)}"
            decision["next_worker"] = worker
            return f"Routing to: {worker}"

        chat = self.supervisor.get_chat()
        chat.register_tool(route)
        response = chat.chat(last_message(state.get("messages")))
        next_worker = decision.get("next_worker", FINISH)
        logger.debug(f"Supervisor {self.supervisor.name} routed to {next_worker}")
        return {"messages": [response], "next_worker": next_worker}


def supervisor_graph(
    supervisor: Agent,
    workers: Mapping[str, Agent],
    max_iterations: int = 50,
) -> CompiledGraph:
    """Supervisor delegating to workers until it routes to ``FINISH``.

    The supervisor's system prompt is extended with the team roster and a
    ``route`` tool is registered on its chat each turn. Every worker reports
    back to the supervisor.

    Args:
        supervisor: Agent deciding the next worker
        workers: Worker name to Agent, in delegation-menu order
        max_iterations: Safety cap on executed steps
    """
    if not isinstance(supervisor, Agent):
        raise TypeError("`supervisor` must be an Agent object.")
    if not isinstance(workers, Mapping) or not workers:
        raise TypeError("`workers` must be a non-empty mapping of names to Agent objects.")
    for name, worker in workers.items():
        if not isinstance(worker, Agent):
            raise TypeError("All workers must be Agent objects.")
        if name in (FINISH, "supervisor"):
            raise GraphValidationError(f"'{name}' is reserved and cannot name a worker.")

    names = list(workers)
    chat = supervisor.get_chat()
    chat.set_system_prompt(
        f"{chat.get_system_prompt() or ''}\n\n"
        f"You coordinate a team of workers: {', '.join(names)}.\n"
        "After each worker response, decide whether to delegate to another "
        "worker or finish. Call the `route` tool with the worker name or "
        f"\"{FINISH}\" to end."
    )

    builder = GraphBuilder(StateSchema(messages="append:list", next_worker="character"))
    builder.add_node("supervisor", SupervisorNode(supervisor=supervisor, workers=names))

    mapping = {name: name for name in names}
    mapping[FINISH] = END
    builder.add_conditional_edge(
        "supervisor", lambda state: state.get("next_worker") or FINISH, mapping
    )
    for name, worker in workers.items():
        builder.add_node(name, as_node(worker))
        builder.add_edge(name, "supervisor")
    builder.set_entry_point("supervisor")
    return builder.compile(max_iterations=max_iterations)
