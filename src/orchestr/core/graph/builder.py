"""Graph Builder

Declare nodes, edges and an entry point, then ``compile()`` into an
immutable ``CompiledGraph``. Every mutator returns the builder so calls can
be chained. ``compile()`` checks the whole topology at once:

- ``max_iterations`` is a finite positive integer
- the entry point is set and registered
- every edge source and target is registered (targets may be ``END``)
- every node has an outgoing edge
- interrupt gates name registered nodes
- nodes not reachable from the entry point produce an ``UnreachableNodeWarning``

Example:
    ```python
    schema = StateSchema(messages="append:list", count="integer")

    graph = (
        GraphBuilder(schema)
        .add_node("count", lambda state, config: {"count": state.get("count", 0) + 1})
        .add_conditional_edge(
            "count",
            lambda state: "done" if state["count"] >= 3 else "again",
            {"again": "count", "done": END},
        )
        .set_entry_point("count")
        .compile()
    )
    ```
"""

import warnings
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from orchestr.core.agent.base import Agent
from orchestr.core.checkpoint import Checkpointer
from orchestr.core.config import GraphConfig
from orchestr.core.errors import GraphValidationError, UnreachableNodeWarning
from orchestr.core.graph.base import CompiledGraph, ConditionalEdge, Edge
from orchestr.core.graph.constants import END
from orchestr.core.graph.nodes.agent import as_node
from orchestr.core.graph.nodes.base.node import Node, as_handler
from orchestr.core.graph.state import StateSchema
from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.GRAPH)


def _names(value: Union[str, Iterable[str], None], what: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    names = list(value)
    for name in names:
        if not isinstance(name, str) or not name:
            raise GraphValidationError(f"`{what}` must contain non-empty node names.")
    return names


class GraphBuilder(BaseModel):
    """Mutable staging area for a graph definition.

    Attributes:
        state_schema: Optional schema validating and merging state updates
        nodes: Registered node handlers by name, in registration order
        edges: Fixed edges
        conditional_edges: Conditional edge groups
        entry_point: First node to run
        interrupt_before: Nodes signalling an interrupt before they run
        interrupt_after: Nodes signalling an interrupt after they run
        checkpointer: Storage for per-step checkpoints
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state_schema: Optional[StateSchema] = None
    nodes: Dict[str, Node] = Field(default_factory=dict)
    edges: List[Edge] = Field(default_factory=list)
    conditional_edges: List[ConditionalEdge] = Field(default_factory=list)
    entry_point: Optional[str] = None
    interrupt_before: List[str] = Field(default_factory=list)
    interrupt_after: List[str] = Field(default_factory=list)
    checkpointer: Optional[Any] = None

    def __init__(self, state_schema: Optional[StateSchema] = None, **data):
        if state_schema is not None and not isinstance(state_schema, StateSchema):
            raise GraphValidationError("`state_schema` must be a StateSchema or None.")
        super().__init__(state_schema=state_schema, **data)

    def _has_fixed_edge(self, node: str) -> bool:
        return any(edge.source == node for edge in self.edges)

    def _has_conditional_edge(self, node: str) -> bool:
        return any(edge.source == node for edge in self.conditional_edges)

    def add_node(self, name: str, handler: Any) -> "GraphBuilder":
        """Register a node.

        Args:
            name: Unique node name (``END`` is reserved)
            handler: ``(state, config) -> dict`` callable, ``Node`` or ``Agent``

        Raises:
            GraphValidationError: Bad name, duplicate name or bad handler
        """
        if not isinstance(name, str) or not name:
            raise GraphValidationError("Node name must be a non-empty string.")
        if name == END:
            raise GraphValidationError(f"Cannot use reserved name '{END}' as a node name.")
        if name in self.nodes:
            raise GraphValidationError(f"Node '{name}' already exists.")

        if isinstance(handler, Agent):
            node = as_node(handler)
        else:
            try:
                node = as_handler(handler)
            except TypeError as e:
                raise GraphValidationError(f"Invalid handler for node '{name}': {e}") from e

        self.nodes[name] = node
        logger.debug(f"Added node: {name} of type {type(node).__name__}")
        return self

    def add_edge(self, from_node: str, to_node: str) -> "GraphBuilder":
        """Add a fixed edge ``from_node -> to_node``."""
        for value, label in ((from_node, "from_node"), (to_node, "to_node")):
            if not isinstance(value, str) or not value:
                raise GraphValidationError(f"`{label}` must be a non-empty string.")
        if self._has_conditional_edge(from_node):
            raise GraphValidationError(
                f"Node '{from_node}' already has a conditional edge; cannot add a fixed edge."
            )
        if self._has_fixed_edge(from_node):
            raise GraphValidationError(f"Node '{from_node}' already has a fixed edge.")

        self.edges.append(Edge(source=from_node, target=to_node))
        logger.debug(f"Added edge: {from_node} --> {to_node}")
        return self

    def add_conditional_edge(
        self,
        from_node: str,
        condition: Callable[[Dict[str, Any]], str],
        mapping: Mapping[str, str],
    ) -> "GraphBuilder":
        """Route from ``from_node`` to ``mapping[condition(state)]``.

        Args:
            from_node: Source node
            condition: Function of the post-merge state returning a mapping key
            mapping: Non-empty mapping of keys to node names (or ``END``)
        """
        if not isinstance(from_node, str) or not from_node:
            raise GraphValidationError("`from_node` must be a non-empty string.")
        if not callable(condition):
            raise GraphValidationError("`condition` must be a function.")
        if not isinstance(mapping, Mapping) or not mapping:
            raise GraphValidationError("`mapping` must be a non-empty mapping of keys to node names.")
        for key, target in mapping.items():
            if not isinstance(key, str) or not key:
                raise GraphValidationError("`mapping` keys must be non-empty strings.")
            if not isinstance(target, str) or not target:
                raise GraphValidationError(
                    f"`mapping` target for key '{key}' must be a non-empty node name."
                )
        if self._has_fixed_edge(from_node):
            raise GraphValidationError(
                f"Node '{from_node}' already has a fixed edge; cannot add a conditional edge."
            )
        if self._has_conditional_edge(from_node):
            raise GraphValidationError(f"Node '{from_node}' already has a conditional edge.")

        self.conditional_edges.append(
            ConditionalEdge(source=from_node, condition=condition, mapping=dict(mapping))
        )
        routes = ", ".join(f"{key} -> {target}" for key, target in mapping.items())
        logger.debug(f"Added conditional edge from {from_node}: {routes}")
        return self

    def set_entry_point(self, name: str) -> "GraphBuilder":
        if not isinstance(name, str) or not name:
            raise GraphValidationError("Entry point must be a non-empty string.")
        self.entry_point = name
        return self

    def set_interrupt(
        self,
        before: Union[str, Iterable[str], None] = None,
        after: Union[str, Iterable[str], None] = None,
    ) -> "GraphBuilder":
        """Signal an interrupt before and/or after the named nodes run."""
        if before is not None:
            self.interrupt_before = _names(before, "before")
        if after is not None:
            self.interrupt_after = _names(after, "after")
        return self

    def set_checkpointer(self, checkpointer: Any) -> "GraphBuilder":
        """Save state after every step of runs that carry a ``thread_id``."""
        if checkpointer is not None and not isinstance(checkpointer, Checkpointer):
            raise GraphValidationError(
                "`checkpointer` must provide save(), load() and history()."
            )
        self.checkpointer = checkpointer
        return self

    def compile(self, max_iterations: int = 100, verbose: bool = False) -> CompiledGraph:
        """Validate the topology and freeze it into a ``CompiledGraph``.

        Raises:
            GraphValidationError: Invalid settings or topology
        """
        try:
            config = GraphConfig(max_iterations=max_iterations, verbose=verbose)
        except ValidationError as e:
            raise GraphValidationError(
                f"`max_iterations` must be a finite positive integer, got {max_iterations!r}."
            ) from e

        if self.entry_point is None:
            raise GraphValidationError("Entry point must be set before compiling.")
        if self.entry_point not in self.nodes:
            raise GraphValidationError(
                f"Entry point '{self.entry_point}' is not a registered node."
            )

        valid_targets = set(self.nodes) | {END}
        for edge in self.edges:
            if edge.source not in self.nodes:
                raise GraphValidationError(
                    f"Edge source '{edge.source}' is not a registered node."
                )
            if edge.target not in valid_targets:
                raise GraphValidationError(
                    f"Edge target '{edge.target}' is not a registered node (or END)."
                )
        for cond in self.conditional_edges:
            if cond.source not in self.nodes:
                raise GraphValidationError(
                    f"Conditional edge source '{cond.source}' is not a registered node."
                )
            for key, target in cond.mapping.items():
                if target not in valid_targets:
                    raise GraphValidationError(
                        f"Conditional edge target '{target}' (key '{key}') from "
                        f"'{cond.source}' is not a registered node (or END)."
                    )

        sources = {edge.source for edge in self.edges}
        sources.update(cond.source for cond in self.conditional_edges)
        dead_ends = [name for name in self.nodes if name not in sources]
        if dead_ends:
            raise GraphValidationError(
                f"Dead-end nodes with no outgoing edge: {', '.join(dead_ends)}. "
                "Add an edge from each or route to END."
            )

        for label, names in (("interrupt_before", self.interrupt_before),
                             ("interrupt_after", self.interrupt_after)):
            unknown = [name for name in names if name not in self.nodes]
            if unknown:
                raise GraphValidationError(
                    f"{label} references unknown nodes: {', '.join(unknown)}"
                )

        reachable = self._reachable()
        unreachable = [name for name in self.nodes if name not in reachable]
        if unreachable:
            message = f"Unreachable nodes: {', '.join(unreachable)}"
            logger.warning(message)
            warnings.warn(message, UnreachableNodeWarning, stacklevel=2)

        graph = CompiledGraph(
            nodes=self.nodes,
            edges=self.edges,
            conditional_edges=self.conditional_edges,
            entry=self.entry_point,
            schema=self.state_schema,
            interrupt_before=tuple(self.interrupt_before),
            interrupt_after=tuple(self.interrupt_after),
            checkpointer=self.checkpointer,
            config=config,
        )
        logger.debug(f"Compiled {graph!r}")
        return graph

    def _reachable(self) -> Set[str]:
        """Breadth-first search from the entry point over all edge targets."""
        successors: Dict[str, Set[str]] = {}
        for edge in self.edges:
            successors.setdefault(edge.source, set()).add(edge.target)
        for cond in self.conditional_edges:
            successors.setdefault(cond.source, set()).update(cond.mapping.values())

        seen = {self.entry_point}
        queue = deque([self.entry_point])
        while queue:
            for target in successors.get(queue.popleft(), ()):
                if target != END and target not in seen:
                    seen.add(target)
                    queue.append(target)
        return seen

    def __repr__(self) -> str:
        return (
            f"GraphBuilder(nodes={list(self.nodes)!r}, entry={self.entry_point!r}, "
            f"edges={len(self.edges)}, conditional_edges={len(self.conditional_edges)})"
        )

    def __str__(self) -> str:
        return (
            "<GraphBuilder>\n"
            f"  Nodes: {', '.join(self.nodes) or '(none)'}\n"
            f"  Entry: {self.entry_point or '(not set)'}\n"
            f"  Edges: {len(self.edges)} fixed, {len(self.conditional_edges)} conditional\n"
        )
