"""Compiled graphs and the execution engine.

A ``CompiledGraph`` is produced by ``GraphBuilder.compile()`` and never
changes afterwards. Running it drives a single-threaded step loop:

1. Stop at ``END``
2. Signal ``interrupt_before`` gates
3. Call the node handler with ``(state, config)``
4. Merge its partial update (schema reducers or shallow overwrite)
5. Count the step and checkpoint ``(thread_id, node, state)``
6. Signal ``interrupt_after`` gates with the merged state
7. Route via the node's conditional edge, else its fixed edge
8. Stop with a warning once ``max_iterations`` steps have run

Example:
    ```python
    builder = GraphBuilder()
    builder.add_node("a", lambda state, config: {"value": state["value"] + 1})
    builder.add_node("b", lambda state, config: {"value": state["value"] * 2})
    builder.add_edge("a", "b").add_edge("b", END).set_entry_point("a")

    graph = builder.compile()
    graph.invoke({"value": 0})          # {"value": 2}
    graph.stream({"value": 0})          # [Snapshot(node="a", ...), Snapshot(node="b", ...)]
    ```
"""

import copy
import inspect
import time
import warnings
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from orchestr.core.config import GraphConfig, RunConfig
from orchestr.core.errors import (
    GraphTruncatedWarning,
    GraphValidationError,
    NodeExecutionError,
    RoutingError,
)
from orchestr.core.graph.constants import END, TRUNCATED
from orchestr.core.graph.interrupt import Interrupt, InterruptHandler
from orchestr.core.graph.nodes.base.node import Node
from orchestr.core.graph.state import Snapshot, StateSchema, merge_state_plain
from orchestr.core.logging import get_logger, log_state, LogComponent

logger = get_logger(LogComponent.GRAPH)

StepCallback = Callable[[Snapshot], Any]


class Edge(BaseModel):
    """Fixed transition ``source -> target``."""
    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class ConditionalEdge(BaseModel):
    """Transition chosen by ``mapping[condition(state)]``."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source: str
    condition: Callable[[Dict[str, Any]], str]
    mapping: Dict[str, str] = Field(..., min_length=1)


class _Run:
    """Mutable bookkeeping of one invoke/stream call."""

    def __init__(
        self,
        graph: "CompiledGraph",
        state: Optional[Mapping],
        config: Any,
        on_interrupt: Optional[InterruptHandler],
        verbose: Optional[bool],
        mode: str,
    ):
        self.graph = graph
        self.on_interrupt = on_interrupt
        self.verbose = graph.verbose if verbose is None else verbose
        self.config, run_config = graph._parse_config(config)
        self.thread_id = run_config.thread_id
        self.node, self.state = graph._starting_point(state, run_config)
        self.step = 0
        self.truncated = False
        self.started = time.perf_counter()
        self.log(f"Starting graph {mode} at node '{self.node}'")

    def log(self, message: str) -> None:
        if self.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    @property
    def done(self) -> bool:
        return self.truncated or self.node == END

    def gate(self, when: str) -> Any:
        """Signal the interrupt gate ``when`` the current node is listed there.

        Returns whatever the observer returned, so async drivers can await it.
        """
        names = self.graph._interrupt_before if when == "before" else self.graph._interrupt_after
        if self.node in names:
            return self.signal(when)
        return None

    def settle(self, outcome: Any) -> None:
        """Reject async observer results in a sync run."""
        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise TypeError(
                "Interrupt observer returned an awaitable; "
                "use ainvoke() or astream() for async observers."
            )

    def begin(self) -> Callable[..., Any]:
        """Pick the handler of the current node."""
        self.log(f"Running node '{self.node}' (step {self.step + 1})")
        return self.graph._nodes[self.node]

    def call(self, handler: Callable[..., Any]) -> Any:
        try:
            result = handler(self.state, self.config)
        except Exception as e:
            raise NodeExecutionError(f"Error in node '{self.node}': {e}", node=self.node) from e
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise NodeExecutionError(
                f"Node '{self.node}' returned an awaitable; "
                "use ainvoke() or astream() for async handlers.",
                node=self.node,
            )
        return result

    async def acall(self, handler: Callable[..., Any]) -> Any:
        try:
            result = handler(self.state, self.config)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise NodeExecutionError(f"Error in node '{self.node}': {e}", node=self.node) from e
        return result

    def record(self, result: Any) -> None:
        """Merge a handler result, count the step and checkpoint it."""
        if not isinstance(result, Mapping):
            raise NodeExecutionError(
                f"Node '{self.node}' handler must return a state-update mapping, "
                f"got '{type(result).__name__}'.",
                node=self.node,
            )
        self.state = self.graph._merge(self.state, result)
        self.step += 1
        log_state(logger, self.state, prefix=f"[{self.node}] ")

        checkpointer = self.graph.checkpointer
        if checkpointer is not None and self.thread_id is not None:
            checkpointer.save(self.thread_id, self.node, self.state)

    def advance(self) -> None:
        """Route to the next node and stop at ``max_iterations``."""
        target = self.graph._resolve_next(self.node, self.state)
        self.log(f"Routing '{self.node}' --> '{target}'")
        self.node = target

        limit = self.graph.max_iterations
        if self.step >= limit and self.node != END:
            self.truncated = True
            message = (
                f"Graph exceeded max_iterations ({limit}) before reaching END; "
                f"returning partial state (next node '{self.node}')."
            )
            logger.warning(message)
            warnings.warn(message, GraphTruncatedWarning, stacklevel=4)

    def signal(self, when: str) -> Any:
        interrupt = Interrupt(
            state=copy.deepcopy(self.state), node=self.node, step=self.step, when=when
        )
        logger.info(interrupt.message)
        if self.on_interrupt is not None:
            return self.on_interrupt(interrupt)
        return None

    def snapshot(self, node: str) -> Snapshot:
        return Snapshot(state=copy.deepcopy(self.state), node=node, step=self.step)

    def finish(self) -> Dict[str, Any]:
        elapsed = time.perf_counter() - self.started
        status = "truncated after" if self.truncated else "completed in"
        self.log(f"Graph {status} {self.step} steps ({elapsed:.2f}s)")
        state = dict(self.state)
        if self.truncated:
            state[TRUNCATED] = True
        return state


class CompiledGraph:
    """Immutable, runnable agent graph. Create via ``GraphBuilder.compile()``.

    Reruns are independent: running never modifies the graph definition, so
    one compiled graph can serve many ``invoke``/``stream`` calls. Mutable
    collaborators closed over by node handlers are not protected.
    """

    __slots__ = (
        "_nodes", "_edges", "_conditional_edges", "_entry", "_schema",
        "_interrupt_before", "_interrupt_after", "_checkpointer", "_config",
        "_edge_map", "_cond_map",
    )

    def __init__(
        self,
        nodes: Mapping[str, Node],
        edges: List[Edge],
        conditional_edges: List[ConditionalEdge],
        entry: str,
        schema: Optional[StateSchema] = None,
        interrupt_before: Tuple[str, ...] = (),
        interrupt_after: Tuple[str, ...] = (),
        checkpointer: Any = None,
        config: Optional[GraphConfig] = None,
    ):
        set_ = object.__setattr__
        set_(self, "_nodes", MappingProxyType(dict(nodes)))
        set_(self, "_edges", tuple(edges))
        set_(self, "_conditional_edges", tuple(conditional_edges))
        set_(self, "_entry", entry)
        set_(self, "_schema", schema)
        set_(self, "_interrupt_before", frozenset(interrupt_before))
        set_(self, "_interrupt_after", frozenset(interrupt_after))
        set_(self, "_checkpointer", checkpointer)
        set_(self, "_config", config or GraphConfig())
        # Lookup tables for O(1) routing
        set_(self, "_edge_map", MappingProxyType({e.source: e.target for e in edges}))
        set_(self, "_cond_map", MappingProxyType({ce.source: ce for ce in conditional_edges}))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("CompiledGraph is immutable")

    # -- read-only views ---------------------------------------------------

    @property
    def entry_point(self) -> str:
        return self._entry

    @property
    def schema(self) -> Optional[StateSchema]:
        return self._schema

    @property
    def checkpointer(self) -> Any:
        return self._checkpointer

    @property
    def max_iterations(self) -> int:
        return self._config.max_iterations

    @property
    def verbose(self) -> bool:
        return self._config.verbose

    @property
    def interrupt_before(self) -> frozenset:
        return self._interrupt_before

    @property
    def interrupt_after(self) -> frozenset:
        return self._interrupt_after

    def get_nodes(self) -> List[str]:
        """Node names in registration order."""
        return list(self._nodes)

    def get_edges(self) -> Dict[str, List[Any]]:
        """Edge records: ``{"fixed": [Edge], "conditional": [ConditionalEdge]}``."""
        return {"fixed": list(self._edges), "conditional": list(self._conditional_edges)}

    def as_mermaid(self) -> str:
        """Mermaid flowchart source for this graph."""
        from orchestr.core.graph.viz import as_mermaid
        return as_mermaid(self)

    # -- execution ---------------------------------------------------------

    def invoke(
        self,
        state: Optional[Mapping] = None,
        config: Any = None,
        *,
        on_interrupt: Optional[InterruptHandler] = None,
        verbose: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Run the graph to completion.

        Args:
            state: Initial state (copied; never modified)
            config: Run config mapping or ``RunConfig``; recognized keys are
                ``thread_id`` and ``resume_from``. Passed to every handler.
            on_interrupt: Observer called with each ``Interrupt``
            verbose: Override the compiled ``verbose`` flag for this run

        Returns:
            Final state. Carries ``graph_truncated: True`` when the run
            stopped at ``max_iterations``.

        Raises:
            NodeExecutionError: A handler raised or returned a non-mapping
            RoutingError: The next node could not be resolved
            StateValidationError: An update violated the state schema
        """
        run = _Run(self, state, config, on_interrupt, verbose, "execution")
        for _ in self._drive(run):
            pass
        return run.finish()

    def stream(
        self,
        state: Optional[Mapping] = None,
        config: Any = None,
        *,
        on_step: Optional[StepCallback] = None,
        on_interrupt: Optional[InterruptHandler] = None,
        verbose: Optional[bool] = None,
    ) -> List[Snapshot]:
        """Run the graph and collect a ``Snapshot`` after every executed node.

        ``on_step`` is called synchronously with each snapshot before the
        next node runs. Arguments otherwise match ``invoke``.
        """
        run = _Run(self, state, config, on_interrupt, verbose, "streaming")
        snapshots: List[Snapshot] = []
        for node in self._drive(run):
            snapshot = run.snapshot(node)
            snapshots.append(snapshot)
            if on_step is not None:
                on_step(snapshot)
        run.finish()
        return snapshots

    async def ainvoke(
        self,
        state: Optional[Mapping] = None,
        config: Any = None,
        *,
        on_interrupt: Optional[InterruptHandler] = None,
        verbose: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Async ``invoke``: coroutine handlers and interrupt observers are awaited."""
        run = _Run(self, state, config, on_interrupt, verbose, "execution")
        async for _ in self._adrive(run):
            pass
        return run.finish()

    async def astream(
        self,
        state: Optional[Mapping] = None,
        config: Any = None,
        *,
        on_step: Optional[StepCallback] = None,
        on_interrupt: Optional[InterruptHandler] = None,
        verbose: Optional[bool] = None,
    ) -> List[Snapshot]:
        """Async ``stream``: coroutine handlers, interrupt observers and ``on_step`` are awaited."""
        run = _Run(self, state, config, on_interrupt, verbose, "streaming")
        snapshots: List[Snapshot] = []
        async for node in self._adrive(run):
            snapshot = run.snapshot(node)
            snapshots.append(snapshot)
            if on_step is not None:
                outcome = on_step(snapshot)
                if inspect.isawaitable(outcome):
                    await outcome
        run.finish()
        return snapshots

    def _drive(self, run: _Run) -> Iterator[str]:
        """Execute steps, yielding the name of each node that ran."""
        while not run.done:
            node = run.node
            run.settle(run.gate("before"))
            run.record(run.call(run.begin()))
            run.settle(run.gate("after"))
            run.advance()
            yield node

    async def _adrive(self, run: _Run) -> AsyncIterator[str]:
        while not run.done:
            node = run.node
            outcome = run.gate("before")
            if inspect.isawaitable(outcome):
                await outcome
            run.record(await run.acall(run.begin()))
            outcome = run.gate("after")
            if inspect.isawaitable(outcome):
                await outcome
            run.advance()
            yield node

    # -- helpers -----------------------------------------------------------

    def _parse_config(self, config: Any) -> Tuple[Dict[str, Any], RunConfig]:
        if config is None:
            config = {}
        if isinstance(config, RunConfig):
            return config.model_dump(exclude_none=True), config
        if not isinstance(config, Mapping):
            raise GraphValidationError(
                f"`config` must be a mapping, got '{type(config).__name__}'."
            )
        try:
            run_config = RunConfig.model_validate(dict(config))
        except ValidationError as e:
            raise GraphValidationError(f"Invalid run config: {e}") from e
        return dict(config), run_config

    def _starting_point(
        self, state: Optional[Mapping], run_config: RunConfig
    ) -> Tuple[str, Dict[str, Any]]:
        if state is not None and not isinstance(state, Mapping):
            raise GraphValidationError(
                f"`state` must be a mapping, got '{type(state).__name__}'."
            )
        node = self._entry
        current = copy.deepcopy(dict(state or {}))

        if self._checkpointer is not None and run_config.thread_id is not None:
            saved = self._checkpointer.load(run_config.thread_id)
            if saved is not None:
                saved_node, saved_state = _checkpoint_parts(saved)
                if saved_node not in self._nodes:
                    raise RoutingError(
                        f"Checkpoint for thread '{run_config.thread_id}' references "
                        f"unknown node '{saved_node}'.",
                        node=saved_node,
                    )
                node = saved_node
                current = copy.deepcopy(dict(saved_state))
                logger.debug(f"Resuming thread '{run_config.thread_id}' at '{node}'")

        resume = run_config.resume_from
        if resume is not None:
            if resume.node != END and resume.node not in self._nodes:
                raise RoutingError(
                    f"Cannot resume at unknown node '{resume.node}'.", node=resume.node
                )
            node = resume.node
            if resume.state is not None:
                current = copy.deepcopy(resume.state)

        return node, current

    def _merge(self, state: Dict[str, Any], updates: Mapping) -> Dict[str, Any]:
        if self._schema is not None:
            return self._schema.merge(state, updates)
        return merge_state_plain(state, updates)

    def _resolve_next(self, node: str, state: Dict[str, Any]) -> str:
        cond = self._cond_map.get(node)
        if cond is not None:
            try:
                key = cond.condition(state)
            except Exception as e:
                raise RoutingError(
                    f"Condition function for node '{node}' failed: {e}", node=node
                ) from e
            if not isinstance(key, str):
                raise RoutingError(
                    f"Condition function for node '{node}' must return a single "
                    f"string key, got '{type(key).__name__}'.",
                    node=node,
                    key=key,
                )
            target = cond.mapping.get(key)
            if target is None:
                raise RoutingError(
                    f"Condition returned '{key}' but no mapping exists for that key "
                    f"from node '{node}'.",
                    node=node,
                    key=key,
                )
            return target

        target = self._edge_map.get(node)
        if target is not None:
            return target

        raise RoutingError(f"No edge found from node '{node}'. Dead end.", node=node)

    def __repr__(self) -> str:
        return (
            f"CompiledGraph(nodes={list(self._nodes)!r}, entry={self._entry!r}, "
            f"max_iterations={self.max_iterations})"
        )

    def __str__(self) -> str:
        return (
            "<CompiledGraph>\n"
            f"  Nodes: {', '.join(self._nodes)}\n"
            f"  Entry: {self._entry}\n"
            f"  Max iterations: {self.max_iterations}\n"
        )


def _checkpoint_parts(saved: Any) -> Tuple[str, Mapping]:
    """Accept ``Checkpoint`` records as well as plain ``{node, state}`` mappings."""
    if isinstance(saved, Mapping):
        return saved["node"], saved["state"]
    return saved.node, saved.state
