"""orchestr - graph-based orchestration of LLM agents."""

from orchestr.core.agent import Agent, ChatClient, MirascopeChat
from orchestr.core.checkpoint import (
    Checkpoint,
    Checkpointer,
    FileCheckpointer,
    MemoryCheckpointer,
    checkpointer,
)
from orchestr.core.config import GraphConfig, RunConfig
from orchestr.core.errors import (
    CheckpointError,
    GraphInterrupted,
    GraphTruncatedWarning,
    GraphValidationError,
    NodeExecutionError,
    OrchestrError,
    RoutingError,
    StateValidationError,
    UnreachableNodeWarning,
)
from orchestr.core.graph import (
    END,
    CompiledGraph,
    GraphBuilder,
    Interrupt,
    Snapshot,
    StateSchema,
    approval_tool,
    as_mermaid,
    as_node,
    pipeline_graph,
    raise_on_interrupt,
    react_graph,
    supervisor_graph,
    tool_node,
)
from orchestr.core.logging import configure_logging, LogComponent, LogLevel
from orchestr.core.memory import Memory

__version__ = "0.1.0"

__all__ = [
    # Graphs
    "GraphBuilder",
    "CompiledGraph",
    "StateSchema",
    "Snapshot",
    "END",
    "as_mermaid",
    "react_graph",
    "pipeline_graph",
    "supervisor_graph",

    # Nodes and agents
    "Agent",
    "ChatClient",
    "MirascopeChat",
    "as_node",
    "tool_node",

    # Interrupts
    "Interrupt",
    "GraphInterrupted",
    "raise_on_interrupt",
    "approval_tool",

    # Persistence
    "Checkpoint",
    "Checkpointer",
    "MemoryCheckpointer",
    "FileCheckpointer",
    "checkpointer",
    "Memory",

    # Config, errors and logging
    "GraphConfig",
    "RunConfig",
    "OrchestrError",
    "GraphValidationError",
    "StateValidationError",
    "NodeExecutionError",
    "RoutingError",
    "CheckpointError",
    "UnreachableNodeWarning",
    "GraphTruncatedWarning",
    "configure_logging",
    "LogLevel",
    "LogComponent",
]
