"""Exceptions and warnings raised by orchestr.

Builder and schema problems subclass ``ValueError``; failures while a graph is
running subclass ``RuntimeError``. Recoverable conditions are reported through
``warnings.warn`` with the ``OrchestrWarning`` categories below.
"""

from typing import Any, Optional


class OrchestrError(Exception):
    """Base class for all orchestr errors."""


class GraphValidationError(OrchestrError, ValueError):
    """Invalid graph declaration (builder methods and ``compile``)."""


class StateValidationError(OrchestrError, ValueError):
    """A state update does not conform to its ``StateSchema``.

    Attributes:
        field: Offending field name, if a single field is at fault
        expected: Declared type name
        actual: Runtime type name of the rejected value
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ):
        super().__init__(message)
        self.field = field
        self.expected = expected
        self.actual = actual


class NodeExecutionError(OrchestrError, RuntimeError):
    """A node handler raised or returned something other than a mapping."""

    def __init__(self, message: str, node: str):
        super().__init__(message)
        self.node = node


class RoutingError(OrchestrError, RuntimeError):
    """The next node could not be resolved."""

    def __init__(self, message: str, node: str, key: Any = None):
        super().__init__(message)
        self.node = node
        self.key = key


class CheckpointError(OrchestrError, ValueError):
    """Invalid checkpoint request (bad thread id, node name or state)."""


class GraphInterrupted(OrchestrError):
    """Raised by interrupt observers that want to pause a run.

    The engine itself never raises this; see ``raise_on_interrupt``.
    """

    def __init__(self, interrupt):
        super().__init__(interrupt.message)
        self.interrupt = interrupt


class OrchestrWarning(UserWarning):
    """Base class for orchestr warnings."""


class UnreachableNodeWarning(OrchestrWarning):
    """Compiled graph contains nodes the entry point never reaches."""


class GraphTruncatedWarning(OrchestrWarning):
    """A run stopped at ``max_iterations`` before reaching END."""


class UnknownToolWarning(OrchestrWarning):
    """A tool node skipped a call to an unregistered tool."""


class MemorySchemaWarning(OrchestrWarning):
    """A memory file has a missing or unsupported schema version."""
