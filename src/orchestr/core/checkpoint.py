"""Checkpointers persist graph state after every executed node.

A compiled graph with a checkpointer saves ``(thread_id, node, state)`` after
each step of a run whose config carries a ``thread_id``. Invoking the graph
again with the same ``thread_id`` restores the latest state and runs again
from the checkpointed node.

Backends:
    - MemoryCheckpointer: in-process dict of deep-copied checkpoints
    - FileCheckpointer: one JSON Lines file per thread, appended per save

Example:
    ```python
    saver = checkpointer("file", path="./checkpoints")
    builder.set_checkpointer(saver)
    graph = builder.compile()
    graph.invoke({"count": 0}, config={"thread_id": "run-1"})
    saver.history("run-1")  # one Checkpoint per executed node
    ```
"""

import copy
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

from orchestr.core.config import MAX_THREAD_ID_LENGTH
from orchestr.core.errors import CheckpointError
from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.CHECKPOINT)


class Checkpoint(BaseModel):
    """State of a thread right after ``node`` ran."""

    thread_id: str
    node: str
    state: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class Checkpointer(Protocol):
    """Storage strategy consumed by ``CompiledGraph``."""

    def save(self, thread_id: str, node: str, state: Dict[str, Any]) -> None: ...

    def load(self, thread_id: str) -> Optional[Checkpoint]: ...

    def history(self, thread_id: str) -> List[Checkpoint]: ...


def check_thread_id(thread_id: Any) -> str:
    if not isinstance(thread_id, str) or not thread_id:
        raise CheckpointError("`thread_id` must be a non-empty string.")
    if len(thread_id) > MAX_THREAD_ID_LENGTH:
        raise CheckpointError(
            f"`thread_id` must be at most {MAX_THREAD_ID_LENGTH} characters, "
            f"got {len(thread_id)}."
        )
    return thread_id


def _check_entry(node: Any, state: Any) -> None:
    if not isinstance(node, str) or not node:
        raise CheckpointError("`node` must be a non-empty string.")
    if not isinstance(state, dict):
        raise CheckpointError(f"`state` must be a dict, got '{type(state).__name__}'.")


class MemoryCheckpointer:
    """In-process checkpointer. Entries are deep copies of the saved state."""

    def __init__(self):
        self._store: Dict[str, List[Checkpoint]] = {}

    def save(self, thread_id: str, node: str, state: Dict[str, Any]) -> None:
        check_thread_id(thread_id)
        _check_entry(node, state)
        entry = Checkpoint(thread_id=thread_id, node=node, state=copy.deepcopy(state))
        self._store.setdefault(thread_id, []).append(entry)
        logger.debug(f"Saved checkpoint (thread: {thread_id}, node: {node})")

    def load(self, thread_id: str) -> Optional[Checkpoint]:
        check_thread_id(thread_id)
        entries = self._store.get(thread_id)
        if not entries:
            return None
        return entries[-1].model_copy(deep=True)

    def history(self, thread_id: str) -> List[Checkpoint]:
        check_thread_id(thread_id)
        return [entry.model_copy(deep=True) for entry in self._store.get(thread_id, [])]

    def clear(self, thread_id: Optional[str] = None) -> None:
        """Forget one thread, or every thread when ``thread_id`` is None."""
        if thread_id is None:
            self._store.clear()
        else:
            self._store.pop(check_thread_id(thread_id), None)

    def __repr__(self) -> str:
        return f"MemoryCheckpointer(threads={len(self._store)})"


class FileCheckpointer:
    """Checkpointer writing ``<path>/<sanitized thread id>.jsonl``.

    State values must be JSON serializable. Thread ids are sanitized to
    ``[A-Za-z0-9_-]`` for file names; each record keeps the original id.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.path.mkdir(parents=True, exist_ok=True)

    def _thread_file(self, thread_id: str) -> Path:
        safe_id = re.sub(r"[^A-Za-z0-9_-]", "_", thread_id)
        return self.path / f"{safe_id}.jsonl"

    def save(self, thread_id: str, node: str, state: Dict[str, Any]) -> None:
        check_thread_id(thread_id)
        _check_entry(node, state)
        entry = Checkpoint(thread_id=thread_id, node=node, state=state)
        try:
            line = entry.model_dump_json()
        except ValueError as e:
            raise CheckpointError(
                f"State for thread '{thread_id}' is not JSON serializable: {e}"
            ) from e
        thread_file = self._thread_file(thread_id)
        with thread_file.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        logger.debug(f"Saved checkpoint to {thread_file} (node: {node})")

    def history(self, thread_id: str) -> List[Checkpoint]:
        check_thread_id(thread_id)
        thread_file = self._thread_file(thread_id)
        if not thread_file.exists():
            return []
        entries = []
        with thread_file.open(encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    entry = Checkpoint.model_validate_json(line)
                    if entry.thread_id == thread_id:
                        entries.append(entry)
        return entries

    def load(self, thread_id: str) -> Optional[Checkpoint]:
        entries = self.history(thread_id)
        return entries[-1] if entries else None

    def clear(self, thread_id: str) -> None:
        """Delete the checkpoint file of a thread."""
        self._thread_file(check_thread_id(thread_id)).unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"FileCheckpointer(path={str(self.path)!r})"


def checkpointer(
    backend: str = "memory", path: Optional[Union[str, Path]] = None
) -> Union[MemoryCheckpointer, FileCheckpointer]:
    """Create a checkpointer for ``"memory"`` or ``"file"`` storage."""
    if backend == "memory":
        return MemoryCheckpointer()
    if backend == "file":
        if path is None:
            raise CheckpointError("File backend requires a `path` argument.")
        return FileCheckpointer(path)
    raise CheckpointError(f"Unknown checkpointer backend '{backend}'; use 'memory' or 'file'.")
