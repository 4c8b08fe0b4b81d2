"""Key-value memory shared across runs.

The ``"local"`` backend keeps values in a dict. The ``"file"`` backend also
writes the whole store to a JSON file after every change, tagged with
``_schema_version``. It is not safe for concurrent writers.
"""

import json
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from orchestr.core.errors import MemorySchemaWarning
from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.MEMORY)

SCHEMA_VERSION = 1
_VERSION_KEY = "_schema_version"


class Memory:
    """Key-value store with local and JSON file backends.

    Example:
        ```python
        memory = Memory("file", path="notes.json")
        memory.set("user", "Ada")
        memory.get("user")            # "Ada"
        memory.get("missing", 0)      # 0
        ```
    """

    __slots__ = ("_backend", "_path", "_store")

    def __init__(self, backend: str = "local", path: Optional[Union[str, Path]] = None):
        if backend not in ("local", "file"):
            raise ValueError(f"Unknown memory backend '{backend}'; use 'local' or 'file'.")
        self._backend = backend
        self._path: Optional[Path] = None
        self._store: Dict[str, Any] = {}

        if backend == "file":
            if path is None:
                raise ValueError("File backend requires a `path` argument.")
            self._path = Path(path).expanduser()
            if self._path.exists():
                self._store = self._read()
            else:
                self._persist()

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _read(self) -> Dict[str, Any]:
        with self._path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Memory file {self._path} must contain a JSON object.")

        version = data.pop(_VERSION_KEY, None)
        if version is None:
            message = "Reading memory data without a schema version (old format)."
            logger.warning(message)
            warnings.warn(message, MemorySchemaWarning, stacklevel=3)
        elif version > SCHEMA_VERSION:
            message = (
                f"Memory schema version {version} is newer than supported version "
                f"{SCHEMA_VERSION}. Data may not be read correctly."
            )
            logger.warning(message)
            warnings.warn(message, MemorySchemaWarning, stacklevel=3)
        return data

    def _persist(self) -> None:
        if self._backend != "file":
            return
        out = dict(self._store)
        out[_VERSION_KEY] = SCHEMA_VERSION
        text = json.dumps(out, indent=2)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(text, encoding="utf-8")

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str) or not key:
            raise ValueError("`key` must be a non-empty string.")
        if key == _VERSION_KEY:
            raise ValueError(f"`{_VERSION_KEY}` is a reserved key.")

    def set(self, key: str, value: Any) -> "Memory":
        """Store a value (JSON serializable for the file backend)."""
        self._check_key(key)
        previous = dict(self._store)
        self._store[key] = value
        try:
            self._persist()
        except (TypeError, ValueError):
            self._store = previous
            raise
        return self

    def get(self, key: str, default: Any = None) -> Any:
        self._check_key(key)
        return self._store.get(key, default)

    def has(self, key: str) -> bool:
        self._check_key(key)
        return key in self._store

    def delete(self, key: str) -> "Memory":
        self._check_key(key)
        self._store.pop(key, None)
        self._persist()
        return self

    def keys(self) -> List[str]:
        return list(self._store)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._store)

    def clear(self) -> "Memory":
        self._store = {}
        self._persist()
        return self

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __repr__(self) -> str:
        return f"Memory(backend={self._backend!r}, keys={len(self._store)})"
