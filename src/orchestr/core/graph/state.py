"""State management for the graph system.

This module provides:
1. Reducer: An enumeration of merge strategies for schema fields
2. FieldSpec: The declared type and reducer of one state field
3. StateSchema: Typed field declarations used to validate and merge node output
4. Snapshot: An immutable record of the state after a node executed
5. merge_state_plain: Shallow overwrite merge used when no schema is set

State itself is a plain ``dict`` mapping field names to JSON-like values.
Every merge returns a new dict; neither argument is modified.
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from orchestr.core.errors import StateValidationError


class Reducer(str, Enum):
    """How a field's new value is combined with its current value."""
    OVERWRITE = "overwrite"
    APPEND = "append"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_tabular(value: Any) -> bool:
    # pandas / polars style frames, or a list of row mappings
    if hasattr(value, "columns") and hasattr(value, "__len__"):
        return True
    return isinstance(value, list) and all(isinstance(row, Mapping) for row in value)


_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "any": lambda value: True,
    "logical": lambda value: isinstance(value, bool),
    "bool": lambda value: isinstance(value, bool),
    "numeric": _is_number,
    "number": _is_number,
    "character": lambda value: isinstance(value, str),
    "string": lambda value: isinstance(value, str),
    "str": lambda value: isinstance(value, str),
    "integer": _is_integer,
    "int": _is_integer,
    "list": lambda value: isinstance(value, list),
    "dict": lambda value: isinstance(value, Mapping),
    "mapping": lambda value: isinstance(value, Mapping),
    "data.frame": _is_tabular,
    "tabular": _is_tabular,
}


class FieldSpec(BaseModel):
    """Declared type and reducer of a single state field.

    Attributes:
        type: A type name (see ``StateSchema``) or a Python class
        reducer: Merge strategy applied by ``StateSchema.merge``
    """
    model_config = ConfigDict(frozen=True)

    type: Union[str, Type[Any]] = "any"
    reducer: Reducer = Reducer.OVERWRITE

    @classmethod
    def parse(cls, spec: Any) -> "FieldSpec":
        """Build a spec from ``"numeric"``, ``"append:list"``, a class or a FieldSpec."""
        if isinstance(spec, FieldSpec):
            return spec
        if isinstance(spec, type):
            return cls(type=spec)
        if not isinstance(spec, str) or not spec:
            raise StateValidationError(
                f"Each field spec must be a non-empty string or a class, got {spec!r}."
            )
        if spec.startswith("append:"):
            return cls(type=spec[len("append:"):] or "any", reducer=Reducer.APPEND)
        return cls(type=spec)

    @property
    def type_name(self) -> str:
        return self.type if isinstance(self.type, str) else self.type.__name__

    def matches(self, value: Any) -> bool:
        """Check a runtime value against the declared type."""
        if not isinstance(self.type, str):
            return isinstance(value, self.type)
        check = _TYPE_CHECKS.get(self.type)
        if check is not None:
            return check(value)
        # Unknown names are class names matched anywhere in the value's MRO.
        return any(klass.__name__ == self.type for klass in type(value).__mro__)


class StateSchema:
    """Typed state fields with reducers.

    Field specs are strings: ``"any"``, ``"logical"``, ``"numeric"``,
    ``"character"``, ``"integer"``, ``"list"``, ``"dict"``, ``"data.frame"``,
    or any class name; prefix with ``"append:"`` for the append reducer.
    A Python class or a ``FieldSpec`` is accepted as well.

    Example:
        ```python
        schema = StateSchema(messages="append:list", done="logical", max_append=50)
        schema.merge({"messages": ["a"]}, {"messages": ["b"], "done": True})
        # {"messages": ["a", "b"], "done": True}
        ```

    Args:
        fields: Optional mapping of field name to spec (for names that are
            not valid keywords)
        max_append: Retained length of append fields; the oldest items are
            dropped first. ``None`` keeps everything.
        **specs: Field name to spec
    """

    __slots__ = ("_fields", "_max_append")

    def __init__(
        self,
        fields: Optional[Mapping] = None,
        *,
        max_append: Optional[int] = None,
        **specs: Any
    ):
        declared = dict(fields or {})
        declared.update(specs)
        if not declared:
            raise StateValidationError("StateSchema requires at least one field specification.")
        for name in declared:
            if not isinstance(name, str) or not name:
                raise StateValidationError("All StateSchema fields must be named.")
        if max_append is not None and (
            isinstance(max_append, bool) or not isinstance(max_append, int) or max_append < 1
        ):
            raise StateValidationError("`max_append` must be a positive integer or None.")
        object.__setattr__(
            self, "_fields",
            MappingProxyType({name: FieldSpec.parse(spec) for name, spec in declared.items()})
        )
        object.__setattr__(self, "_max_append", max_append)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("StateSchema is immutable")

    def __repr__(self) -> str:
        specs = ", ".join(
            f"{name}={'append:' if spec.reducer is Reducer.APPEND else ''}{spec.type_name}"
            for name, spec in self._fields.items()
        )
        return f"StateSchema({specs}, max_append={self._max_append})"

    @property
    def fields(self) -> Mapping:
        """Read-only mapping of field name to FieldSpec."""
        return self._fields

    @property
    def max_append(self) -> Optional[int]:
        return self._max_append

    def field_names(self) -> List[str]:
        """Field names in declaration order."""
        return list(self._fields)

    def validate(self, updates: Mapping) -> None:
        """Validate a partial state update.

        Raises:
            StateValidationError: On unknown fields or type mismatches
        """
        if not isinstance(updates, Mapping):
            raise StateValidationError(
                f"State updates must be a mapping, got '{type(updates).__name__}'."
            )
        unknown = [name for name in updates if name not in self._fields]
        if unknown:
            raise StateValidationError(
                f"Unknown state fields: {', '.join(map(str, unknown))}",
                field=unknown[0],
            )
        for name, value in updates.items():
            spec = self._fields[name]
            if spec.type == "any" or spec.matches(value):
                continue
            actual = type(value).__name__
            raise StateValidationError(
                f"Field '{name}' expects type '{spec.type_name}', got '{actual}'.",
                field=name,
                expected=spec.type_name,
                actual=actual,
            )

    def merge(self, current: Optional[Mapping], updates: Mapping) -> Dict[str, Any]:
        """Validate ``updates`` and fold them into ``current`` using each field's reducer."""
        self.validate(updates)
        result = dict(current or {})
        for name, value in updates.items():
            if self._fields[name].reducer is Reducer.APPEND:
                result[name] = self._append(result.get(name), value)
            else:
                result[name] = value
        return result

    def _append(self, existing: Any, value: Any) -> List[Any]:
        if existing is None:
            combined = []
        elif isinstance(existing, (list, tuple)):
            combined = list(existing)
        else:
            combined = [existing]
        if isinstance(value, (list, tuple)):
            combined.extend(value)
        else:
            combined.append(value)
        if self._max_append is not None and len(combined) > self._max_append:
            combined = combined[-self._max_append:]
        return combined


def merge_state_plain(current: Optional[Mapping], updates: Mapping) -> Dict[str, Any]:
    """Shallow overwrite merge for schema-less state."""
    result = dict(current or {})
    result.update(updates)
    return result


class Snapshot(BaseModel):
    """State recorded after a node executed.

    Attributes:
        state: State after the node's update was merged
        node: Name of the node that ran
        step: 1-based step number of that execution
    """
    model_config = ConfigDict(frozen=True)

    state: Dict[str, Any]
    node: str
    step: int = Field(ge=0)

    def __str__(self) -> str:
        return (
            "<Snapshot>\n"
            f"  Node: {self.node}\n"
            f"  Step: {self.step}\n"
            f"  State keys: {', '.join(self.state)}\n"
        )
