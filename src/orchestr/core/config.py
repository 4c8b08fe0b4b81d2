"""Configuration models for compiled graphs and individual runs."""

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_THREAD_ID_LENGTH = 200


class GraphConfig(BaseModel):
    """Settings fixed at compile time.

    Attributes:
        max_iterations: Safety cap on executed steps per run
        verbose: Log node execution and routing at INFO level
    """
    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(default=100)
    verbose: bool = Field(default=False)

    @field_validator("max_iterations", mode="before")
    @classmethod
    def _finite_positive_integer(cls, value: Any) -> int:
        if isinstance(value, float) and math.isfinite(value) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"max_iterations must be a finite positive integer, got {value!r}")
        return value


class ResumePoint(BaseModel):
    """Where a run should start instead of the entry point.

    ``state`` replaces the caller's initial state when given.
    """
    node: str = Field(..., min_length=1)
    state: Optional[Dict[str, Any]] = None


class RunConfig(BaseModel):
    """Recognized keys of the per-run config mapping.

    Unknown keys are kept so node handlers can read their own settings.
    """
    model_config = ConfigDict(extra="allow")

    thread_id: Optional[str] = Field(
        default=None, min_length=1, max_length=MAX_THREAD_ID_LENGTH
    )
    resume_from: Optional[ResumePoint] = None
