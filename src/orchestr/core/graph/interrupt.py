"""Human-in-the-loop interrupts.

Interrupts are observations, not control flow: when a run reaches a node named
in ``interrupt_before`` / ``interrupt_after`` the engine builds an
``Interrupt`` and hands it to the ``on_interrupt`` callback passed to
``invoke``/``stream``. If no callback is given the run continues unchanged.
A callback that wants to pause the run raises, e.g. via ``raise_on_interrupt``:

    ```python
    try:
        graph.invoke(state, on_interrupt=raise_on_interrupt)
    except GraphInterrupted as paused:
        ...  # ask a human
        graph.invoke(config=paused.interrupt.resume_config())
    ```
"""

from typing import Any, Callable, Dict, Literal, Optional, Type

from mirascope.core import BaseTool
from pydantic import BaseModel, ConfigDict, Field

from orchestr.core.errors import GraphInterrupted

InterruptHandler = Callable[["Interrupt"], Any]


class Interrupt(BaseModel):
    """Signal raised at an interrupt gate.

    Attributes:
        state: State at the gate (post-merge for ``after`` gates)
        node: Node that triggered the interrupt
        step: Number of steps executed so far
        when: ``"before"`` or ``"after"`` the node ran
    """
    model_config = ConfigDict(frozen=True)

    state: Dict[str, Any]
    node: str
    step: int = Field(ge=0)
    when: Literal["before", "after"] = "before"

    @property
    def message(self) -> str:
        return f"Interrupt {self.when} node '{self.node}' (step {self.step})"

    def resume_config(self, state: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run config that restarts at this node.

        Only meaningful for ``before`` interrupts; an ``after`` interrupt's
        node has already run and would execute again.

        Args:
            state: Replacement state, e.g. after human edits. Defaults to the
                interrupt's own state.
        """
        chosen = self.state if state is None else state
        return {"resume_from": {"node": self.node, "state": dict(chosen)}}


def raise_on_interrupt(interrupt: Interrupt) -> None:
    """Interrupt callback that pauses the run by raising ``GraphInterrupted``."""
    raise GraphInterrupted(interrupt)


def approval_tool(
    prompt_fn: Optional[Callable[[str], str]] = None,
    input_fn: Callable[[str], str] = input,
) -> Type[BaseTool]:
    """Create a tool that asks a human to approve an action.

    Args:
        prompt_fn: Receives the action description and returns the prompt text.
            Defaults to ``"Approve this action? (yes/no): "``.
        input_fn: Reads the human's answer (``input`` by default).

    Returns:
        A mirascope ``BaseTool`` subclass; ``call()`` returns ``"approved"``
        or a rejection message the model can act on.
    """
    prompt_fn = prompt_fn or (lambda action: "Approve this action? (yes/no): ")

    class ApprovalTool(BaseTool):
        """Ask the user for approval before proceeding with an action."""

        action: str = Field(
            default="unspecified action",
            description="Description of the action to approve."
        )

        def call(self) -> str:
            answer = input_fn(prompt_fn(self.action))
            if answer.strip().lower() in ("yes", "y"):
                return "approved"
            return f"Action rejected by user: {self.action}"

    return ApprovalTool
