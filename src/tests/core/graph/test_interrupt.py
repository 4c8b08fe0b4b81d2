"""Tests for interrupt records and the approval tool."""

from typing import List

import pytest
from mirascope.core import BaseTool
from pydantic import ValidationError

from orchestr.core.errors import GraphInterrupted
from orchestr.core.graph.interrupt import Interrupt, approval_tool, raise_on_interrupt


@pytest.fixture
def interrupt() -> Interrupt:
    """Fixture providing a before-gate interrupt."""
    return Interrupt(state={"value": 1}, node="review", step=3, when="before")


class TestInterrupt:
    """Test suite for the Interrupt record."""

    def test_message(self, interrupt: Interrupt):
        """Test the human-readable message."""
        assert interrupt.message == "Interrupt before node 'review' (step 3)"

    def test_frozen(self, interrupt: Interrupt):
        """Test interrupts are immutable."""
        with pytest.raises(ValidationError):
            interrupt.node = "other"

    def test_invalid_when(self):
        """Test only before/after gates exist."""
        with pytest.raises(ValidationError):
            Interrupt(state={}, node="a", step=0, when="during")

    def test_resume_config(self, interrupt: Interrupt):
        """Test the resume config restarts at the interrupted node."""
        assert interrupt.resume_config() == {
            "resume_from": {"node": "review", "state": {"value": 1}}
        }

    def test_resume_config_with_edits(self, interrupt: Interrupt):
        """Test a replacement state, including an empty one."""
        assert interrupt.resume_config({"value": 9})["resume_from"]["state"] == {"value": 9}
        assert interrupt.resume_config({})["resume_from"]["state"] == {}

    def test_raise_on_interrupt(self, interrupt: Interrupt):
        """Test the ready-made observer raises with the interrupt attached."""
        with pytest.raises(GraphInterrupted, match="Interrupt before node 'review'") as exc_info:
            raise_on_interrupt(interrupt)
        assert exc_info.value.interrupt is interrupt


class TestApprovalTool:
    """Test suite for the human approval tool."""

    def test_is_tool(self):
        """Test a mirascope tool class is returned."""
        assert issubclass(approval_tool(input_fn=lambda prompt: "y"), BaseTool)

    @pytest.mark.parametrize("answer", ["yes", "Y", "  y  "])
    def test_approved(self, answer: str):
        """Test affirmative answers approve."""
        tool = approval_tool(input_fn=lambda prompt: answer)
        assert tool(action="deploy").call() == "approved"

    def test_rejected(self):
        """Test anything else rejects, naming the action."""
        tool = approval_tool(input_fn=lambda prompt: "no")
        assert tool(action="drop table").call() == "Action rejected by user: drop table"

    def test_prompt_fn(self):
        """Test the prompt builder receives the action."""
        prompts: List[str] = []

        def ask(prompt: str) -> str:
            prompts.append(prompt)
            return "yes"

        tool = approval_tool(prompt_fn=lambda action: f"Allow {action}? ", input_fn=ask)
        tool(action="send email").call()
        assert prompts == ["Allow send email? "]

    def test_default_action(self):
        """Test the action description is optional."""
        tool = approval_tool(input_fn=lambda prompt: "n")
        assert tool().call() == "Action rejected by user: unspecified action"
