"""Default chat client built on Mirascope.

Message Flow:
    1. The prompt is sent with the system prompt and the conversation history
    2. The user message and the assistant reply are appended to history
    3. If the reply requests tools, each tool is called, its output is added
       to history, and the provider is called again until no tools remain
    4. The final text is returned
"""

from typing import Any, Callable, Dict, List, Optional

from mirascope.core import BaseDynamicConfig, BaseMessageParam, openai
from pydantic import BaseModel, ConfigDict, Field
from tenacity import retry, stop_after_attempt, wait_exponential

from orchestr.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.AGENT)


def tool_name(tool: Any) -> str:
    """Registration key of a tool function or ``BaseTool`` class."""
    return getattr(tool, "__name__", type(tool).__name__)


class MirascopeChat(BaseModel):
    """Chat client calling an OpenAI-compatible model through Mirascope.

    Attributes:
        model: Provider model name
        system_prompt: System message prepended to every call
        history: Conversation turns (user, assistant and tool messages)
        tools: Registered tools keyed by name; re-registering replaces
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    model: str = Field(default="gpt-4o-mini")
    system_prompt: Optional[str] = None
    history: List[Any] = Field(default_factory=list, description="Conversation history")
    tools: Dict[str, Any] = Field(default_factory=dict)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        reraise=True,
    )
    def _call(self, query: str) -> Any:
        """Make one provider call with the current conversation state."""

        @openai.call(self.model)
        def completion() -> BaseDynamicConfig:
            messages: List[Any] = []
            if self.system_prompt:
                messages.append(BaseMessageParam(role="system", content=self.system_prompt))
            messages.extend(self.history)
            if query:
                messages.append(BaseMessageParam(role="user", content=query))
            return {"messages": messages, "tools": list(self.tools.values())}

        return completion()

    def chat(self, prompt: str) -> str:
        response = self._call(prompt)
        if prompt:
            self.history.append(BaseMessageParam(role="user", content=prompt))
        self.history.append(response.message_param)

        while response.tools:
            outputs = []
            for tool in response.tools:
                logger.debug(f"Calling tool {type(tool).__name__}")
                outputs.append((tool, tool.call()))
            self.history.extend(response.tool_message_params(outputs))
            response = self._call("")
            self.history.append(response.message_param)

        return response.content

    def get_turns(self) -> List[Any]:
        return list(self.history)

    def set_turns(self, turns: List[Any]) -> None:
        self.history = list(turns)

    def register_tool(self, tool: Callable[..., Any]) -> None:
        self.tools[tool_name(tool)] = tool

    def get_system_prompt(self) -> Optional[str]:
        return self.system_prompt

    def set_system_prompt(self, prompt: Optional[str]) -> None:
        self.system_prompt = prompt
