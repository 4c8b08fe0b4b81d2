"""Agent module for orchestr."""

from orchestr.core.agent.base import Agent, ChatClient, format_context
from orchestr.core.agent.chat import MirascopeChat

__all__ = [
    'Agent',
    'ChatClient',
    'MirascopeChat',
    'format_context'
]
