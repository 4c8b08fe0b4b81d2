"""Core modules for orchestr."""

from orchestr.core.logging import configure_logging, LogLevel, LogComponent

__all__ = [
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
