"""Logging configuration with pretty terminal formatting for orchestr."""

import logging
from typing import Optional, Dict, Any
from enum import Enum, IntEnum
from datetime import datetime

# ANSI Color Codes
class Colors:
    """ANSI color codes for pretty terminal output."""
    HEADER = '\033[95m'      # Pink
    INFO = '\033[94m'        # Blue
    SUCCESS = '\033[92m'     # Green
    WARNING = '\033[93m'     # Yellow
    ERROR = '\033[91m'       # Red
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

PLAIN_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"

PRETTY_FORMAT = (
    f"{Colors.DIM}%(asctime)s{Colors.RESET} │ "
    f"%(colored_level)-22s │ "
    f"%(message)s"
)

class PrettyFormatter(logging.Formatter):
    """Formatter that colors the level name and marks warnings with a rule."""

    level_colors = {
        'DEBUG': Colors.DIM,
        'INFO': Colors.INFO,
        'WARNING': Colors.WARNING,
        'ERROR': Colors.ERROR,
        'CRITICAL': Colors.ERROR + Colors.BOLD,
    }

    def format(self, record):
        color = self.level_colors.get(record.levelname, Colors.RESET)
        record.colored_level = f"{color}{record.levelname}{Colors.RESET}"
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            message = f"{message}\n{Colors.DIM}{'─' * 80}{Colors.RESET}"
        return message

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created).strftime(datefmt or '%H:%M:%S')

class PrettyLogHandler(logging.StreamHandler):
    """Stream handler that installs the pretty formatter by default."""

    def __init__(self, stream=None):
        super().__init__(stream)
        self.setFormatter(PrettyFormatter(PRETTY_FORMAT))

class LogComponent(str, Enum):
    """Components that can be logged."""
    GRAPH = "orchestr.core.graph"
    NODES = "orchestr.core.graph.nodes"
    AGENT = "orchestr.core.agent"
    TOOLS = "orchestr.core.graph.nodes.tools"
    CHECKPOINT = "orchestr.core.checkpoint"
    MEMORY = "orchestr.core.memory"

class LogLevel(IntEnum):
    """Log levels mapped to logging module levels."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

# Library loggers stay silent unless the application configures logging.
logging.getLogger("orchestr").addHandler(logging.NullHandler())

def configure_logging(
    default_level: LogLevel = LogLevel.INFO,
    component_levels: Optional[Dict[LogComponent, LogLevel]] = None,
    pretty: bool = True,
    log_file: Optional[str] = None
) -> None:
    """Configure the ``orchestr`` logger hierarchy.

    Args:
        default_level: Level for the top-level ``orchestr`` logger.
        component_levels: Optional per-component overrides.
        pretty: Use the colored formatter for console output.
        log_file: Optional path of a plain-text log file.
    """
    handlers = []

    if pretty:
        console_handler = PrettyLogHandler()
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        handlers.append(file_handler)

    root = logging.getLogger("orchestr")
    root.setLevel(default_level.value)

    for handler in root.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            root.removeHandler(handler)

    for handler in handlers:
        root.addHandler(handler)

    for component, level in (component_levels or {}).items():
        logging.getLogger(component.value).setLevel(level.value)

def get_logger(component: LogComponent) -> logging.Logger:
    """Get a logger for a specific component."""
    return logging.getLogger(component.value)

def log_state(logger: logging.Logger, state: Dict[str, Any], prefix: str = "") -> None:
    """Log a state dictionary at DEBUG level, one key per line."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for key, value in state.items():
        if isinstance(value, dict):
            logger.debug(f"{prefix}{key}:")
            log_state(logger, value, prefix + "  ")
        else:
            logger.debug(f"{prefix}{key}: {value!r}")
