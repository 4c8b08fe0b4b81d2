"""Reserved names shared by the builder and the execution engine."""

END = "__end__"
"""Terminal target marking graph completion."""

START = "__start__"
"""Label of the virtual start node in diagrams."""

TRUNCATED = "graph_truncated"
"""State key set to ``True`` when a run stops at ``max_iterations``."""
