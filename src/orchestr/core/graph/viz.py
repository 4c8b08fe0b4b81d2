"""Graph visualization as Mermaid flowcharts."""

import re
from typing import Any, Iterable, List, Optional

from orchestr.core.graph.constants import END, START


def sanitize_id(name: str) -> str:
    """Mermaid-safe node id; ``END`` renders as ``END``."""
    if name == END:
        return "END"
    return re.sub(r"[^A-Za-z0-9_]", "_", name)


def render_node(name: str) -> str:
    if name == END:
        return "END((END))"
    return f"{sanitize_id(name)}[{name}]"


def as_mermaid(graph: Any, visited: Optional[Iterable[str]] = None) -> str:
    """Render a graph as Mermaid ``graph TD`` source.

    Args:
        graph: Anything with ``get_nodes()``, ``get_edges()`` and ``entry_point``
        visited: Node names to highlight, e.g. ``[s.node for s in graph.stream(...)]``

    Returns:
        Diagram source, one statement per line
    """
    edges = graph.get_edges()
    fixed = edges.get("fixed", [])
    conditional = edges.get("conditional", [])

    lines: List[str] = ["graph TD"]
    for name in graph.get_nodes():
        lines.append(f"    {render_node(name)}")

    lines.append(f"    {render_node(END)}")

    entry = getattr(graph, "entry_point", None)
    if entry:
        lines.append(f"    {START}([Start]) --> {sanitize_id(entry)}")

    for edge in fixed:
        lines.append(f"    {sanitize_id(edge.source)} --> {sanitize_id(edge.target)}")
    for cond in conditional:
        for key, target in cond.mapping.items():
            lines.append(f"    {sanitize_id(cond.source)} -->|{key}| {sanitize_id(target)}")

    if visited is not None:
        ids = sorted({sanitize_id(name) for name in visited})
        if ids:
            lines.append("    classDef visited fill:#d4f4dd,stroke:#2e7d32")
            lines.append(f"    class {','.join(ids)} visited")

    return "\n".join(lines)
