"""
Counter Workflow Example: typed state, conditional routing and streaming.

This example demonstrates:
1. A StateSchema with an append reducer
2. Conditional edges looping until a condition holds
3. Streaming snapshots with a per-step callback
4. Exporting the graph as a Mermaid diagram

No language model is needed to run it.
"""

from orchestr import END, GraphBuilder, StateSchema, configure_logging, LogLevel

configure_logging(default_level=LogLevel.INFO)


def count(state, config):
    value = state.get("count", 0) + 1
    return {"count": value, "log": f"counted to {value}"}


def report(state, config):
    return {"log": f"finished at {state['count']}"}


def main() -> None:
    schema = StateSchema(count="integer", log="append:character", max_append=5)
    graph = (
        GraphBuilder(schema)
        .add_node("count", count)
        .add_node("report", report)
        .add_conditional_edge(
            "count",
            lambda state: "done" if state["count"] >= 3 else "again",
            {"again": "count", "done": "report"},
        )
        .add_edge("report", END)
        .set_entry_point("count")
        .compile(max_iterations=20, verbose=True)
    )

    snapshots = graph.stream({"count": 0}, on_step=lambda s: print(f"step {s.step}: {s.node}"))
    print(snapshots[-1].state["log"])
    print(graph.as_mermaid())


if __name__ == "__main__":
    main()
