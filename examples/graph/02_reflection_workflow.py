"""
Reflection Workflow Example: multi-step reasoning with a pipeline of agents.

This example demonstrates:
1. Agents backed by MirascopeChat (requires OPENAI_API_KEY)
2. A pipeline graph where each agent refines the previous answer
3. Reading the accumulated conversation from the final state
"""

from orchestr import Agent, MirascopeChat, configure_logging, LogComponent, LogLevel, pipeline_graph

configure_logging(
    default_level=LogLevel.INFO,
    component_levels={
        LogComponent.AGENT: LogLevel.INFO,
        LogComponent.GRAPH: LogLevel.DEBUG,
    }
)


def main() -> None:
    reflect = Agent(
        name="reflect",
        chat=MirascopeChat(),
        system_prompt="Break the question down. List key points and open questions.",
    )
    analyze = Agent(
        name="analyze",
        chat=MirascopeChat(),
        system_prompt="Analyze the points step by step and draw a preliminary conclusion.",
    )
    synthesize = Agent(
        name="synthesize",
        chat=MirascopeChat(),
        system_prompt="Write a concise final answer with a confidence estimate.",
    )

    graph = pipeline_graph(
        ("initial_reflection", reflect),
        ("deep_analysis", analyze),
        ("final_synthesis", synthesize),
    )
    state = graph.invoke({
        "messages": ["If Alice is taller than Bob and Bob is taller than Carol, who is shortest?"]
    })
    for name, message in zip(graph.get_nodes(), state["messages"][1:]):
        print(f"\n== {name} ==\n{message}")


if __name__ == "__main__":
    main()
