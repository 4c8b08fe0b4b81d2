"""
Human Approval Example: interrupts, checkpoints and resumption.

This example demonstrates:
1. Pausing before a sensitive node with raise_on_interrupt
2. Letting a human edit the state before resuming
3. Checkpointing every step to a JSON Lines file

No language model is needed to run it.
"""

import tempfile

from orchestr import END, GraphBuilder, GraphInterrupted, checkpointer, raise_on_interrupt


def draft(state, config):
    return {"email": f"Hello {state['recipient']}, the report is ready."}


def send(state, config):
    return {"sent": True}


def main() -> None:
    saver = checkpointer("file", path=tempfile.mkdtemp())
    graph = (
        GraphBuilder()
        .add_node("draft", draft)
        .add_node("send", send)
        .add_edge("draft", "send")
        .add_edge("send", END)
        .set_entry_point("draft")
        .set_interrupt(before="send")
        .set_checkpointer(saver)
        .compile()
    )

    try:
        graph.invoke({"recipient": "Ada"}, config={"thread_id": "email-1"}, on_interrupt=raise_on_interrupt)
    except GraphInterrupted as paused:
        print(paused)
        edited = dict(paused.interrupt.state, email=input("Edit email: ") or paused.interrupt.state["email"])
        config = {"thread_id": "email-1", **paused.interrupt.resume_config(edited)}
        print(graph.invoke(config=config))

    for checkpoint in saver.history("email-1"):
        print(checkpoint.node, checkpoint.state)


if __name__ == "__main__":
    main()
