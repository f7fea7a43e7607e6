from langgraph.graph import END, StateGraph

from pdf_chat.graph.nodes import (
    failed_node,
    load_history_node,
    prepare_retriever_node,
    retrieve_context_node,
    rewrite_query_node,
    synthesize_answer_node,
)
from pdf_chat.graph.state import ChatState

# Strictly sequential: rewrite before retrieve before synthesize
PIPELINE = [
    ("prepare_retriever", prepare_retriever_node),
    ("load_history", load_history_node),
    ("rewrite_query", rewrite_query_node),
    ("retrieve_context", retrieve_context_node),
    ("synthesize_answer", synthesize_answer_node),
]


def _next_or_failed(next_node):
    def route(state):
        return "failed" if state.get("error") is not None else next_node

    return route


def build_chat_graph():
    graph = StateGraph(ChatState)

    for name, node in PIPELINE:
        graph.add_node(name, node)
    graph.add_node("failed", failed_node)

    graph.set_entry_point(PIPELINE[0][0])

    names = [name for name, _ in PIPELINE]
    for current, following in zip(names, names[1:] + [END]):
        graph.add_conditional_edges(
            current,
            _next_or_failed(following),
            {following: following, "failed": "failed"},
        )

    graph.add_edge("failed", END)

    return graph.compile()
