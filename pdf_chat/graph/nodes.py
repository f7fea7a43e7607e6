import functools

from pdf_chat.logger import GLOBAL_LOGGER as log

"""
Each node is an async function that returns a partial state update.
A node that raises is turned into {"error": ..., "failed_stage": ...} and the
builder routes the run to failed_node.
Graph wiring is done in builder.
"""


# Appends the current step into existing steps in the state
def _append_step(state, step):
    steps = state.get("steps", [])
    return steps + [step]


def _guarded(stage):
    def decorator(node):
        @functools.wraps(node)
        async def wrapper(state):
            try:
                update = await node(state)
            except Exception as e:
                log.error("Chat stage failed | stage=%s | doc_id=%s | error=%s", stage, state.get("doc_id"), str(e))
                return {"error": e, "failed_stage": stage, "steps": _append_step(state, stage)}
            update["steps"] = _append_step(state, stage)
            return update

        return wrapper

    return decorator


@_guarded("prepare_retriever")
async def prepare_retriever_node(state):
    engine = state["engine"]
    retriever = await engine.get_retriever(state["doc_id"])
    return {"retriever": retriever}


@_guarded("load_history")
async def load_history_node(state):
    engine = state["engine"]
    chat_history = await engine.load_history(state["user_id"], state["doc_id"])
    return {"chat_history": chat_history}


@_guarded("rewrite_query")
async def rewrite_query_node(state):
    engine = state["engine"]
    search_query = await engine.rewrite_query(state["question"], state.get("chat_history", []))
    return {"search_query": search_query}


@_guarded("retrieve_context")
async def retrieve_context_node(state):
    engine = state["engine"]
    docs = await engine.retrieve(state["retriever"], state["search_query"])
    return {"context_docs": docs}


@_guarded("synthesize_answer")
async def synthesize_answer_node(state):
    engine = state["engine"]
    answer = await engine.synthesize(
        state["question"], state.get("chat_history", []), state.get("context_docs", [])
    )
    return {"answer": answer}


async def failed_node(state):
    engine = state["engine"]
    answer = engine.failure_message(state["error"], state.get("failed_stage"))
    return {"answer": answer, "steps": _append_step(state, "failed")}
