from typing import List, Optional, Protocol

from langchain.chains.combine_documents import create_stuff_documents_chain
from langchain_core.documents import Document
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.retrievers import BaseRetriever

from pdf_chat.exception.custom_exception import PreconditionError, is_transient_error
from pdf_chat.graph.builder import build_chat_graph
from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.prompts.prompt_library import PROMPT_REGISTRY

DEFAULT_HISTORY_LIMIT = 20


class RetrieverProvider(Protocol):
    async def ensure_embeddings(self, doc_id: str) -> BaseRetriever: ...


class HistoryStore(Protocol):
    async def list_turns(self, user_id: str, doc_id: str, order: str = "desc", limit: Optional[int] = None): ...


class RetrievalChatEngine:
    """
    Answers one question about one document:
      - attach to (or build) the document's vectors
      - load recent chat history, oldest first
      - rewrite the question into a standalone search query (only when there is history)
      - retrieve passages with the rewritten query
      - answer from the passages, the history and the ORIGINAL question

    answer() always returns text: failures come back as an explanatory message
    because the chat UI shows it as the assistant's reply. Persisting the turn
    is left to the caller.
    """

    def __init__(
        self,
        embedding_index: RetrieverProvider,
        llm: BaseChatModel,
        history_store: HistoryStore,
        history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT,
    ):
        self.embedding_index = embedding_index
        self.llm = llm
        self.history_store = history_store
        self.history_limit = history_limit

        self.contextualize_prompt = PROMPT_REGISTRY["contextualize_question"]
        self.qa_prompt = PROMPT_REGISTRY["context_qa"]

        # compile the graph once per engine
        self.graph = build_chat_graph()

    async def get_retriever(self, doc_id: str) -> BaseRetriever:
        return await self.embedding_index.ensure_embeddings(doc_id)

    async def load_history(self, user_id: str, doc_id: str) -> List[BaseMessage]:
        if not user_id:
            raise PreconditionError("User not found")

        # newest first from storage, then back to chronological order for the prompt
        rows = await self.history_store.list_turns(
            user_id, doc_id, order="desc", limit=self.history_limit
        )
        rows = list(reversed(rows))

        chat_history = [
            HumanMessage(content=m.message) if m.role == "human" else AIMessage(content=m.message)
            for m in rows
        ]
        log.info("Fetched last %d messages | doc_id=%s", len(chat_history), doc_id)
        return chat_history

    async def rewrite_query(self, question: str, chat_history: List[BaseMessage]) -> str:
        if not chat_history:
            log.info("No chat_history, searching with the user question as-is")
            return question

        rewrite_query_chain = self.contextualize_prompt | self.llm | StrOutputParser()
        rewritten = await rewrite_query_chain.ainvoke(
            {"input": question, "chat_history": chat_history}
        )
        rewritten = rewritten.strip()
        log.info("Question rewritten from chat history | rewritten_query=%s", rewritten)
        return rewritten or question

    async def retrieve(self, retriever: BaseRetriever, search_query: str) -> List[Document]:
        docs = await retriever.ainvoke(search_query)
        log.info("Retrieved passages | count=%d", len(docs))
        return docs

    async def synthesize(
        self, question: str, chat_history: List[BaseMessage], docs: List[Document]
    ) -> str:
        qa_chain = create_stuff_documents_chain(self.llm, self.qa_prompt)
        return await qa_chain.ainvoke(
            {"context": docs, "chat_history": chat_history, "input": question}
        )

    def failure_message(self, error: BaseException, stage: Optional[str] = None) -> str:
        if stage == "prepare_retriever":
            if is_transient_error(error):
                return (
                    "Error: Unable to access the document's AI embeddings. "
                    "The vector store is temporarily unavailable, please try again later. "
                    f"({error})"
                )
            return f"Error: Unable to access the document's AI embeddings. {error}"

        return f"Sorry, I encountered an error while processing your question. {error}"

    async def answer(self, doc_id: str, question: str, user_id: str) -> str:
        log.info("Starting chat completion | doc_id=%s", doc_id)

        state = {
            "doc_id": doc_id,
            "user_id": user_id,
            "question": question,
            "engine": self,
            "error": None,
            "steps": [],
        }

        try:
            result = await self.graph.ainvoke(state)
        except Exception as e:
            log.error("Chat graph execution failed | doc_id=%s | error=%s", doc_id, str(e))
            return self.failure_message(e)

        log.info("Chat completion finished | doc_id=%s | steps=%s", doc_id, result.get("steps"))
        return result["answer"]
