"""Shared fakes for the embedding model, chat model, PDF loader and vector index."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pytest
from langchain_core.callbacks import CallbackManagerForRetrieverRun
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import BaseMessage
from langchain_core.retrievers import BaseRetriever
from pydantic import Field

from pdf_chat.src.vector_store.base import (
    IndexStats,
    NamespaceStats,
    VectorMatch,
    VectorRecord,
)

DIMENSION = 8


class CountingEmbeddings(Embeddings):
    """Deterministic embeddings that count embed_documents calls."""

    def __init__(self, dimension: int = DIMENSION, error: Optional[Exception] = None) -> None:
        self.dimension = dimension
        self.error = error
        self.document_calls = 0
        self.embedded_texts: List[str] = []

    def _vector(self, text: str) -> List[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 for b in digest[: self.dimension]]

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls += 1
        if self.error is not None:
            raise self.error
        self.embedded_texts.extend(texts)
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        return self._vector(text)


class StaticPageLoader:
    """Page loader returning fixed pages, or raising the given error."""

    def __init__(self, pages: Sequence[str] = (), error: Optional[Exception] = None) -> None:
        self.pages = list(pages)
        self.error = error
        self.calls = 0

    def load(self, file_bytes: bytes) -> List[Document]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [
            Document(page_content=text, metadata={"source": "upload.pdf", "page": i})
            for i, text in enumerate(self.pages)
        ]


class RecordingRetriever(BaseRetriever):
    docs: List[Document] = Field(default_factory=list)
    queries: List[str] = Field(default_factory=list)

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> List[Document]:
        self.queries.append(query)
        return list(self.docs)


class RecordingChatModel(FakeListChatModel):
    """FakeListChatModel that keeps the messages of every call."""

    prompts: List[List[BaseMessage]] = Field(default_factory=list)

    def _call(self, messages, stop=None, run_manager=None, **kwargs):
        self.prompts.append(list(messages))
        return super()._call(messages, stop=stop, run_manager=run_manager, **kwargs)


@dataclass
class StoredTurn:
    role: str
    message: str


@dataclass
class InMemoryHistory:
    """Chronological list of turns; list_turns serves them like the repository."""

    turns: List[StoredTurn] = field(default_factory=list)
    requests: List[dict] = field(default_factory=list)

    async def list_turns(self, user_id, doc_id, order="desc", limit=None):
        self.requests.append({"user_id": user_id, "doc_id": doc_id, "order": order, "limit": limit})
        rows = list(reversed(self.turns)) if order == "desc" else list(self.turns)
        return rows[:limit] if limit is not None else rows


class InMemoryNamespace:
    def __init__(self, index: "InMemoryVectorIndex", name: str) -> None:
        self.index = index
        self.name = name

    async def query(self, vector, top_k: int = 1) -> List[VectorMatch]:
        self.index.probes.append(self.name)
        if self.index.query_error is not None:
            raise self.index.query_error
        records = self.index.records.get(self.name, [])
        return [VectorMatch(id=r.id, score=0.0, text=r.text, metadata=r.metadata) for r in records[:top_k]]

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        if self.index.upsert_error is not None:
            raise self.index.upsert_error
        self.index.records.setdefault(self.name, []).extend(records)
        return len(records)

    async def delete_all(self) -> None:
        self.index.delete_calls.append(self.name)
        if self.index.delete_error is not None:
            raise self.index.delete_error
        self.index.records.pop(self.name, None)

    def as_retriever(self, k: int = 4) -> RecordingRetriever:
        records = self.index.records.get(self.name, [])
        return RecordingRetriever(
            docs=[Document(page_content=r.text, metadata=r.metadata) for r in records[:k]]
        )


@dataclass
class InMemoryVectorIndex:
    name: str = "test-index"
    dimension: int = DIMENSION
    records: Dict[str, List[VectorRecord]] = field(default_factory=dict)
    stats_error: Optional[Exception] = None
    query_error: Optional[Exception] = None
    upsert_error: Optional[Exception] = None
    delete_error: Optional[Exception] = None
    # simulate stats that have not caught up with writes
    stats_lag: bool = False
    probes: List[str] = field(default_factory=list)
    delete_calls: List[str] = field(default_factory=list)

    async def describe_stats(self) -> IndexStats:
        if self.stats_error is not None:
            raise self.stats_error
        if self.stats_lag:
            return IndexStats(dimension=self.dimension)
        return IndexStats(
            namespaces={ns: NamespaceStats(record_count=len(recs)) for ns, recs in self.records.items()},
            dimension=self.dimension,
        )

    def namespace(self, name: str) -> InMemoryNamespace:
        return InMemoryNamespace(self, name)


@dataclass
class InMemoryVectorClient:
    vector_index: InMemoryVectorIndex = field(default_factory=InMemoryVectorIndex)
    provisioned: bool = True

    async def list_indexes(self) -> List[str]:
        return [self.vector_index.name] if self.provisioned else []

    def index(self, name: str) -> InMemoryVectorIndex:
        return self.vector_index


PROSE_PAGE = (
    "The quarterly report describes revenue growth across all regions. "
    "Operating costs remained stable while investment in research increased. "
)


@pytest.fixture
def prose_pages() -> List[str]:
    return [PROSE_PAGE * 3, PROSE_PAGE * 2]


@pytest.fixture
def embeddings() -> CountingEmbeddings:
    return CountingEmbeddings()
