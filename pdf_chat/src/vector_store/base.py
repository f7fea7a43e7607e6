from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence

from langchain_core.vectorstores import VectorStoreRetriever


@dataclass
class VectorRecord:
    id: str
    values: List[float]
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    id: str
    score: float
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NamespaceStats:
    record_count: int = 0


@dataclass
class IndexStats:
    namespaces: Dict[str, NamespaceStats] = field(default_factory=dict)
    dimension: int = 0

    @property
    def total_record_count(self) -> int:
        return sum(ns.record_count for ns in self.namespaces.values())


class VectorNamespace(Protocol):
    name: str

    async def query(self, vector: Sequence[float], top_k: int = 1) -> List[VectorMatch]: ...

    async def upsert(self, records: Sequence[VectorRecord]) -> int: ...

    async def delete_all(self) -> None: ...

    def as_retriever(self, k: int = 4) -> VectorStoreRetriever: ...


class VectorIndex(Protocol):
    name: str
    dimension: int

    async def describe_stats(self) -> IndexStats: ...

    def namespace(self, name: str) -> VectorNamespace: ...


class VectorClient(Protocol):
    async def list_indexes(self) -> List[str]: ...

    def index(self, name: str) -> VectorIndex: ...
