from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Sequence

from langchain_community.vectorstores import FAISS
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import VectorStoreRetriever

from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.src.vector_store.base import (
    IndexStats,
    NamespaceStats,
    VectorMatch,
    VectorRecord,
)
from pdf_chat.utils.thread_pool import run_sync

INDEX_MARKER = "index.json"
META_FILE = "ingested_meta.json"


def _check_name(name: str, kind: str) -> str:
    if not name or "/" in name or "\\" in name or name in {".", ".."}:
        raise ValueError(f"Invalid {kind} name: {name!r}")
    return name


class FaissNamespace:
    """
    One FAISS folder holding the vectors of a single namespace.
    - index.faiss / index.pkl: the FAISS index and its docstore
    - ingested_meta.json: record manifest that feeds describe_stats()
    """

    def __init__(self, name: str, index_dir: Path, embeddings: Embeddings):
        self.name = _check_name(name, "namespace")
        self.index_dir = Path(index_dir)
        self.meta_path = self.index_dir / META_FILE
        self.emb = embeddings

    def _exists(self) -> bool:
        return (self.index_dir / "index.faiss").exists() and (
            self.index_dir / "index.pkl"
        ).exists()

    def _load(self) -> FAISS:
        return FAISS.load_local(
            str(self.index_dir), self.emb, allow_dangerous_deserialization=True
        )

    def _read_meta(self) -> Dict[str, Any]:
        if not self.meta_path.exists():
            return {"rows": {}, "record_count": 0}
        return json.loads(self.meta_path.read_text(encoding="utf-8")) or {
            "rows": {},
            "record_count": 0,
        }

    def _save_meta(self, meta: Dict[str, Any]) -> None:
        self.meta_path.write_text(
            json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def record_count(self) -> int:
        return int(self._read_meta().get("record_count", 0))

    def _query(self, vector: Sequence[float], top_k: int) -> List[VectorMatch]:
        if not self._exists():
            return []

        vs = self._load()
        if vs.index.ntotal == 0:
            return []
        if len(vector) != vs.index.d:
            raise ValueError(
                f"Query vector dimension {len(vector)} does not match index dimension {vs.index.d}"
            )

        results = vs.similarity_search_with_score_by_vector(list(vector), k=top_k)
        return [
            VectorMatch(
                id=str(doc.metadata.get("id", "")),
                score=float(score),
                text=doc.page_content,
                metadata=dict(doc.metadata),
            )
            for doc, score in results
        ]

    def _upsert(self, records: Sequence[VectorRecord]) -> int:
        if not records:
            return 0

        text_embeddings = [(r.text, list(r.values)) for r in records]
        metadatas = [{**r.metadata, "id": r.id} for r in records]
        ids = [r.id for r in records]

        if self._exists():
            vs = self._load()
            # replace records that share an id
            known = set(vs.index_to_docstore_id.values())
            stale = [i for i in ids if i in known]
            if stale:
                vs.delete(ids=stale)
            vs.add_embeddings(text_embeddings, metadatas=metadatas, ids=ids)
        else:
            self.index_dir.mkdir(parents=True, exist_ok=True)
            vs = FAISS.from_embeddings(
                text_embeddings, self.emb, metadatas=metadatas, ids=ids
            )

        vs.save_local(str(self.index_dir))

        meta = self._read_meta()
        rows = meta.setdefault("rows", {})
        for r in records:
            rows[r.id] = {
                "doc_id": r.metadata.get("doc_id"),
                "source_page": r.metadata.get("source_page"),
                "length": len(r.text),
            }
        meta["record_count"] = int(vs.index.ntotal)
        self._save_meta(meta)

        log.info(
            "Upserted vectors | namespace=%s | new=%d | total=%d",
            self.name,
            len(records),
            meta["record_count"],
        )
        return len(records)

    def _delete_all(self) -> None:
        if self.index_dir.exists():
            shutil.rmtree(self.index_dir)
        log.info("Namespace deleted | namespace=%s", self.name)

    async def query(self, vector: Sequence[float], top_k: int = 1) -> List[VectorMatch]:
        return await run_sync(self._query, vector, top_k)

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        return await run_sync(self._upsert, records)

    async def delete_all(self) -> None:
        await run_sync(self._delete_all)

    def as_retriever(self, k: int = 4) -> VectorStoreRetriever:
        if not self._exists():
            raise ValueError(f"Namespace '{self.name}' holds no vectors")
        return self._load().as_retriever(search_type="similarity", search_kwargs={"k": k})


class FaissVectorIndex:
    """A named index: a folder of namespaces plus an index.json marker."""

    def __init__(self, name: str, index_dir: Path, embeddings: Embeddings):
        self.name = _check_name(name, "index")
        self.index_dir = Path(index_dir)
        self.emb = embeddings

    @property
    def dimension(self) -> int:
        marker = self.index_dir / INDEX_MARKER
        if not marker.exists():
            return 0
        return int(json.loads(marker.read_text(encoding="utf-8")).get("dimension", 0))

    def namespace(self, name: str) -> FaissNamespace:
        return FaissNamespace(name, self.index_dir / name, self.emb)

    def _describe_stats(self) -> IndexStats:
        stats = IndexStats(dimension=self.dimension)
        if not self.index_dir.exists():
            return stats

        for child in sorted(self.index_dir.iterdir()):
            if child.is_dir() and (child / META_FILE).exists():
                ns = self.namespace(child.name)
                stats.namespaces[child.name] = NamespaceStats(record_count=ns.record_count())
        return stats

    async def describe_stats(self) -> IndexStats:
        return await run_sync(self._describe_stats)


class FaissVectorClient:
    """
    Local stand-in for a hosted vector database:
    <root_dir>/<index name>/<namespace>/index.faiss
    """

    def __init__(self, root_dir: str | Path, embeddings: Embeddings):
        self.root_dir = Path(root_dir)
        self.emb = embeddings

    def _list_indexes(self) -> List[str]:
        if not self.root_dir.exists():
            return []
        return sorted(
            p.name for p in self.root_dir.iterdir() if (p / INDEX_MARKER).exists()
        )

    async def list_indexes(self) -> List[str]:
        return await run_sync(self._list_indexes)

    def create_index(self, name: str, dimension: int) -> FaissVectorIndex:
        """Provision an index. Operators do this once, before the service starts."""
        index_dir = self.root_dir / _check_name(name, "index")
        index_dir.mkdir(parents=True, exist_ok=True)
        (index_dir / INDEX_MARKER).write_text(
            json.dumps({"name": name, "dimension": dimension}), encoding="utf-8"
        )
        log.info("Vector index provisioned | index=%s | dimension=%d", name, dimension)
        return self.index(name)

    def index(self, name: str) -> FaissVectorIndex:
        return FaissVectorIndex(name, self.root_dir / name, self.emb)
