from __future__ import annotations

from typing import Awaitable, Callable, List

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import VectorStoreRetriever

from pdf_chat.exception.custom_exception import (
    EmbeddingGenerationError,
    IndexNotFoundError,
    PreconditionError,
    VectorStoreUnavailableError,
    is_transient_error,
)
from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.src.document_ingestion.data_ingestion import IngestionPipeline
from pdf_chat.src.vector_store.base import VectorClient, VectorIndex, VectorRecord
from pdf_chat.utils.thread_pool import run_sync

SourceLoader = Callable[[str], Awaitable[bytes]]


class EmbeddingIndex:
    """
    Maps a document id to its own namespace in the vector index.

    ensure_embeddings() reuses a populated namespace and only runs the
    ingestion pipeline + embedding model when the namespace is missing, so a
    document is embedded at most once (best effort: two concurrent first
    calls can both see an empty namespace).
    """

    def __init__(
        self,
        client: VectorClient,
        index_name: str,
        embeddings: Embeddings,
        pipeline: IngestionPipeline,
        load_source: SourceLoader,
        top_k: int = 4,
    ):
        self.client = client
        self.index_name = index_name
        self.embeddings = embeddings
        self.pipeline = pipeline
        self.load_source = load_source
        self.top_k = top_k

    async def ensure_index(self) -> VectorIndex:
        log.info("Checking vector index exists | index=%s", self.index_name)
        try:
            indexes = await self.client.list_indexes()
        except Exception as e:
            if is_transient_error(e):
                raise VectorStoreUnavailableError(
                    "Vector store may be temporarily unavailable. Please try again later.", e
                ) from e
            raise

        if self.index_name not in indexes:
            log.warning(
                "Vector index '%s' does not exist. Provision it before starting the service.",
                self.index_name,
            )
            raise IndexNotFoundError(
                f"Vector index '{self.index_name}' not found. Please create it first."
            )
        return self.client.index(self.index_name)

    async def namespace_exists(self, index: VectorIndex, namespace: str) -> bool:
        if not namespace:
            raise PreconditionError("No namespace value provided.")

        # signal 1: aggregate stats
        exists_in_stats = False
        try:
            stats = await index.describe_stats()
            ns_stats = stats.namespaces.get(namespace)
            exists_in_stats = ns_stats is not None and ns_stats.record_count > 0
            log.info(
                "Namespace stats check | namespace=%s | exists=%s | available=%s",
                namespace,
                exists_in_stats,
                list(stats.namespaces.keys()),
            )
        except Exception as e:
            log.warning("Stats check failed | namespace=%s | error=%s", namespace, str(e))

        # signal 2: zero-vector probe, catches stats that lag behind writes
        try:
            matches = await index.namespace(namespace).query([0.0] * index.dimension, top_k=1)
            has_vectors = len(matches) > 0
            log.info("Namespace probe | namespace=%s | has_vectors=%s", namespace, has_vectors)
        except Exception as e:
            log.warning("Probe query failed | namespace=%s | error=%s", namespace, str(e))
            return exists_in_stats

        return exists_in_stats or has_vectors

    async def _retriever(self, index: VectorIndex, doc_id: str) -> VectorStoreRetriever:
        return await run_sync(index.namespace(doc_id).as_retriever, self.top_k)

    async def generate_embeddings(self, index: VectorIndex, doc_id: str) -> int:
        """Run the pipeline for doc_id and write its vectors. Returns the vector count."""
        file_bytes = await self.load_source(doc_id)
        chunks: List[Document] = await self.pipeline.process(file_bytes, doc_id)

        for chunk in chunks:
            if not chunk.metadata.get("doc_id"):
                chunk.metadata["doc_id"] = doc_id

        texts = [c.page_content for c in chunks]
        log.info("Generating embeddings | doc_id=%s | chunks=%d", doc_id, len(texts))
        vectors = await self.embeddings.aembed_documents(texts)

        records = [
            VectorRecord(
                id=f"{doc_id}#{n}",
                values=list(vector),
                text=chunk.page_content,
                metadata=dict(chunk.metadata),
            )
            for n, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]
        log.info(
            "Storing embeddings | namespace=%s | index=%s | vectors=%d",
            doc_id,
            self.index_name,
            len(records),
        )
        return await index.namespace(doc_id).upsert(records)

    async def ensure_embeddings(self, doc_id: str) -> VectorStoreRetriever:
        if not doc_id:
            raise PreconditionError("Document ID is required")

        index = await self.ensure_index()

        try:
            if await self.namespace_exists(index, doc_id):
                log.info("Namespace %s already exists, reusing existing embeddings", doc_id)
                return await self._retriever(index, doc_id)

            log.info("Generating new embeddings for document ID: %s", doc_id)
            await self.generate_embeddings(index, doc_id)
            return await self._retriever(index, doc_id)

        except (PreconditionError, VectorStoreUnavailableError, EmbeddingGenerationError):
            raise
        except Exception as e:
            log.error("Error generating embeddings | doc_id=%s | error=%s", doc_id, str(e))
            if is_transient_error(e):
                raise VectorStoreUnavailableError(
                    "Vector store may be temporarily unavailable. Please try again later.", e
                ) from e
            raise EmbeddingGenerationError("Failed to generate embeddings", e) from e

