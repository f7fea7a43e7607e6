from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from langchain_core.documents import Document

from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.src.document_ingestion.chunk_sizing import (
    CHUNK_OVERLAP,
    FALLBACK_CHUNK_SIZE,
    chunk_size_for,
    split_documents,
)
from pdf_chat.src.document_ingestion.pdf_extractor import (
    DocumentExtractor,
    error_document,
    is_sentinel,
)
from pdf_chat.src.document_ingestion.table_detection import partition_documents

PIPELINE_ERROR_TEXT = "Error processing PDF with enhanced features. Please try again."


@dataclass
class ProcessingResult:
    """Outcome of one chunking strategy: chunks on success, a reason otherwise."""

    chunks: List[Document] = field(default_factory=list)
    fallback_reason: Optional[str] = None
    strategy: str = ""

    @property
    def ok(self) -> bool:
        return self.fallback_reason is None


def stamp_doc_id(chunks: Sequence[Document], doc_id: str) -> List[Document]:
    """Set doc_id on every chunk and record the page it was cut from."""
    for chunk in chunks:
        md = dict(chunk.metadata or {})
        md["doc_id"] = doc_id
        if "page" in md and "source_page" not in md:
            md["source_page"] = md["page"]
        md.setdefault("contains_table", False)
        md.setdefault("preserve_structure", False)
        chunk.metadata = md
    return list(chunks)


def enhanced_strategy(pages: List[Document], doc_id: str, chunk_overlap: int = CHUNK_OVERLAP) -> List[Document]:
    """Table-aware split with a chunk size derived from the regular pages."""
    regular, structured = partition_documents(pages, doc_id)

    chunks: List[Document] = []
    if regular:
        chunk_size = chunk_size_for(regular)
        log.info(
            "Using dynamic chunk size | doc_id=%s | chunk_size=%d | regular_pages=%d",
            doc_id,
            chunk_size,
            len(regular),
        )
        chunks.extend(split_documents(regular, chunk_size, chunk_overlap))

    if structured:
        log.info("Preserving tabular pages | doc_id=%s | count=%d", doc_id, len(structured))
    chunks.extend(structured)
    return chunks


def standard_strategy(
    pages: List[Document],
    doc_id: str,
    chunk_size: int = FALLBACK_CHUNK_SIZE,
    chunk_overlap: int = CHUNK_OVERLAP,
) -> List[Document]:
    """Fixed size split, no table awareness."""
    return split_documents(pages, chunk_size, chunk_overlap)


class IngestionPipeline:
    """
    PDF bytes -> tagged chunks for one document.

    - extract pages (errors and scanned PDFs come back as a single sentinel)
    - try the enhanced strategy, then the standard one
    - stamp every chunk with the document id

    process() never raises; the worst case is a single error chunk.
    """

    def __init__(
        self,
        extractor: Optional[DocumentExtractor] = None,
        chunk_overlap: int = CHUNK_OVERLAP,
        fallback_chunk_size: int = FALLBACK_CHUNK_SIZE,
        strategies: Optional[List[tuple[str, Callable[[List[Document], str], List[Document]]]]] = None,
    ):
        self.extractor = extractor or DocumentExtractor()
        self.chunk_overlap = chunk_overlap
        self.fallback_chunk_size = fallback_chunk_size
        self.strategies = strategies or [
            ("enhanced", lambda pages, doc_id: enhanced_strategy(pages, doc_id, self.chunk_overlap)),
            (
                "standard",
                lambda pages, doc_id: standard_strategy(
                    pages, doc_id, self.fallback_chunk_size, self.chunk_overlap
                ),
            ),
        ]

    def _run_strategy(self, name: str, strategy, pages: List[Document], doc_id: str) -> ProcessingResult:
        # strategies get their own copies so a failed attempt cannot leak metadata into the next
        page_copies = [Document(page_content=p.page_content, metadata=dict(p.metadata or {})) for p in pages]
        try:
            chunks = strategy(page_copies, doc_id)
        except Exception as e:
            log.error("Chunking strategy failed | strategy=%s | doc_id=%s | error=%s", name, doc_id, str(e))
            return ProcessingResult(fallback_reason=str(e) or type(e).__name__, strategy=name)
        return ProcessingResult(chunks=chunks, strategy=name)

    async def process(self, file_bytes: bytes, doc_id: str) -> List[Document]:
        try:
            pages = await self.extractor.extract(file_bytes, doc_id)
        except Exception as e:
            log.error("Extractor raised unexpectedly | doc_id=%s | error=%s", doc_id, str(e))
            return stamp_doc_id([error_document(e, PIPELINE_ERROR_TEXT)], doc_id)

        if is_sentinel(pages):
            log.info("Sentinel document passed through unsplit | doc_id=%s", doc_id)
            return stamp_doc_id(pages, doc_id)

        reasons: List[str] = []
        for name, strategy in self.strategies:
            result = self._run_strategy(name, strategy, pages, doc_id)
            if result.ok:
                chunks = stamp_doc_id(result.chunks, doc_id)
                log.info(
                    "Document chunked | doc_id=%s | strategy=%s | chunks=%d",
                    doc_id,
                    result.strategy,
                    len(chunks),
                )
                return chunks
            reasons.append(f"{name}: {result.fallback_reason}")
            log.warning("Falling back from %s processing | doc_id=%s", name, doc_id)

        return stamp_doc_id([error_document("; ".join(reasons), PIPELINE_ERROR_TEXT)], doc_id)
