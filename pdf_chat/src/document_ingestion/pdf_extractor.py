from __future__ import annotations

import os
import tempfile
from typing import List, Optional, Protocol, Sequence

from langchain_community.document_loaders import PyPDFLoader
from langchain_core.documents import Document

from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.utils.thread_pool import run_sync

MIN_TEXT_CHARS = 100

ERROR_SOURCE = "error"
EXTRACTION_ERROR_TEXT = (
    "Error processing PDF document. Please try again with a different file."
)
SCANNED_DOCUMENT_TEXT = (
    "This appears to be a scanned document. "
    "The system was able to extract limited text content."
)


class PageLoader(Protocol):
    def load(self, file_bytes: bytes) -> List[Document]: ...


class PyPDFPageLoader:
    """Loads one Document per PDF page with pypdf (via LangChain's PyPDFLoader)."""

    def load(self, file_bytes: bytes) -> List[Document]:
        # PyPDFLoader only reads from a path
        fd, tmp_path = tempfile.mkstemp(suffix=".pdf")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(file_bytes)
            return PyPDFLoader(tmp_path).load()
        finally:
            os.remove(tmp_path)


def error_document(error: BaseException | str, text: str = EXTRACTION_ERROR_TEXT) -> Document:
    return Document(
        page_content=text,
        metadata={"source": ERROR_SOURCE, "error": str(error)},
    )


def is_error_document(docs: Sequence[Document]) -> bool:
    return len(docs) == 1 and (docs[0].metadata or {}).get("source") == ERROR_SOURCE


def is_sentinel(docs: Sequence[Document]) -> bool:
    """True for the extraction-error and scanned-document placeholders."""
    if len(docs) != 1:
        return False
    md = docs[0].metadata or {}
    return md.get("source") == ERROR_SOURCE or bool(md.get("is_scanned_document"))


class DocumentExtractor:
    """
    PDF bytes -> one Document per page.

    Never raises: loader failures become a single error document and
    near-empty output (typically a scanned PDF) becomes a single placeholder.
    """

    def __init__(
        self,
        page_loader: Optional[PageLoader] = None,
        min_text_chars: int = MIN_TEXT_CHARS,
    ):
        self.page_loader = page_loader or PyPDFPageLoader()
        self.min_text_chars = min_text_chars

    async def extract(self, file_bytes: bytes, doc_id: Optional[str] = None) -> List[Document]:
        try:
            docs = await run_sync(self.page_loader.load, file_bytes)
        except Exception as e:
            log.error("PDF extraction failed | doc_id=%s | error=%s", doc_id, str(e))
            return [error_document(e)]

        total_content = sum(len(doc.page_content.strip()) for doc in docs)

        if total_content < self.min_text_chars:
            log.warning(
                "Minimal content extracted, treating as scanned document | doc_id=%s | pages=%d | chars=%d",
                doc_id,
                len(docs),
                total_content,
            )
            source = (docs[0].metadata or {}).get("source", "unknown") if docs else "unknown"
            return [
                Document(
                    page_content=SCANNED_DOCUMENT_TEXT,
                    metadata={"source": source, "is_scanned_document": True},
                )
            ]

        log.info("PDF extracted | doc_id=%s | pages=%d | chars=%d", doc_id, len(docs), total_content)
        return docs
