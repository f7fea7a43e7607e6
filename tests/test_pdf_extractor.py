import asyncio

from conftest import StaticPageLoader

from pdf_chat.src.document_ingestion.pdf_extractor import (
    SCANNED_DOCUMENT_TEXT,
    DocumentExtractor,
    is_error_document,
    is_sentinel,
)


def test_extraction_failure_becomes_error_document() -> None:
    extractor = DocumentExtractor(page_loader=StaticPageLoader(error=ValueError("EOF marker not found")))

    docs = asyncio.run(extractor.extract(b"not a pdf", "doc-1"))

    assert len(docs) == 1
    assert docs[0].metadata["source"] == "error"
    assert docs[0].metadata["error"] == "EOF marker not found"
    assert is_error_document(docs)
    assert is_sentinel(docs)


def test_near_empty_text_is_treated_as_scanned_document() -> None:
    # 50 characters of text in total across the pages
    extractor = DocumentExtractor(page_loader=StaticPageLoader(["x" * 20, "  " + "y" * 30 + "  \n"]))

    docs = asyncio.run(extractor.extract(b"%PDF", "doc-1"))

    assert len(docs) == 1
    assert docs[0].metadata["is_scanned_document"] is True
    assert docs[0].metadata["source"] == "upload.pdf"
    assert docs[0].page_content == SCANNED_DOCUMENT_TEXT
    assert is_sentinel(docs)
    assert not is_error_document(docs)


def test_pdf_without_pages_is_treated_as_scanned_document() -> None:
    extractor = DocumentExtractor(page_loader=StaticPageLoader([]))

    docs = asyncio.run(extractor.extract(b"%PDF"))

    assert len(docs) == 1
    assert docs[0].metadata == {"source": "unknown", "is_scanned_document": True}


def test_readable_pdf_returns_one_document_per_page(prose_pages) -> None:
    extractor = DocumentExtractor(page_loader=StaticPageLoader(prose_pages))

    docs = asyncio.run(extractor.extract(b"%PDF", "doc-1"))

    assert [d.page_content for d in docs] == prose_pages
    assert [d.metadata["page"] for d in docs] == [0, 1]
    assert not is_sentinel(docs)
