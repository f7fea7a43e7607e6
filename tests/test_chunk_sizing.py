from langchain_core.documents import Document

from pdf_chat.src.document_ingestion.chunk_sizing import (
    CHUNK_OVERLAP,
    calculate_chunk_size,
    chunk_size_for,
    split_documents,
)


def test_small_and_very_large_documents_get_smallest_and_largest_sizes() -> None:
    small = calculate_chunk_size(page_count=5, total_chars=5_000)
    large = calculate_chunk_size(page_count=300, total_chars=600_000)

    assert small == 500
    assert large == 2000
    assert small <= large


def test_either_dimension_qualifies_for_smaller_bucket() -> None:
    # few pages but long text: page count alone selects 500
    assert calculate_chunk_size(page_count=3, total_chars=400_000) == 500
    # many pages but short text: length alone selects 500
    assert calculate_chunk_size(page_count=400, total_chars=10_000) == 500


def test_intermediate_buckets() -> None:
    assert calculate_chunk_size(page_count=12, total_chars=24_000) == 1000
    assert calculate_chunk_size(page_count=60, total_chars=150_000) == 1500
    assert calculate_chunk_size(page_count=200, total_chars=500_000) == 2000


def test_chunk_size_is_monotonic_in_document_size() -> None:
    sizes = [
        calculate_chunk_size(pages, chars)
        for pages, chars in [(1, 100), (15, 30_000), (80, 200_000), (250, 700_000)]
    ]
    assert sizes == sorted(sizes)


def test_chunk_size_for_uses_page_count_and_total_length() -> None:
    docs = [Document(page_content="x" * 2_000) for _ in range(12)]
    assert chunk_size_for(docs) == 1000


def test_split_documents_prefers_paragraph_boundaries() -> None:
    paragraph = ("alpha beta gamma delta " * 15).strip()
    text = "\n\n".join([paragraph] * 4)
    chunks = split_documents([Document(page_content=text)], chunk_size=500, chunk_overlap=CHUNK_OVERLAP)

    assert len(chunks) > 1
    assert all(len(c.page_content) <= 500 for c in chunks)
    assert all(c.page_content.startswith("alpha") for c in chunks)
