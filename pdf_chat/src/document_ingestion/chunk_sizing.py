from typing import List, Sequence

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

CHUNK_OVERLAP = 200
FALLBACK_CHUNK_SIZE = 1000

# paragraph, line, word, then character level
SEPARATORS = ["\n\n", "\n", " ", ""]

# (max pages, max total characters, chunk size); a document lands in the first
# bucket where EITHER limit is not reached
SIZE_BUCKETS = (
    (10, 20_000, 500),
    (50, 100_000, 1000),
    (200, 500_000, 1500),
)
LARGEST_CHUNK_SIZE = 2000


def calculate_chunk_size(page_count: int, total_chars: int) -> int:
    """Pick a chunk size from the document's page count and total length."""
    for max_pages, max_chars, chunk_size in SIZE_BUCKETS:
        if page_count < max_pages or total_chars < max_chars:
            return chunk_size
    return LARGEST_CHUNK_SIZE


def chunk_size_for(docs: Sequence[Document]) -> int:
    total_chars = sum(len(doc.page_content) for doc in docs)
    return calculate_chunk_size(len(docs), total_chars)


def build_splitter(chunk_size: int, chunk_overlap: int = CHUNK_OVERLAP) -> RecursiveCharacterTextSplitter:
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        separators=SEPARATORS,
    )


def split_documents(
    docs: List[Document], chunk_size: int, chunk_overlap: int = CHUNK_OVERLAP
) -> List[Document]:
    return build_splitter(chunk_size, chunk_overlap).split_documents(docs)
