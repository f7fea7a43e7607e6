import re
from typing import List, Sequence, Tuple

from langchain_core.documents import Document

MIN_DELIMITED_LINES = 3

# a markdown separator row such as "---|---|---" or "| --- | --- |"
MARKDOWN_SEPARATOR_RE = re.compile(r"^(?=[^\n]*\|)(?=[^\n]*-)[ \t|\-]+$", re.MULTILINE)


def _count_lines_with(text: str, char: str) -> int:
    return sum(1 for line in text.splitlines() if char in line)


def is_tabular(text: str) -> bool:
    """
    Heuristic table detection for extracted page text.

    A page counts as tabular when at least three lines are pipe-delimited,
    at least three lines are tab-delimited, or it holds a markdown table
    separator row.
    """
    if "|" in text and _count_lines_with(text, "|") >= MIN_DELIMITED_LINES:
        return True
    if "\t" in text and _count_lines_with(text, "\t") >= MIN_DELIMITED_LINES:
        return True
    return bool(MARKDOWN_SEPARATOR_RE.search(text))


def partition_documents(
    docs: Sequence[Document], doc_id: str
) -> Tuple[List[Document], List[Document]]:
    """
    Split documents into (regular, structured).

    Structured documents are tagged so the splitter leaves them whole; both
    groups get the owning document id.
    """
    regular: List[Document] = []
    structured: List[Document] = []

    for doc in docs:
        md = dict(doc.metadata or {})
        md["doc_id"] = doc_id

        if is_tabular(doc.page_content):
            md.update({"contains_table": True, "preserve_structure": True})
            structured.append(Document(page_content=doc.page_content, metadata=md))
        else:
            regular.append(Document(page_content=doc.page_content, metadata=md))

    return regular, structured
