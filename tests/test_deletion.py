import asyncio

from conftest import InMemoryVectorIndex

from pdf_chat.src.document_management.deletion import DocumentDeleter
from pdf_chat.src.vector_store.base import VectorRecord


class RecordingOperation:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def __call__(self, user_id, doc_id):
        self.calls.append((user_id, doc_id))
        if self.error is not None:
            raise self.error


def _with_vectors(**knobs) -> InMemoryVectorIndex:
    index = InMemoryVectorIndex(**knobs)
    index.records["doc-1"] = [VectorRecord(id="doc-1#0", values=[0.0] * index.dimension, text="t", metadata={"doc_id": "doc-1"})]
    return index


def test_all_parts_deleted() -> None:
    metadata, storage = RecordingOperation(), RecordingOperation()
    index = _with_vectors()

    result = asyncio.run(DocumentDeleter(metadata, storage, index).delete_document("user-1", "doc-1"))

    assert result.success is True
    assert result.message == "Document successfully deleted"
    assert metadata.calls == [("user-1", "doc-1")]
    assert storage.calls == [("user-1", "doc-1")]
    assert "doc-1" not in index.records


def test_transient_vector_failure_does_not_stop_other_deletions() -> None:
    metadata, storage = RecordingOperation(), RecordingOperation()
    index = _with_vectors(delete_error=ConnectionError("network unreachable"))

    result = asyncio.run(DocumentDeleter(metadata, storage, index).delete_document("user-1", "doc-1"))

    assert result.success is False
    assert result.retriable is True
    assert "temporarily unavailable" in result.message
    assert "network unreachable" in result.message
    assert metadata.calls and storage.calls


def test_vector_logic_failure_is_not_retriable() -> None:
    index = _with_vectors(delete_error=ValueError("bad namespace"))

    result = asyncio.run(
        DocumentDeleter(RecordingOperation(), RecordingOperation(), index).delete_document("user-1", "doc-1")
    )

    assert result.success is False
    assert result.retriable is False
    assert result.message == "Failed to delete vector embeddings: bad namespace"


def test_absent_namespace_skips_vector_delete() -> None:
    index = InMemoryVectorIndex()

    result = asyncio.run(
        DocumentDeleter(RecordingOperation(), RecordingOperation(), index).delete_document("user-1", "doc-1")
    )

    assert result.success is True
    assert index.delete_calls == []


def test_stats_failure_still_attempts_vector_delete() -> None:
    index = _with_vectors(stats_error=RuntimeError("stats down"))

    result = asyncio.run(
        DocumentDeleter(RecordingOperation(), RecordingOperation(), index).delete_document("user-1", "doc-1")
    )

    assert result.success is True
    assert index.delete_calls == ["doc-1"]


def test_first_failure_is_reported() -> None:
    metadata = RecordingOperation(error=LookupError("Document doc-1 not found"))
    storage = RecordingOperation(error=FileNotFoundError("no such file"))

    result = asyncio.run(DocumentDeleter(metadata, storage, _with_vectors()).delete_document("user-1", "doc-1"))

    assert result.success is False
    assert result.message.startswith("Failed to delete document metadata:")
    assert result.retriable is False


def test_missing_ids_are_rejected_without_side_effects() -> None:
    metadata = RecordingOperation()
    deleter = DocumentDeleter(metadata, RecordingOperation(), InMemoryVectorIndex())

    assert asyncio.run(deleter.delete_document("", "doc-1")).message == "User not authenticated"
    assert asyncio.run(deleter.delete_document("user-1", "")).message == "Document ID is required"
    assert metadata.calls == []
