import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from pdf_chat.exception.custom_exception import (
    VectorStoreUnavailableError,
    is_transient_error,
)
from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.src.vector_store.base import VectorIndex

# (user_id, doc_id) -> None; raises on failure
DeleteOperation = Callable[[str, str], Awaitable[None]]


@dataclass
class DeleteResult:
    success: bool
    message: str
    retriable: bool = False


class DocumentDeleter:
    """
    Removes a document's metadata record, stored file and vector namespace.

    The three deletions are independent and run concurrently; one failing
    does not stop the others and nothing is rolled back.
    """

    def __init__(
        self,
        delete_metadata: DeleteOperation,
        delete_file: DeleteOperation,
        vector_index: VectorIndex,
    ):
        self.delete_metadata = delete_metadata
        self.delete_file = delete_file
        self.vector_index = vector_index

    async def _delete_metadata(self, user_id: str, doc_id: str) -> None:
        try:
            await self.delete_metadata(user_id, doc_id)
        except Exception as e:
            log.error("Error deleting document metadata | doc_id=%s | error=%s", doc_id, str(e))
            raise RuntimeError(f"Failed to delete document metadata: {e}") from e

    async def _delete_file(self, user_id: str, doc_id: str) -> None:
        try:
            await self.delete_file(user_id, doc_id)
        except Exception as e:
            log.error("Error deleting stored file | doc_id=%s | error=%s", doc_id, str(e))
            raise RuntimeError(f"Failed to delete file from storage: {e}") from e

    async def _delete_vectors(self, doc_id: str) -> None:
        try:
            namespace = self.vector_index.namespace(doc_id)
            try:
                stats = await self.vector_index.describe_stats()
            except Exception as stats_error:
                log.error("Error checking namespace stats | doc_id=%s | error=%s", doc_id, str(stats_error))
                # stats unavailable: attempt the delete anyway
                await namespace.delete_all()
                return

            if doc_id in stats.namespaces:
                await namespace.delete_all()
                log.info("Deleted vectors for namespace: %s", doc_id)
            else:
                log.info("Namespace %s not found in vector index, nothing to delete", doc_id)

        except Exception as e:
            log.error("Error deleting vectors | doc_id=%s | error=%s", doc_id, str(e))
            if is_transient_error(e):
                raise VectorStoreUnavailableError(
                    f"Vector store may be temporarily unavailable. Please try again later. Error: {e}"
                ) from e
            raise RuntimeError(f"Failed to delete vector embeddings: {e}") from e

    async def delete_document(self, user_id: str, doc_id: str) -> DeleteResult:
        if not user_id:
            return DeleteResult(success=False, message="User not authenticated")
        if not doc_id:
            return DeleteResult(success=False, message="Document ID is required")

        results = await asyncio.gather(
            self._delete_metadata(user_id, doc_id),
            self._delete_file(user_id, doc_id),
            self._delete_vectors(doc_id),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            first = errors[0]
            log.error("Error deleting document %s | failures=%d", doc_id, len(errors))
            return DeleteResult(
                success=False,
                message=str(first),
                retriable=any(isinstance(e, VectorStoreUnavailableError) for e in errors),
            )

        log.info("Document deleted | doc_id=%s", doc_id)
        return DeleteResult(success=True, message="Document successfully deleted")
