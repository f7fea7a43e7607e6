from __future__ import annotations

import re
from pathlib import Path

from pdf_chat.exception.custom_exception import PreconditionError
from pdf_chat.logger.custom_logger import CustomLogger
from pdf_chat.utils.thread_pool import run_sync

SUPPORTED_EXTENSIONS = {".pdf"}

# Local logger instance
log = CustomLogger().get_logger(__name__)


def _safe_segment(value: str) -> str:
    # only alphanum, dash, underscore
    return re.sub(r"[^a-zA-Z0-9_\-]", "_", value)


class LocalFileStore:
    """
    Stores uploaded PDFs on the local filesystem at <root>/<user_id>/<doc_id>.pdf
    """

    def __init__(self, root_dir: str | Path = "data"):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, user_id: str, doc_id: str) -> Path:
        if not user_id or not doc_id:
            raise PreconditionError("User ID and document ID are required")
        return self.root_dir / _safe_segment(user_id) / f"{_safe_segment(doc_id)}.pdf"

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    async def save(self, user_id: str, doc_id: str, data: bytes) -> Path:
        path = self.path_for(user_id, doc_id)
        await run_sync(self._write, path, data)
        log.info("File saved | doc_id=%s | path=%s | bytes=%d", doc_id, path, len(data))
        return path

    async def read(self, user_id: str, doc_id: str) -> bytes:
        path = self.path_for(user_id, doc_id)
        if not path.exists():
            raise PreconditionError(f"Stored file not found for document {doc_id}")
        return await run_sync(path.read_bytes)

    async def delete(self, user_id: str, doc_id: str) -> None:
        path = self.path_for(user_id, doc_id)
        # missing_ok=False: a missing file is reported to the caller
        await run_sync(path.unlink)
        log.info("File deleted | doc_id=%s | path=%s", doc_id, path)
