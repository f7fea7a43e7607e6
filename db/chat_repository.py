from typing import List, Literal, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pdf_chat.logger import GLOBAL_LOGGER as log

from .models import ChatMessage, DocumentRecord, generate_doc_id

ROLES = ("human", "ai")


class ChatRepository:
    """
    Append-only chat log per (user, document).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append_turn(self, user_id: str, doc_id: str, role: str, message: str) -> ChatMessage:
        if role not in ROLES:
            raise ValueError(f"Unknown chat role '{role}', expected one of {ROLES}")

        turn = ChatMessage(user_id=user_id, doc_id=doc_id, role=role, message=message)
        self.db.add(turn)
        await self.db.commit()
        await self.db.refresh(turn)

        log.info("Chat turn persisted | doc_id=%s | role=%s", doc_id, role)
        return turn

    async def list_turns(
        self,
        user_id: str,
        doc_id: str,
        order: Literal["asc", "desc"] = "desc",
        limit: Optional[int] = None,
    ) -> List[ChatMessage]:
        """
        Messages of one document's chat. With order="desc" and a limit this is
        the "most recent N" view; callers reverse it for chronological use.
        """
        if order == "desc":
            ordering = (ChatMessage.created_at.desc(), ChatMessage.id.desc())
        else:
            ordering = (ChatMessage.created_at.asc(), ChatMessage.id.asc())

        stmt = (
            select(ChatMessage)
            .where(ChatMessage.user_id == user_id, ChatMessage.doc_id == doc_id)
            .order_by(*ordering)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        out = await self.db.execute(stmt)
        rows = list(out.scalars().all())
        log.info("Loaded chat history | doc_id=%s | order=%s | count=%d", doc_id, order, len(rows))
        return rows


class DocumentRepository:
    """
    Metadata records of uploaded documents.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: str,
        name: str,
        size: int,
        file_path: str,
        doc_id: Optional[str] = None,
        content_type: str = "application/pdf",
    ) -> DocumentRecord:
        record = DocumentRecord(
            id=doc_id or generate_doc_id(),
            user_id=user_id,
            name=name,
            size=size,
            file_path=file_path,
            content_type=content_type,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        log.info("Document record created | doc_id=%s | name=%s", record.id, name)
        return record

    async def get(self, user_id: str, doc_id: str) -> Optional[DocumentRecord]:
        out = await self.db.execute(
            select(DocumentRecord).where(
                DocumentRecord.id == doc_id, DocumentRecord.user_id == user_id
            )
        )
        return out.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> List[DocumentRecord]:
        out = await self.db.execute(
            select(DocumentRecord)
            .where(DocumentRecord.user_id == user_id)
            .order_by(DocumentRecord.created_at.desc())
        )
        return list(out.scalars().all())

    async def delete(self, user_id: str, doc_id: str) -> None:
        """Remove the record and its chat log. Raises LookupError if there is no record."""
        if await self.get(user_id, doc_id) is None:
            raise LookupError(f"Document {doc_id} not found")

        await self.db.execute(
            delete(ChatMessage).where(
                ChatMessage.user_id == user_id, ChatMessage.doc_id == doc_id
            )
        )
        await self.db.execute(
            delete(DocumentRecord).where(
                DocumentRecord.id == doc_id, DocumentRecord.user_id == user_id
            )
        )
        await self.db.commit()
        log.info("Document record deleted | doc_id=%s", doc_id)
