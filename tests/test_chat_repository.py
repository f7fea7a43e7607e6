import asyncio

import pytest

from db.chat_repository import ChatRepository, DocumentRepository
from db.database import create_engine, create_session_factory, init_db


def _run_with_session(tmp_path, scenario):
    async def runner():
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}")
        try:
            await init_db(engine)
            session_factory = create_session_factory(engine)
            async with session_factory() as db:
                return await scenario(db)
        finally:
            await engine.dispose()

    return asyncio.run(runner())


def test_turns_come_back_in_both_orders(tmp_path) -> None:
    async def scenario(db):
        repo = ChatRepository(db)
        for i, role in enumerate(["human", "ai", "human", "ai"]):
            await repo.append_turn("user-1", "doc-1", role, f"message {i}")
        asc = await repo.list_turns("user-1", "doc-1", order="asc")
        desc = await repo.list_turns("user-1", "doc-1", order="desc", limit=2)
        return [m.message for m in asc], [m.message for m in desc]

    asc, desc = _run_with_session(tmp_path, scenario)

    assert asc == ["message 0", "message 1", "message 2", "message 3"]
    assert desc == ["message 3", "message 2"]


def test_turns_are_scoped_to_user_and_document(tmp_path) -> None:
    async def scenario(db):
        repo = ChatRepository(db)
        await repo.append_turn("user-1", "doc-1", "human", "mine")
        await repo.append_turn("user-1", "doc-2", "human", "other document")
        await repo.append_turn("user-2", "doc-1", "human", "other user")
        return await repo.list_turns("user-1", "doc-1")

    rows = _run_with_session(tmp_path, scenario)
    assert [m.message for m in rows] == ["mine"]


def test_unknown_role_is_rejected(tmp_path) -> None:
    async def scenario(db):
        await ChatRepository(db).append_turn("user-1", "doc-1", "system", "hello")

    with pytest.raises(ValueError):
        _run_with_session(tmp_path, scenario)


def test_document_delete_removes_record_and_chat(tmp_path) -> None:
    async def scenario(db):
        docs = DocumentRepository(db)
        chats = ChatRepository(db)
        record = await docs.create("user-1", "report.pdf", 1024, "data/user-1/x.pdf")
        await chats.append_turn("user-1", record.id, "human", "hello")

        listed = await docs.list_for_user("user-1")
        await docs.delete("user-1", record.id)
        return record, listed, await docs.get("user-1", record.id), await chats.list_turns("user-1", record.id)

    record, listed, after, turns = _run_with_session(tmp_path, scenario)

    assert [d.id for d in listed] == [record.id]
    assert after is None
    assert turns == []


def test_deleting_unknown_document_raises_lookup_error(tmp_path) -> None:
    async def scenario(db):
        await DocumentRepository(db).delete("user-1", "missing")

    with pytest.raises(LookupError):
        _run_with_session(tmp_path, scenario)
