from fastapi import APIRouter, Depends

from api.dependencies import get_db, get_user_id
from db.chat_repository import ChatRepository

router = APIRouter()


@router.get("/messages/{doc_id}")
async def get_messages(doc_id: str, user_id: str = Depends(get_user_id), db=Depends(get_db)):
    repo = ChatRepository(db)

    messages = await repo.list_turns(user_id, doc_id, order="asc")

    return [
        {"role": m.role, "message": m.message, "created_at": str(m.created_at)}
        for m in messages
    ]
