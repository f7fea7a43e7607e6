from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import Services, get_db, get_services, get_user_id
from db.chat_repository import ChatRepository
from pdf_chat.logger import GLOBAL_LOGGER as log

router = APIRouter()


class ChatRequest(BaseModel):
    doc_id: str
    message: str


class ChatResponse(BaseModel):
    answer: str


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
    db=Depends(get_db),
):
    """
    Main chat endpoint.

    Pipeline:
      1. Validate input
      2. Run the retrieval chat engine (history-aware rewrite, retrieval, answer)
      3. Persist the human and ai turns
    """
    doc_id = req.doc_id.strip()
    question = req.message.strip()

    if not doc_id:
        raise HTTPException(400, "doc_id required")
    if not question:
        raise HTTPException(400, "message required")

    log.info("Chat request received | doc_id=%s", doc_id)

    engine = services.chat_engine(user_id, db)
    answer = await engine.answer(doc_id, question, user_id=user_id)

    # history is read before this turn is written, so the question is not duplicated in the prompt
    repo = ChatRepository(db)
    await repo.append_turn(user_id, doc_id, "human", question)
    await repo.append_turn(user_id, doc_id, "ai", answer)

    log.info("Chat completed | doc_id=%s", doc_id)
    return ChatResponse(answer=answer)
