from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from api.dependencies import Services, get_db, get_services, get_user_id
from db.chat_repository import DocumentRepository
from db.models import generate_doc_id
from pdf_chat.exception.custom_exception import (
    DocumentPortalException,
    IndexNotFoundError,
    VectorStoreUnavailableError,
)
from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.utils.file_io import SUPPORTED_EXTENSIONS

router = APIRouter()


@router.post("/documents")
async def upload_document(
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
    db=Depends(get_db),
):
    """
    Upload endpoint:
      - stores the PDF and its metadata record
      - generates the document's embeddings in its own namespace
    """
    name = file.filename or "file.pdf"
    if Path(name).suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise HTTPException(400, "Only PDF files are supported")

    data = await file.read()
    if not data:
        raise HTTPException(400, "Empty file")

    doc_id = generate_doc_id()
    path = await services.file_store.save(user_id, doc_id, data)
    await DocumentRepository(db).create(
        user_id=user_id,
        name=name,
        size=len(data),
        file_path=str(path),
        doc_id=doc_id,
        content_type=file.content_type or "application/pdf",
    )

    try:
        await services.embedding_index(user_id, db).ensure_embeddings(doc_id)
    except VectorStoreUnavailableError as e:
        log.error("Embedding generation unavailable | doc_id=%s | error=%s", doc_id, str(e))
        raise HTTPException(503, str(e))
    except IndexNotFoundError as e:
        raise HTTPException(500, str(e))
    except DocumentPortalException as e:
        log.error("Embedding generation failed | doc_id=%s | error=%s", doc_id, str(e))
        raise HTTPException(500, f"Failed to process document: {e}")

    log.info("Upload completed and embeddings ready | doc_id=%s", doc_id)
    return {"doc_id": doc_id, "indexed": True}


@router.get("/documents")
async def list_documents(user_id: str = Depends(get_user_id), db=Depends(get_db)):
    records = await DocumentRepository(db).list_for_user(user_id)
    return [
        {
            "doc_id": r.id,
            "name": r.name,
            "size": r.size,
            "created_at": str(r.created_at),
        }
        for r in records
    ]


@router.delete("/documents/{doc_id}")
async def delete_document(
    doc_id: str,
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
    db=Depends(get_db),
):
    result = await services.deleter(db).delete_document(user_id, doc_id)
    return {"success": result.success, "message": result.message, "retriable": result.retriable}
