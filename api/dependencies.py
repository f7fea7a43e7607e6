from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from db.chat_repository import ChatRepository, DocumentRepository
from db.database import create_engine, create_session_factory, session_scope
from pdf_chat.exception.custom_exception import PreconditionError
from pdf_chat.logger import GLOBAL_LOGGER as log
from pdf_chat.src.document_chat.chat_engine import RetrievalChatEngine
from pdf_chat.src.document_ingestion.data_ingestion import IngestionPipeline
from pdf_chat.src.document_ingestion.pdf_extractor import DocumentExtractor
from pdf_chat.src.document_management.deletion import DocumentDeleter
from pdf_chat.src.vector_store.embedding_index import EmbeddingIndex
from pdf_chat.src.vector_store.faiss_store import FaissVectorClient
from pdf_chat.utils.config_loader import load_config
from pdf_chat.utils.file_io import LocalFileStore
from pdf_chat.utils.model_loader import ModelLoader


@dataclass
class Services:
    """
    Long-lived handles, created once at startup and passed explicitly to the
    per-request objects built below.
    """

    config: dict
    embeddings: Embeddings
    llm: BaseChatModel
    vector_client: FaissVectorClient
    file_store: LocalFileStore
    db_engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    @property
    def index_name(self) -> str:
        return self.config["vector_index"]["name"]

    def pipeline(self) -> IngestionPipeline:
        ingestion_cfg = self.config.get("ingestion", {})
        return IngestionPipeline(
            extractor=DocumentExtractor(min_text_chars=ingestion_cfg.get("min_text_chars", 100)),
            chunk_overlap=ingestion_cfg.get("chunk_overlap", 200),
            fallback_chunk_size=ingestion_cfg.get("fallback_chunk_size", 1000),
        )

    def embedding_index(self, user_id: str, db: AsyncSession) -> EmbeddingIndex:
        documents = DocumentRepository(db)

        async def load_source(doc_id: str) -> bytes:
            record = await documents.get(user_id, doc_id)
            if record is None:
                raise PreconditionError(f"Document {doc_id} not found")
            return await self.file_store.read(user_id, doc_id)

        return EmbeddingIndex(
            client=self.vector_client,
            index_name=self.index_name,
            embeddings=self.embeddings,
            pipeline=self.pipeline(),
            load_source=load_source,
            top_k=self.config["vector_index"].get("top_k", 4),
        )

    def chat_engine(self, user_id: str, db: AsyncSession) -> RetrievalChatEngine:
        return RetrievalChatEngine(
            embedding_index=self.embedding_index(user_id, db),
            llm=self.llm,
            history_store=ChatRepository(db),
            history_limit=self.config.get("chat", {}).get("history_limit", 20),
        )

    def deleter(self, db: AsyncSession) -> DocumentDeleter:
        return DocumentDeleter(
            delete_metadata=DocumentRepository(db).delete,
            delete_file=self.file_store.delete,
            vector_index=self.vector_client.index(self.index_name),
        )


def build_services(config: dict | None = None) -> Services:
    config = config or load_config()
    model_loader = ModelLoader(config=config)
    embeddings = model_loader.load_embeddings()
    db_engine = create_engine()

    services = Services(
        config=config,
        embeddings=embeddings,
        llm=model_loader.load_llm("rag"),
        vector_client=FaissVectorClient(config["vector_index"]["root_dir"], embeddings),
        file_store=LocalFileStore(config.get("storage", {}).get("root_dir", "data")),
        db_engine=db_engine,
        session_factory=create_session_factory(db_engine),
    )
    log.info("Services initialized | index=%s", services.index_name)
    return services


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_db(services: Services = Depends(get_services)) -> AsyncGenerator[AsyncSession, None]:
    async for db in session_scope(services.session_factory):
        yield db


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    # authentication happens upstream; we only need the caller's id
    if not x_user_id:
        raise HTTPException(401, "User not found")
    return x_user_id
