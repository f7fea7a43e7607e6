from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import build_services
from api.routers import chat, documents, health, messages
from db.database import init_db
from pdf_chat.logger import GLOBAL_LOGGER as log


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Application startup initiated")
    services = build_services()
    await init_db(services.db_engine)
    app.state.services = services
    yield
    await services.db_engine.dispose()
    log.info("Application shutdown")


app = FastAPI(title="Chat with PDF Backend", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router Registration
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(documents.router, tags=["documents"])
app.include_router(chat.router, tags=["chat"])
app.include_router(messages.router, tags=["messages"])


@app.get("/")
async def root():
    return {"message": "Backend is running"}
