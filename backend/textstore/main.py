"""FastAPI application entry point."""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import Field
from pydantic_settings import BaseSettings
from starlette.responses import Response

from textstore.api.routes import metrics, texts, users
from textstore.services.qdrant_backend import QdrantBackend
from textstore.services.text_store import DEFAULT_CHUNK_SIZE, TextStore
from textstore.utils.logger import logger


class Settings(BaseSettings):
    """Application settings."""

    # Search backend connection, passed through to the client unchanged
    backend_host: str = "localhost"
    backend_port: int = 6333
    backend_protocol: str = "http"
    backend_timeout: int = 30
    qdrant_path: str = ""  # Embedded storage directory (empty = connect to backend_host)

    index_name: str = "textus"
    users_index_name: str = "textus-users"
    text_chunk_size: int = Field(DEFAULT_CHUNK_SIZE, gt=0)

    upload_dir: str = "./uploads"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    class Config:
        # .env at the repository root
        env_file = os.path.join(os.path.dirname(__file__), "..", "..", ".env")
        env_file_encoding = 'utf-8'
        case_sensitive = False
        extra = "ignore"


# Global services (initialized in lifespan)
text_store: TextStore = None
settings: Settings = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global text_store, settings

    # Startup
    logger.info("Starting text store")
    settings = Settings()

    backend = QdrantBackend(
        host=settings.backend_host,
        port=settings.backend_port,
        protocol=settings.backend_protocol,
        timeout=settings.backend_timeout,
        path=settings.qdrant_path or None,
    )
    text_store = TextStore(
        backend=backend,
        index_name=settings.index_name,
        users_index_name=settings.users_index_name,
        text_chunk_size=settings.text_chunk_size,
    )
    logger.info(f"Text store initialized (chunk size {settings.text_chunk_size})")

    yield

    # Shutdown
    logger.info("Shutting down text store")
    await backend.close()
    text_store = None


# Create FastAPI app
app = FastAPI(
    title="Text Store",
    description="Chunked long-text storage with range retrieval",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Text Store"}


# Prometheus metrics endpoint
@app.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include routers
app.include_router(texts.router, prefix="/api", tags=["texts"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])


if __name__ == "__main__":
    import uvicorn

    # Routes read the lifespan globals from textstore.main, not __main__
    run_settings = Settings()
    uvicorn.run("textstore.main:app", host=run_settings.api_host, port=run_settings.api_port)
