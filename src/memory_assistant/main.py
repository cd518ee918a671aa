"""Memory Assistant FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import logfire
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from memory_assistant import __version__
from memory_assistant.api import dependencies
from memory_assistant.api import router as api_router
from memory_assistant.api.endpoints import core
from memory_assistant.core.config import settings
from memory_assistant.core.handlers import register_error_handlers
from memory_assistant.core.logging import bind_request_context, clear_request_context, get_logger, setup_logging
from memory_assistant.infrastructure.embeddings.openai_provider import OpenAIEmbeddingGateway
from memory_assistant.infrastructure.generation.openai_provider import OpenAIGenerationGateway
from memory_assistant.infrastructure.neo4j.driver import create_neo4j_driver, ensure_schema
from memory_assistant.infrastructure.repositories.store import Neo4jStore

logfire.configure(service_name="memory-assistant", send_to_logfire="if-token-present")
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Open the Neo4j driver and provider clients for the app lifetime."""
    logger.info("Starting Memory Assistant")

    try:
        driver = await create_neo4j_driver(settings)
        await ensure_schema(driver)

        dependencies.neo4j_driver = driver
        dependencies.store = Neo4jStore(driver)
        dependencies.embedding_gateway = OpenAIEmbeddingGateway()
        dependencies.generation_gateway = OpenAIGenerationGateway()
        logger.info(
            "Services initialized",
            chat_model=settings.chat.model,
            embedding_space=settings.chat.embedding_space.value,
        )

        yield  # Application is running

    except Exception as e:
        logger.error(f"Failed to start Memory Assistant: {e}", exc_info=True)
        raise

    finally:
        logger.info("Shutting down Memory Assistant")
        if dependencies.neo4j_driver is not None:
            await dependencies.neo4j_driver.close()
            logger.info("Neo4j connection closed")
        dependencies.neo4j_driver = None
        dependencies.store = None
        dependencies.embedding_gateway = None
        dependencies.generation_gateway = None


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Memory Assistant API",
        description="Personal memory assistant: retrieval-grounded, streamed chat",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    # Enable FastAPI instrumentation for request tracing
    logfire.instrument_fastapi(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        clear_request_context()
        bind_request_context(path=request.url.path, method=request.method)
        return await call_next(request)

    register_error_handlers(app)

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(core.router)
    return app


app = create_app()


def run() -> None:
    """Development server entry point."""
    logger.info("Starting Memory Assistant development server")

    uvicorn.run(
        "memory_assistant.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    run()
