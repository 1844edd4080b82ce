"""FastAPI application exposing the conversation topic map."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contextdojo.api.graph import router as graph_router
from contextdojo.config import settings
from contextdojo.ingestion.llm_client import close_llm_client
from contextdojo.session import ConversationSession

logger = logging.getLogger(__name__)


def create_app(session: ConversationSession | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        session: Session to serve; a default one is built at startup if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting ContextDojo API...")
        app.state.session = session or ConversationSession()
        await app.state.session.start()

        yield

        logger.info("Shutting down ContextDojo API...")
        await app.state.session.close()
        await close_llm_client()

    app = FastAPI(
        title="ContextDojo",
        description="Conversation topic map for a conversational skills coach",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(graph_router)

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "contextdojo.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
