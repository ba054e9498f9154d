"""FastAPI application entry point with lifespan management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatstore.api.router import api_router
from chatstore.config import settings
from chatstore.dependencies import get_pipeline, get_session_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    logger.info("Starting %s...", settings.app_name)

    # Load persisted sessions (degrades to an empty store on bad data)
    store = get_session_store()
    logger.info(
        "Session store ready: %d session(s), active=%s",
        len(store.sessions),
        store.active_session_id,
    )

    yield

    # Drop replies that would land after shutdown
    get_pipeline().cancel_all()
    logger.info("%s shut down cleanly", settings.app_name)


app = FastAPI(
    title="Chat Session Store API",
    description="Local chat session manager: sessions, messages and persistence",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_url,
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(api_router, prefix="/api")

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
