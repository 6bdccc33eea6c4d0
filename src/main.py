"""Chat API — FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.auth.routes import router as auth_router
from src.config.cors import SecurityHeadersMiddleware, configure_cors
from src.config.log_config import configure_logging
from src.conversations.routes import router as conversations_router
from src.db.client import create_database
from src.messages.routes import conversation_router as conversation_messages_router
from src.messages.routes import router as messages_router
from src.middleware.error_handler import register_error_handlers
from src.middleware.request_id import RequestIDMiddleware
from src.realtime.router import RoomRouter, database_membership
from src.realtime.routes import router as realtime_router
from src.users.routes import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    database = create_database()
    await database.init()
    app.state.database = database
    app.state.room_router = RoomRouter(database_membership(database))
    try:
        yield
    finally:
        await database.dispose()
        logger.info("Database disposed")


app = FastAPI(
    title="Chat API",
    description=(
        "One-to-one messaging with live delivery.\n\n"
        "## Features\n"
        "- JWT access tokens with rotating refresh cookies\n"
        "- Idempotent two-party conversations\n"
        "- Participant-only message history, sender-only edit and delete\n"
        "- Live fan-out of new messages over WebSocket rooms\n\n"
        "## Authentication\n"
        "All endpoints (except `/health`, `/docs`, register, login and refresh) require authentication.\n"
        "Use the `Authorization: Bearer <jwt>` header. The live channel at `/ws` accepts the same token."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Auth", "description": "Authentication: register, login, token refresh, logout"},
        {"name": "Users", "description": "User directory"},
        {"name": "Conversations", "description": "Two-party conversations"},
        {"name": "Messages", "description": "Send, list, edit and delete messages"},
        {"name": "Realtime", "description": "WebSocket live channel"},
    ],
)

# --- Middleware (order matters: outermost first) ---
app.add_middleware(RequestIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
configure_cors(app)

# --- Error handlers ---
register_error_handlers(app)

# --- Routes ---
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(conversations_router)
app.include_router(conversation_messages_router)
app.include_router(messages_router)
app.include_router(realtime_router)


@app.get("/health", tags=["Health"], summary="Health check", description="Returns OK if the service is running.")
async def health_check():
    return {"status": "ok"}
