"""eventchat FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from anthropic import AsyncAnthropic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventchat.chat.router import get_chat_service
from eventchat.chat.router import router as chat_router
from eventchat.chat.service import ChatService
from eventchat.config import Settings
from eventchat.db.connection import Database
from eventchat.events.projector import ConversationProjector
from eventchat.events.store import EventStore
from eventchat.providers.anthropic import AnthropicProvider
from eventchat.providers.base import LLMProvider
from eventchat.providers.openai import OpenAIProvider

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_provider(settings: Settings) -> LLMProvider | None:
    """Construct the one provider shared by every chat turn.

    An explicit EVENTCHAT_PROVIDER wins; otherwise the first provider with an
    API key is used. Returns None when no provider can be configured,
    including when the chosen provider has no API key.
    """
    choice = settings.provider
    if choice is None:
        if settings.openai_api_key:
            choice = "openai"
        elif settings.anthropic_api_key:
            choice = "anthropic"
        else:
            return None

    if choice == "openai":
        if not settings.openai_api_key:
            logger.warning("EVENTCHAT_PROVIDER=openai but OPENAI_API_KEY is not set")
            return None
        return OpenAIProvider(api_key=settings.openai_api_key)
    if choice == "anthropic":
        if not settings.anthropic_api_key:
            logger.warning("EVENTCHAT_PROVIDER=anthropic but ANTHROPIC_API_KEY is not set")
            return None
        return AnthropicProvider(AsyncAnthropic(api_key=settings.anthropic_api_key))
    raise ValueError(f"Unknown provider {choice!r}; expected 'openai' or 'anthropic'")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    settings = Settings()
    configure_logging(settings.log_level)

    db = await Database.connect(settings.db_path)

    provider = build_provider(settings)
    if provider is None:
        logger.warning("No API key found; chat turns will fail until one is configured")
    else:
        logger.info("Using %s provider", provider.name)

    store = EventStore(db)
    projector = ConversationProjector(db)
    chat_service = ChatService(
        store,
        projector,
        provider,
        model=settings.model,
        system_prompt=settings.system_prompt,
        max_tokens=settings.max_tokens,
    )
    app.dependency_overrides[get_chat_service] = lambda: chat_service

    app.state.db = db
    yield

    await db.close()


app = FastAPI(
    title="eventchat",
    description="Chat backend that records every turn as an event and serves a projected conversation view",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": "Malformed request"})


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}
