from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

import logging
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config.settings import Settings, get_settings
from counsel.core.conversation_log import ConversationLog
from counsel.core.moderation import load_vocabulary
from counsel.core.prompt import SYSTEM_PROMPT
from counsel.errors import ProviderError, StorageError, ValidationError
from counsel.gateway import CompletionGateway
from counsel.providers import CompletionProvider, build_provider
from counsel.retention import RetentionPolicy, RetentionScheduler


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("counsel")

CHAT_FAILURE = "Error processing your request"
LIST_FAILURE = "Error fetching conversations"


class ChatRequest(BaseModel):
    prompt: str = Field(..., description="User's question for the persona")


class ChatResponse(BaseModel):
    message: str


class ConversationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    answer: str
    created_at: datetime = Field(..., alias="createdAt")


def get_gateway(request: Request) -> CompletionGateway:
    return request.app.state.gateway


def get_conversation_log(request: Request) -> ConversationLog:
    return request.app.state.conversation_log


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[CompletionProvider] = None,
    conversation_log: Optional[ConversationLog] = None,
) -> FastAPI:
    """Build the service and all of its collaborators.

    Vocabulary or schedule problems raise ``StartupError`` here, before the
    app is handed to the server.
    """
    settings = settings or get_settings()

    vocabulary = load_vocabulary(settings.vocabulary_path)
    conversation_log = conversation_log or ConversationLog.from_url(settings.database_url)
    provider = provider or build_provider(settings)
    gateway = CompletionGateway(
        provider=provider,
        vocabulary=vocabulary,
        log=conversation_log,
        persona=settings.persona_prompt or SYSTEM_PROMPT,
        max_output_tokens=settings.max_output_tokens,
    )
    policy = RetentionPolicy(conversation_log, settings.retention_max_records)
    scheduler = RetentionScheduler(policy, settings.retention_schedule)

    logger.info(
        "Config: provider=%s vocabulary_terms=%s retention_limit=%s schedule=%r rate_limit=%r",
        getattr(provider, "name", type(provider).__name__),
        len(vocabulary),
        settings.retention_max_records,
        settings.retention_schedule,
        settings.rate_limit,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.retention_enabled:
            scheduler.start()
        yield
        scheduler.stop()
        conversation_log.close()

    app = FastAPI(title="Persona Counsel Relay", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.vocabulary = vocabulary
    app.state.conversation_log = conversation_log
    app.state.gateway = gateway
    app.state.retention_policy = policy
    app.state.retention_scheduler = scheduler

    # Per-client request budget for the paid completion endpoint
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS: allow any origin during development, the configured one otherwise
    if settings.app_env.lower() in {"dev", "development", "local"}:
        origins = ["*"]
    else:
        origins = [settings.cors_origin]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/chat", response_model=ChatResponse)
    @limiter.limit(settings.rate_limit)
    def chat(
        request: Request,
        req: ChatRequest,
        gateway: CompletionGateway = Depends(get_gateway),
    ):
        try:
            message = gateway.handle(req.prompt)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except (ProviderError, StorageError) as e:
            logger.error("Chat processing failed: %s", e)
            return PlainTextResponse(CHAT_FAILURE, status_code=500)
        return ChatResponse(message=message)

    @app.get("/api/conversation", response_model=List[ConversationOut])
    def list_conversations(log: ConversationLog = Depends(get_conversation_log)):
        try:
            records = log.list_recent()
        except StorageError as e:
            logger.error("Error fetching conversations: %s", e)
            return PlainTextResponse(LIST_FAILURE, status_code=500)
        return [
            ConversationOut(question=r.question, answer=r.answer, created_at=r.created_at)
            for r in records
        ]

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
