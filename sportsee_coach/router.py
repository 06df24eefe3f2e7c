"""
SportSee Coach API Router
=========================

FastAPI router for the coach chat.

POST /api/chat validates and sanitizes the request, applies the per-client
rate limit, loads the user's data from the Activity Store and runs one
orchestrated chat turn. Logging carries metadata only, never message
contents or API keys.
"""

import logging
import re
import uuid
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from sportsee_coach.orchestrator import CoachOrchestrator, ChatRequest
from sportsee_coach.llm_client import LLMClient, create_llm_client
from sportsee_coach.rate_limit import RateLimiter
from sportsee_coach.repository import ActivityRepository
from sportsee_coach.api_store import SportSeeApiStore, ActivityStoreError
from sportsee_coach.context_builder import build_user_context


router = APIRouter(prefix="/api", tags=["coach"])


# ==============================================================================
# REQUEST LIMITS
# ==============================================================================
MAX_MESSAGE_CHARS = 4000
MAX_TOTAL_CHARS = 6000
MAX_TOKENS = 2048
DEFAULT_MAX_TOKENS = 512
DEFAULT_TEMPERATURE = 0.2
MAX_USER_CONTEXT_CHARS = 2000
ALLOWED_MODELS = {
    "mistral-small-latest",
    "mistral-large-latest",
    "open-mixtral-8x7b",
    "open-mistral-7b",
}
ALLOWED_ROLES = {"user", "system", "assistant"}

CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
RATE_LIMITED_MESSAGE = "Trop de requêtes. Réessayez dans un instant."


# ==============================================================================
# Request/Response Models
# ==============================================================================

class ChatMessage(BaseModel):
    role: str = "user"
    content: str = ""


class ChatRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    message: Optional[str] = None
    messages: Optional[List[ChatMessage]] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    user_context: Optional[str] = Field(default=None, alias="userContext")
    user_id: Optional[int] = None
    include_context: bool = True


class ChatResponseBody(BaseModel):
    id: str
    model: Optional[str] = None
    reply: str
    validated: bool = False
    fallback_used: bool = False
    issues: List[str] = []


class ContextResponseBody(BaseModel):
    user_id: int
    context: str


class ChatRequestError(ValueError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


# ==============================================================================
# Helper Functions
# ==============================================================================

def sanitize_text(value) -> str:
    return CONTROL_CHARS.sub('', str(value)).strip()


def _clamp(value, low, high):
    return max(low, min(value, high))


def normalize_chat_body(body: ChatRequestBody) -> ChatRequest:
    """Turn the raw body into a ChatRequest. Raises ChatRequestError (400 or 413)."""
    messages = []
    if body.message is not None:
        content = sanitize_text(body.message)
        if not content:
            raise ChatRequestError("Message cannot be empty")
        messages.append({'role': 'user', 'content': content})
    elif body.messages is not None:
        for m in body.messages:
            if m.role not in ALLOWED_ROLES:
                raise ChatRequestError(f"Invalid role: {m.role}")
            content = sanitize_text(m.content)
            if not content:
                raise ChatRequestError("Message content cannot be empty")
            messages.append({'role': m.role, 'content': content})
    else:
        raise ChatRequestError("Provide 'message' string or 'messages' array")

    if not messages:
        raise ChatRequestError("Provide 'message' string or 'messages' array")

    total_chars = 0
    for m in messages:
        if len(m['content']) > MAX_MESSAGE_CHARS:
            raise ChatRequestError(f"A message exceeds {MAX_MESSAGE_CHARS} characters", 413)
        total_chars += len(m['content'])
    if total_chars > MAX_TOTAL_CHARS:
        raise ChatRequestError(f"Total content exceeds {MAX_TOTAL_CHARS} characters", 413)

    model = body.model.strip() if body.model else None
    if model is not None and model not in ALLOWED_MODELS:
        raise ChatRequestError(f"Model not allowed. Use one of: {', '.join(sorted(ALLOWED_MODELS))}")

    temperature = _clamp(body.temperature, 0.0, 1.0) if body.temperature is not None else DEFAULT_TEMPERATURE
    max_tokens = _clamp(int(body.max_tokens), 1, MAX_TOKENS) if body.max_tokens is not None else DEFAULT_MAX_TOKENS

    user_context = None
    if body.user_context:
        user_context = sanitize_text(body.user_context)[:MAX_USER_CONTEXT_CHARS] or None

    return ChatRequest(
        messages=messages,
        user_context=user_context,
        include_context=body.include_context,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def client_key(request: Request) -> str:
    return (
        request.headers.get("x-forwarded-for")
        or request.headers.get("user-agent")
        or "unknown"
    )


_rate_limiter = RateLimiter(min_interval=Settings.MIN_REQUEST_INTERVAL_SECONDS)


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


def get_today() -> date:
    return date.today()


def get_llm_client() -> LLMClient:
    try:
        return create_llm_client(Settings)
    except ValueError:
        logging.error("Chat unavailable: missing LLM API key")
        raise HTTPException(status_code=500, detail="Server misconfigured: missing API key")


def get_activity_store(request: Request, db: Session = Depends(get_db)):
    """SportSee API store when DATA_SOURCE=api (token from the Authorization header), else the database."""
    if Settings.DATA_SOURCE == "api":
        auth = request.headers.get("authorization", "")
        token = auth[7:] if auth.lower().startswith("bearer ") else ""
        if not token:
            raise HTTPException(status_code=401, detail="Missing bearer token")
        return SportSeeApiStore(Settings.SPORTSEE_API_URL, token)
    return ActivityRepository(db)


# ==============================================================================
# Endpoints
# ==============================================================================

@router.post("/chat", response_model=ChatResponseBody)
def chat(
    body: ChatRequestBody,
    request: Request,
    llm_client: LLMClient = Depends(get_llm_client),
    store=Depends(get_activity_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
    today: date = Depends(get_today)
):
    """
    Chat with the AI coach.

    With a user_id the reply is grounded in (and checked against) that user's
    activity data; without one it is a plain coaching conversation.
    """
    try:
        chat_request = normalize_chat_body(body)
    except ChatRequestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    if not limiter.allow(client_key(request)):
        raise HTTPException(status_code=429, detail=RATE_LIMITED_MESSAGE)

    request_id = str(uuid.uuid4())
    logging.info(
        f"[api/chat] request id={request_id} model={chat_request.model or llm_client.model_name} "
        f"msgCount={len(chat_request.messages)} "
        f"totalChars={sum(len(m['content']) for m in chat_request.messages)} "
        f"hasUserContext={chat_request.user_context is not None} user={'yes' if body.user_id else 'no'}"
    )

    activities, profile, statistics = [], None, None
    if body.user_id is not None:
        try:
            activities = store.get_activities(body.user_id)
            profile = store.get_profile(body.user_id)
            statistics = store.get_statistics(body.user_id)
        except ActivityStoreError as e:
            logging.error(f"[api/chat] activity store error id={request_id}: {e}")
            raise HTTPException(status_code=502, detail=str(e))

    orchestrator = CoachOrchestrator(llm_client)
    response = orchestrator.handle_chat(chat_request, activities, today, profile=profile, statistics=statistics)

    logging.info(
        f"[api/chat] response id={request_id} validated={response.validated} "
        f"fallback={response.fallback_used} issues={len(response.issues)}"
    )
    return ChatResponseBody(
        id=request_id,
        model=response.model,
        reply=response.reply,
        validated=response.validated,
        fallback_used=response.fallback_used,
        issues=response.issues,
    )


@router.get("/coach/context/{user_id}", response_model=ContextResponseBody)
def get_context(
    user_id: int,
    store=Depends(get_activity_store),
    today: date = Depends(get_today)
):
    """The grounding context block the LLM would receive for this user."""
    if isinstance(store, ActivityRepository) and not store.user_exists(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    try:
        context = build_user_context(
            store.get_profile(user_id),
            store.get_statistics(user_id),
            store.get_activities(user_id),
            today
        )
    except ActivityStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ContextResponseBody(user_id=user_id, context=context)
