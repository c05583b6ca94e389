"""API routes."""
from typing import Dict, Optional
from fastapi import APIRouter, HTTPException, Header
from owlpost.core.config import settings
from owlpost.core.logging import logger
from owlpost.models.schemas import ChatRequest, ChatResponse, HealthResponse
from owlpost.services.chat import get_chat_orchestrator
from owlpost.services.llm import llm_service

router = APIRouter()


def verify_auth(x_api_key: Optional[str] = None):
    """Verify API key if configured."""
    if settings.api_key and x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return True


@router.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    orchestrator = get_chat_orchestrator()
    return HealthResponse(
        status="running",
        llm_status=llm_service.health_check(),
        session_backend=orchestrator.resolver.session_store.name,
        intents=len(orchestrator.dispatcher.registry.list_handlers()),
    )


@router.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest, x_api_key: Optional[str] = Header(None)):
    """Main chat endpoint."""
    verify_auth(x_api_key)

    try:
        reply = get_chat_orchestrator().handle_message(
            user_id=req.user_id,
            message=req.message,
            generate_natural_response=req.natural,
        )
    except Exception as e:
        logger.error(f"Chat endpoint error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return ChatResponse(
        user_id=reply.user_id,
        intent=reply.intent,
        params=reply.params,
        text=reply.text,
        reply_markup=reply.reply_markup,
        data=reply.data,
    )


@router.get("/intents", response_model=Dict[str, str])
def list_intents(x_api_key: Optional[str] = Header(None)):
    """Map each routable intent to the handler that serves it."""
    verify_auth(x_api_key)
    return get_chat_orchestrator().dispatcher.registry.list_handlers()
