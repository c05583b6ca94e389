"""Pydantic schemas."""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Chat request schema."""
    user_id: str = Field(..., min_length=1)
    message: str
    natural: bool = True


class ChatResponse(BaseModel):
    """Chat response schema."""
    user_id: str
    intent: str
    params: Dict[str, Any] = Field(default_factory=dict)
    text: str
    reply_markup: Optional[Any] = None
    data: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check schema."""
    status: str
    llm_status: str
    session_backend: str
    intents: int
