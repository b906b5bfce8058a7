"""Chat transcript and agent response schemas."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from src.schemas.order_schema import Action


class Speaker(str, Enum):
    AGENT = "agent"
    USER = "user"
    SYSTEM = "system"


class ResponseSource(str, Enum):
    LOCAL = "local"
    LLM_CACHED = "llm_cached"
    LLM_FRESH = "llm_fresh"
    LOCAL_EMPATHETIC = "local_empathetic"
    ESCALATION = "escalation"


class EscalationReason(str, Enum):
    LLM_INSUFFICIENT = "llm_insufficient"
    REPEATED_FAILURES = "repeated_failures"
    CUSTOMER_REQUEST = "customer_request"
    ALREADY_ESCALATED = "already_escalated"


class TranscriptTurn(BaseModel):
    """A single entry in the durable chat transcript."""

    session_id: str
    customer_id: str
    speaker: Speaker
    text: str
    timestamp: float
    intent: Optional[str] = None
    source: Optional[ResponseSource] = None


class HandoffSummary(BaseModel):
    """Context handed to the human agent on escalation."""

    session_id: str
    customer_id: Optional[str] = None
    reason: EscalationReason
    priority: str = "normal"
    message_count: int = 0
    failed_attempts: int = 0
    intents_seen: list[str] = Field(default_factory=list)
    known_order_ids: list[str] = Field(default_factory=list)
    recent_messages: list[str] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Everything the transport layer needs to answer one customer message."""

    message: str
    intent: str
    success: bool
    actions: list[Action] = Field(default_factory=list)
    escalate_to_human: bool = False
    confidence: Optional[float] = None
    source: ResponseSource = ResponseSource.LOCAL
    is_follow_up: bool = False
    session_id: Optional[str] = None
    state: Optional[str] = None
    handoff: Optional[HandoffSummary] = None
