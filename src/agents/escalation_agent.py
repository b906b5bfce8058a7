"""
Escalation agent: hands a session to a human.

Marks the session escalated (sticky), picks the customer-facing message
for the escalation reason and assembles the handoff summary the human
agent receives.
"""

from src.conversation.responses import ResponseGenerator
from src.conversation.session_store import SessionStore
from src.logging_context import get_session_logger
from src.schemas.conversation_schema import (
    ChatResponse,
    EscalationReason,
    HandoffSummary,
    ResponseSource,
)
from src.schemas.session_schema import SessionData

logger = get_session_logger(__name__)

ESCALATION_INTENT = "ESCALATION"

_PRIORITY = {
    EscalationReason.LLM_INSUFFICIENT: "high",
    EscalationReason.REPEATED_FAILURES: "high",
    EscalationReason.CUSTOMER_REQUEST: "normal",
}


class EscalationAgent:
    """Human handoff handler."""

    def __init__(self, sessions: SessionStore, responses: ResponseGenerator) -> None:
        self._sessions = sessions
        self._responses = responses

    def escalate(self, session: SessionData, reason: EscalationReason) -> ChatResponse:
        """Escalate ``session`` and build the reply for this turn."""
        if reason != EscalationReason.ALREADY_ESCALATED:
            self._sessions.mark_escalated(session.session_id, reason.value)
            logger.info("Handoff created (reason: %s)", reason.value)

        return ChatResponse(
            message=self._responses.escalation_message(reason),
            intent=ESCALATION_INTENT,
            success=False,
            escalate_to_human=True,
            source=ResponseSource.ESCALATION,
            session_id=session.session_id,
            state=session.state.value,
            handoff=self.build_handoff(session, reason),
        )

    def build_handoff(self, session: SessionData, reason: EscalationReason) -> HandoffSummary:
        """Summarise the conversation for the human taking over."""
        original = reason
        if reason == EscalationReason.ALREADY_ESCALATED and session.escalation_reason:
            original = EscalationReason(session.escalation_reason)
        return HandoffSummary(
            session_id=session.session_id,
            customer_id=session.customer_id,
            reason=reason,
            priority=_PRIORITY.get(original, "normal"),
            message_count=len(session.messages),
            failed_attempts=session.failed_attempts,
            intents_seen=[intent.value for intent in session.intents_seen],
            known_order_ids=list(session.known_order_ids),
            recent_messages=[
                f"{m.speaker.value}: {m.text}" for m in session.recent_messages(6)
            ],
        )
