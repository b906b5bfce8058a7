"""
Mock append-only chat transcript store.

In production this would write to the chat history collection of the
order platform. The agent itself never calls it; the transport layer
logs once per customer message and once per reply.
"""

import logging
import time
from typing import Optional

from src.schemas.conversation_schema import ChatResponse, Speaker, TranscriptTurn

logger = logging.getLogger(__name__)


class InMemoryMessageLog:
    """Transcript turns grouped by session, in arrival order."""

    def __init__(self) -> None:
        self._turns: dict[str, list[TranscriptTurn]] = {}

    def log_customer_message(self, session_id: str, customer_id: str, text: str) -> TranscriptTurn:
        return self._append(TranscriptTurn(
            session_id=session_id,
            customer_id=customer_id,
            speaker=Speaker.USER,
            text=text,
            timestamp=time.time(),
        ))

    def log_response(
        self, session_id: str, customer_id: str, response: ChatResponse
    ) -> TranscriptTurn:
        return self._append(TranscriptTurn(
            session_id=session_id,
            customer_id=customer_id,
            speaker=Speaker.AGENT,
            text=response.message,
            timestamp=time.time(),
            intent=response.intent,
            source=response.source,
        ))

    def get_transcript(self, session_id: str, limit: Optional[int] = None) -> list[TranscriptTurn]:
        turns = self._turns.get(session_id, [])
        return list(turns[-limit:] if limit else turns)

    def clear(self) -> None:
        self._turns.clear()

    def _append(self, turn: TranscriptTurn) -> TranscriptTurn:
        self._turns.setdefault(turn.session_id, []).append(turn)
        logger.debug("Logged %s turn for %s", turn.speaker.value, turn.session_id)
        return turn
