"""Per-session conversation state held by the session store."""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.conversation.state_machine import DialogueState, DialogueStateMachine
from src.schemas.analysis_schema import Intent
from src.schemas.conversation_schema import Speaker
from src.schemas.order_schema import ActionType, OrderStatus


class PendingKind(str, Enum):
    SELECTION = "selection"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class PendingIntent:
    """The one question the session is waiting on."""
    intent: Intent
    kind: PendingKind
    order_id: Optional[str] = None
    candidate_ids: tuple[str, ...] = ()
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SessionMessage:
    text: str
    speaker: Speaker
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class LastAction:
    """Enough of an executed cancel/return to revert it."""
    order_id: str
    action_type: ActionType
    previous_status: OrderStatus
    previous_can_cancel: bool
    previous_can_return: bool
    resulting_status: OrderStatus


@dataclass
class SessionData:
    """
    Mutable record for one chat session.

    Created lazily on the first message for a session key and evicted by
    the store after the inactivity TTL.
    """
    session_id: str
    max_history: int = 20
    messages: deque = field(init=False)
    pending_intent: Optional[PendingIntent] = None
    failed_attempts: int = 0
    escalated: bool = False
    escalation_reason: Optional[str] = None
    fallback_attempted: bool = False
    last_intent: Optional[Intent] = None
    intents_seen: list[Intent] = field(default_factory=list)
    known_order_ids: list[str] = field(default_factory=list)
    last_action: Optional[LastAction] = None
    customer_id: Optional[str] = None
    dialogue: DialogueStateMachine = field(default_factory=DialogueStateMachine)
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        self.messages = deque(maxlen=self.max_history)

    @property
    def state(self) -> DialogueState:
        return self.dialogue.current_state

    def touch(self) -> None:
        self.last_activity = time.time()

    def remember_orders(self, order_ids: list[str]) -> None:
        for order_id in order_ids:
            if order_id not in self.known_order_ids:
                self.known_order_ids.append(order_id)

    def recent_messages(self, limit: int = 3) -> list[SessionMessage]:
        return list(self.messages)[-limit:]
