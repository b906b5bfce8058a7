"""
Tagged result type produced by the dialogue resolver.

Each variant carries only what the response generator needs for it.
Outcome bookkeeping (failure counter) is attached to the variant via
``counts_as`` so the agent never has to re-derive it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from src.schemas.analysis_schema import Intent
from src.schemas.conversation_schema import EscalationReason
from src.schemas.order_schema import Order
from src.schemas.session_schema import LastAction


class Outcome(str, Enum):
    """How a decision affects the session failure counter."""
    SUCCESS = "success"    # resets the counter
    FAILURE = "failure"    # increments the counter
    NEUTRAL = "neutral"    # leaves it alone


class SelectionReason(str, Enum):
    MULTIPLE_ELIGIBLE = "multiple_eligible"
    MULTIPLE_MATCHES = "multiple_matches"
    UNMATCHED_REPLY = "unmatched_reply"
    HELP_REQUESTED = "help_requested"


class RejectionReason(str, Enum):
    ORDER_NOT_FOUND = "order_not_found"
    NOT_PERMITTED = "not_permitted"
    NO_ELIGIBLE_ORDERS = "no_eligible_orders"
    NOTHING_TO_UNDO = "nothing_to_undo"


@dataclass(frozen=True)
class Resolved:
    """Execute ``intent`` on ``order``."""
    intent: Intent
    order: Order
    confidence: float
    is_follow_up: bool = False
    reverts: Optional[LastAction] = None

    @property
    def counts_as(self) -> Outcome:
        return Outcome.SUCCESS


@dataclass(frozen=True)
class NeedsSelection:
    """Ask the customer which of ``candidates`` they mean."""
    intent: Intent
    candidates: tuple[Order, ...]
    reason: SelectionReason
    confidence: float = 0.0
    is_follow_up: bool = False

    @property
    def counts_as(self) -> Outcome:
        if self.reason == SelectionReason.HELP_REQUESTED:
            return Outcome.NEUTRAL
        return Outcome.FAILURE


@dataclass(frozen=True)
class NeedsConfirmation:
    """Ask a yes/no before executing ``intent`` on ``order``."""
    intent: Intent
    order: Order
    confidence: float = 0.0
    reprompt: bool = False
    is_follow_up: bool = False

    @property
    def counts_as(self) -> Outcome:
        return Outcome.FAILURE if self.reprompt else Outcome.NEUTRAL


@dataclass(frozen=True)
class Declined:
    """The customer said no to a confirmation or a selection."""
    intent: Intent
    order: Optional[Order] = None
    is_follow_up: bool = True

    @property
    def counts_as(self) -> Outcome:
        return Outcome.NEUTRAL


@dataclass(frozen=True)
class Rejected:
    """The request cannot be carried out; explain and suggest a next step."""
    intent: Intent
    reason: RejectionReason
    order: Optional[Order] = None
    requested_id: Optional[str] = None
    candidates: tuple[Order, ...] = ()
    suggested_intent: Optional[Intent] = None
    confidence: float = 0.0
    is_follow_up: bool = False

    @property
    def counts_as(self) -> Outcome:
        if self.reason == RejectionReason.ORDER_NOT_FOUND:
            return Outcome.FAILURE
        return Outcome.NEUTRAL


@dataclass(frozen=True)
class Informational:
    """General inquiry; nothing to act on."""
    intent: Intent
    confidence: float = 0.0
    mentioned_orders: tuple[Order, ...] = ()

    @property
    def counts_as(self) -> Outcome:
        return Outcome.NEUTRAL


@dataclass(frozen=True)
class Escalated:
    """Hand the conversation to a human."""
    reason: EscalationReason

    @property
    def counts_as(self) -> Outcome:
        return Outcome.NEUTRAL


@dataclass(frozen=True)
class Failed:
    """Unexpected internal error while handling the message."""
    intent: Optional[Intent] = None
    detail: str = field(default="", repr=False)

    @property
    def counts_as(self) -> Outcome:
        return Outcome.FAILURE


Decision = Union[
    Resolved, NeedsSelection, NeedsConfirmation, Declined,
    Rejected, Informational, Escalated, Failed,
]
