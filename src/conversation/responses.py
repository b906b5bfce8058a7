"""
Response and action generation.

Turns a Decision into the customer-facing message, the list of actions
the caller must apply to its order store, and a success flag. Executing
a Resolved decision also flips ``status`` / ``can_cancel`` /
``can_return`` on the snapshot order it carries so the rest of the
conversation sees the change.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence

from src.config import StoreConfig, settings
from src.conversation.decisions import (
    Decision,
    Declined,
    Escalated,
    Failed,
    Informational,
    NeedsConfirmation,
    NeedsSelection,
    Rejected,
    RejectionReason,
    Resolved,
    SelectionReason,
)
from src.schemas.analysis_schema import Intent
from src.schemas.conversation_schema import EscalationReason
from src.schemas.order_schema import Action, ActionType, Order, OrderStatus
from src.schemas.session_schema import LastAction

logger = logging.getLogger(__name__)

VERBS = {
    Intent.CANCEL_ORDER: ("cancel", "cancelled"),
    Intent.RETURN_ORDER: ("return", "returned"),
    Intent.TRACK_ORDER: ("track", "tracked"),
    Intent.UNDO_ACTION: ("restore", "restored"),
}

STATUS_MESSAGES = {
    OrderStatus.CONFIRMED: "is confirmed and being prepared for shipment",
    OrderStatus.PROCESSING: "is being processed at our warehouse",
    OrderStatus.SHIPPED: "has shipped and is on its way",
    OrderStatus.DELIVERED: "has been delivered",
    OrderStatus.CANCELLED: "was cancelled",
    OrderStatus.RETURN_REQUESTED: "has a return in progress",
    OrderStatus.RETURNED: "was returned and refunded",
}

EMPATHY_OPENERS = (
    "I'm really sorry for the trouble.",
    "I understand how frustrating this is, and I'm sorry.",
    "I hear you, and I want to get this sorted for you.",
    "Sorry this has been such a hassle.",
)

ESCALATION_MESSAGES = {
    EscalationReason.LLM_INSUFFICIENT: (
        "I can tell I haven't been able to fix this for you, and I'm sorry. "
        "I'm passing your conversation to a member of our support team now."
    ),
    EscalationReason.REPEATED_FAILURES: (
        "I'm having trouble resolving this one. "
        "Let me connect you with a member of our support team who can help directly."
    ),
    EscalationReason.CUSTOMER_REQUEST: (
        "Of course. I'm connecting you with a member of our support team now."
    ),
    EscalationReason.ALREADY_ESCALATED: (
        "A member of our support team already has your conversation "
        "and will be with you shortly."
    ),
}


@dataclass
class Reply:
    """Rendered outcome of one decision."""
    message: str
    success: bool
    actions: list[Action] = field(default_factory=list)
    executed: Optional[LastAction] = None


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


def _order_line(order: Order) -> str:
    return f"- {order.describe()}: {order.status.value.replace('_', ' ')}"


def _order_list(orders: Sequence[Order]) -> str:
    return "\n".join(_order_line(o) for o in orders)


class ResponseGenerator:
    """Renders decisions and applies resolved actions to the snapshot."""

    def __init__(
        self, store: Optional[StoreConfig] = None, rng: Optional[random.Random] = None
    ) -> None:
        self._store = store or settings.store
        self._rng = rng or random.Random()

    def render(self, decision: Decision) -> Reply:
        if isinstance(decision, Resolved):
            return self._execute(decision)
        if isinstance(decision, NeedsSelection):
            return Reply(self._selection_message(decision), success=False)
        if isinstance(decision, NeedsConfirmation):
            return Reply(self._confirmation_message(decision), success=False)
        if isinstance(decision, Declined):
            return Reply(self._declined_message(decision), success=True)
        if isinstance(decision, Rejected):
            return Reply(self._rejection_message(decision), success=False)
        if isinstance(decision, Informational):
            return Reply(self._general_message(decision), success=True)
        if isinstance(decision, Escalated):
            return Reply(self.escalation_message(decision.reason), success=False)
        if isinstance(decision, Failed):
            return Reply(
                "I'm sorry, something went wrong on my side. "
                "Please try again in a moment.",
                success=False,
            )
        raise TypeError(f"Unknown decision type: {type(decision).__name__}")

    def with_empathy(self, message: str) -> str:
        """Prefix a local reply with an empathetic opener."""
        return f"{self._rng.choice(EMPATHY_OPENERS)} {message}"

    def escalation_message(self, reason: EscalationReason) -> str:
        message = ESCALATION_MESSAGES[reason]
        if reason == EscalationReason.ALREADY_ESCALATED:
            return message
        return (
            f"{message} Someone will reply within {self._store.handoff_sla_minutes} "
            f"minutes, or you can email {self._store.support_email}."
        )

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def _execute(self, decision: Resolved) -> Reply:
        order = decision.order
        if decision.intent == Intent.TRACK_ORDER:
            return Reply(
                self._tracking_message(order), success=True,
                actions=[Action(type=ActionType.TRACK_ORDER, order_id=order.id)],
            )
        if decision.intent == Intent.CANCEL_ORDER:
            return self._cancel(order)
        if decision.intent == Intent.RETURN_ORDER:
            return self._return(order)
        if decision.intent == Intent.UNDO_ACTION and decision.reverts is not None:
            return self._undo(order, decision.reverts)
        raise ValueError(f"Cannot execute intent {decision.intent.value}")

    def _cancel(self, order: Order) -> Reply:
        executed = LastAction(
            order_id=order.id,
            action_type=ActionType.CANCEL_ORDER,
            previous_status=order.status,
            previous_can_cancel=order.can_cancel,
            previous_can_return=order.can_return,
            resulting_status=OrderStatus.CANCELLED,
        )
        order.status = OrderStatus.CANCELLED
        order.can_cancel = False
        order.can_return = False
        logger.info("Cancelled order %s", order.id)
        return Reply(
            f"Done. Order {order.describe()} has been cancelled. "
            f"Your refund of {_money(order.total)} will go back to your original "
            "payment method within 5-7 business days. "
            "If you change your mind, just say 'undo'.",
            success=True,
            actions=[Action(type=ActionType.CANCEL_ORDER, order_id=order.id)],
            executed=executed,
        )

    def _return(self, order: Order) -> Reply:
        executed = LastAction(
            order_id=order.id,
            action_type=ActionType.RETURN_ORDER,
            previous_status=order.status,
            previous_can_cancel=order.can_cancel,
            previous_can_return=order.can_return,
            resulting_status=OrderStatus.RETURN_REQUESTED,
        )
        order.status = OrderStatus.RETURN_REQUESTED
        order.can_return = False
        order.can_cancel = False
        logger.info("Return requested for order %s", order.id)
        return Reply(
            f"I've started a return for order {order.describe()}. "
            "A prepaid shipping label is on its way to your email, and your refund "
            f"of {_money(order.total)} is issued once the item reaches us.",
            success=True,
            actions=[Action(type=ActionType.RETURN_ORDER, order_id=order.id)],
            executed=executed,
        )

    def _undo(self, order: Order, last: LastAction) -> Reply:
        order.status = last.previous_status
        order.can_cancel = last.previous_can_cancel
        order.can_return = last.previous_can_return
        if last.action_type == ActionType.CANCEL_ORDER:
            action_type, what = ActionType.UNDO_CANCEL, "cancellation"
        else:
            action_type, what = ActionType.UNDO_RETURN, "return request"
        logger.info("Reverted %s on order %s", what, order.id)
        return Reply(
            f"I've reversed the {what}. Order {order.describe()} "
            f"{STATUS_MESSAGES[order.status]} again.",
            success=True,
            actions=[Action(type=action_type, order_id=order.id)],
        )

    def _tracking_message(self, order: Order) -> str:
        parts = [f"Order {order.describe()} {STATUS_MESSAGES[order.status]}."]
        if order.tracking_number:
            parts.append(f"Tracking number: {order.tracking_number}.")
        if order.estimated_delivery and order.status != OrderStatus.DELIVERED:
            parts.append(f"Estimated delivery: {order.estimated_delivery}.")
        return " ".join(parts)

    # ------------------------------------------------------------------ #
    # Questions and explanations
    # ------------------------------------------------------------------ #

    def _selection_message(self, decision: NeedsSelection) -> str:
        verb = VERBS[decision.intent][0]
        listing = _order_list(decision.candidates)
        closing = "Which one? You can reply with the order number or the product name."
        if decision.reason == SelectionReason.HELP_REQUESTED:
            return f"Here are the orders I can {verb} for you right now:\n{listing}\n{closing}"
        if decision.reason == SelectionReason.UNMATCHED_REPLY:
            return (
                "Sorry, I couldn't match that to one of your orders. "
                f"These are the ones I can {verb}:\n{listing}\n{closing}"
            )
        if decision.reason == SelectionReason.MULTIPLE_MATCHES:
            return f"A few of your orders match that. Which one should I {verb}?\n{listing}"
        return f"You have several orders I can {verb}:\n{listing}\n{closing}"

    def _confirmation_message(self, decision: NeedsConfirmation) -> str:
        verb = VERBS[decision.intent][0]
        order = decision.order
        question = (
            f"Just to confirm, do you want to {verb} order {order.describe()} "
            f"for {_money(order.total)}? Please reply yes or no."
        )
        if decision.reprompt:
            return f"Sorry, I need a yes or no to continue. {question}"
        return question

    def _declined_message(self, decision: Declined) -> str:
        if decision.order is None:
            return "No problem. Is there anything else I can help you with?"
        return (
            f"No problem, I've left order {decision.order.describe()} as it is. "
            "Anything else I can help with?"
        )

    def _rejection_message(self, decision: Rejected) -> str:
        reason = decision.reason
        verb, past = VERBS[decision.intent]

        if reason == RejectionReason.ORDER_NOT_FOUND:
            message = f"I couldn't find order {decision.requested_id} on your account."
            if decision.candidates:
                message += (
                    f" These are the orders I can {verb}:\n{_order_list(decision.candidates)}"
                )
            return message

        if reason == RejectionReason.NOT_PERMITTED and decision.order is not None:
            return self._not_permitted_message(decision, decision.order)

        if reason == RejectionReason.NOTHING_TO_UNDO:
            if decision.requested_id:
                return (
                    f"I can only undo the last change I made in this chat, "
                    f"and that wasn't for {decision.requested_id}."
                )
            if decision.order is not None:
                return (
                    f"Order {decision.order.describe()} has changed since then, "
                    "so I can't undo that any more."
                )
            return "There's nothing for me to undo in this conversation yet."

        message = f"I'm sorry, none of your orders can be {past} right now."
        if decision.suggested_intent is not None:
            alt_verb = VERBS[decision.suggested_intent][0]
            message += f" I can help you {alt_verb} an order instead if you'd like."
        return message

    def _not_permitted_message(self, decision: Rejected, order: Order) -> str:
        status = order.status
        label = order.describe()

        if decision.intent == Intent.CANCEL_ORDER:
            if status == OrderStatus.CANCELLED:
                message = f"Order {label} was already cancelled, so there's nothing more to do."
            elif status == OrderStatus.DELIVERED:
                message = f"Order {label} has already been delivered, so it can't be cancelled."
            elif status in (OrderStatus.RETURN_REQUESTED, OrderStatus.RETURNED):
                message = f"Order {label} already has a return in progress."
            else:
                message = (
                    f"Order {label} {STATUS_MESSAGES[status]}, "
                    "so it's too late to cancel it."
                )
        elif decision.intent == Intent.RETURN_ORDER:
            if status == OrderStatus.RETURN_REQUESTED:
                message = f"A return for order {label} is already in progress."
            elif status == OrderStatus.RETURNED:
                message = f"Order {label} has already been returned."
            elif status == OrderStatus.CANCELLED:
                message = f"Order {label} was cancelled, so there's nothing to return."
            elif status == OrderStatus.DELIVERED:
                message = f"Order {label} is outside its return window."
            else:
                message = (
                    f"Order {label} hasn't been delivered yet, "
                    "so it can't be returned."
                )
        else:
            message = f"Order {label} {STATUS_MESSAGES[status]}, so there's nothing to track."

        suggestion = {
            Intent.RETURN_ORDER: " You can request a return instead.",
            Intent.CANCEL_ORDER: " You can cancel it instead while it hasn't shipped.",
            Intent.TRACK_ORDER: " I can track it for you instead.",
        }
        if decision.suggested_intent in suggestion:
            message += suggestion[decision.suggested_intent]
        return message

    def _general_message(self, decision: Informational) -> str:
        if decision.mentioned_orders:
            order = decision.mentioned_orders[0]
            return (
                f"I found order {order.describe()}, which {STATUS_MESSAGES[order.status]}. "
                "Would you like me to track, cancel or return it?"
            )
        return (
            f"I'm {self._store.assistant_name} from {self._store.name} support. "
            "I can track your orders, cancel orders that haven't shipped, start returns "
            "for delivered items, and undo a change I just made. What can I do for you?"
        )
