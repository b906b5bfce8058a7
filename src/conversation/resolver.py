"""
Dialogue resolver: turns one analysed message into a Decision.

A pending intent (set when the previous reply asked a question) is always
consumed first and the message is read as an answer to it: a yes/no, an
order or product mention, a change of topic, or a request for the list of
options. Otherwise the freshly classified intent is resolved against the
customer's orders:

    explicit order id  -> act on it (or explain why not)
    one product match  -> act on it, confirming first for cancel/return
                          unless confidence clears the clarification bar
    one eligible order -> confirm cancel/return, track straight away
    several eligible   -> ask which one
    none eligible      -> explain, suggest an alternative

Financial actions on inferred orders always go through a yes/no.
"""

import logging
from typing import Optional, Sequence

from src.config import ThresholdConfig, settings
from src.conversation.decisions import (
    Decision,
    Declined,
    Escalated,
    Informational,
    NeedsConfirmation,
    NeedsSelection,
    Rejected,
    RejectionReason,
    Resolved,
    SelectionReason,
)
from src.conversation.session_store import SessionStore
from src.nlp.intent_classifier import INTENT_RULES
from src.schemas.analysis_schema import (
    FINANCIAL_INTENTS,
    ExtractedEntities,
    Intent,
    IntentAnalysis,
)
from src.schemas.conversation_schema import EscalationReason
from src.schemas.order_schema import Order
from src.schemas.session_schema import PendingIntent, PendingKind, SessionData
from src.tools.orders import (
    alternative_intent,
    can_cancel,
    can_return,
    eligible_orders,
    find_order,
    is_eligible,
)
from src.utils import contains_term, tokenize

logger = logging.getLogger(__name__)

AFFIRMATIVE_TERMS = (
    "yes", "yeah", "yep", "yup", "sure", "ok", "okay", "confirm", "confirmed",
    "proceed", "go ahead", "do it", "please do", "absolutely", "correct",
)
NEGATIVE_TERMS = (
    "no", "nope", "nah", "don't", "do not", "never mind", "nevermind",
    "abort", "stop", "not now", "keep it",
)
HELP_TERMS = ("help", "what", "which", "options", "list", "show me")
OFF_TOPIC_TERMS = (
    "weather", "news", "joke", "sports", "football", "movie", "music",
    "recipe", "politics", "stock market", "game", "poem", "song", "horoscope",
)
_SHARED_DOMAIN_TERMS = ("order", "package", "item", "purchase")

DOMAIN_TERMS: dict[Intent, tuple[str, ...]] = {
    rule.intent: rule.keywords + _SHARED_DOMAIN_TERMS for rule in INTENT_RULES
}


def confirmation_reply(message: str) -> Optional[bool]:
    """True for a clear yes, False for a clear no, None when unclear or mixed."""
    lower = message.lower()
    positive = any(contains_term(lower, term) for term in AFFIRMATIVE_TERMS)
    negative = any(contains_term(lower, term) for term in NEGATIVE_TERMS)
    if positive == negative:
        return None
    return positive


def is_help_request(message: str) -> bool:
    lower = message.lower()
    return any(contains_term(lower, term) for term in HELP_TERMS)


def is_topic_change(message: str, intent: Intent) -> bool:
    """An unrelated new topic: multi-word, off-topic vocabulary, no domain keywords."""
    lower = message.lower()
    if len(tokenize(lower)) <= 1:
        return False
    if any(term in lower for term in DOMAIN_TERMS.get(intent, _SHARED_DOMAIN_TERMS)):
        return False
    return any(contains_term(lower, term) for term in OFF_TOPIC_TERMS)


class DialogueResolver:
    """Per-session state machine over pending intents and order disambiguation."""

    def __init__(
        self,
        sessions: SessionStore,
        thresholds: Optional[ThresholdConfig] = None,
    ) -> None:
        self._sessions = sessions
        self._thresholds = thresholds or settings.thresholds

    def resolve(
        self,
        session_id: str,
        message: str,
        analysis: IntentAnalysis,
        orders: Sequence[Order],
    ) -> Decision:
        """
        Decide what to do with one customer message.

        Args:
            session_id: Session key; its pending intent is consumed here.
            message: Raw customer text.
            analysis: Classification and entities for ``message``.
            orders: The customer's order snapshot.

        Returns:
            One Decision variant. Pending state for the next turn is
            already recorded in the session store.
        """
        session = self._sessions.get(session_id)
        if session.escalated:
            return Escalated(EscalationReason.ALREADY_ESCALATED)
        if session.failed_attempts > self._thresholds.max_failed_attempts:
            return Escalated(EscalationReason.REPEATED_FAILURES)

        pending = self._sessions.consume_pending(session_id)
        if pending is not None:
            decision = self._resolve_reply(session_id, pending, message, analysis, orders)
            if decision is not None:
                return decision

        return self._resolve_request(session, analysis, orders)

    # ------------------------------------------------------------------ #
    # Replies to a pending question
    # ------------------------------------------------------------------ #

    def _resolve_reply(
        self,
        session_id: str,
        pending: PendingIntent,
        message: str,
        analysis: IntentAnalysis,
        orders: Sequence[Order],
    ) -> Optional[Decision]:
        """Read the message as an answer to ``pending``; None means treat it as new."""
        reply = confirmation_reply(message)

        if pending.kind == PendingKind.CONFIRMATION and reply is not None:
            order = find_order(orders, pending.order_id or "")
            if order is None:
                return Rejected(
                    pending.intent, RejectionReason.ORDER_NOT_FOUND,
                    requested_id=pending.order_id,
                    candidates=tuple(eligible_orders(orders, pending.intent)),
                    is_follow_up=True,
                )
            if not reply:
                logger.debug("Customer declined %s on %s", pending.intent.value, order.id)
                return Declined(pending.intent, order)
            return self._act_on(
                session_id, pending.intent, order,
                self._thresholds.explicit_order_confidence, is_follow_up=True,
            )

        if pending.kind == PendingKind.SELECTION and reply is False:
            return Declined(pending.intent, None)

        if (
            analysis.primary_intent != pending.intent
            and analysis.primary_intent != Intent.GENERAL_INQUIRY
        ):
            logger.debug(
                "New %s request replaces pending %s",
                analysis.primary_intent.value, pending.intent.value,
            )
            return None

        if analysis.entities.references_order:
            return self._resolve_order_intent(
                session_id, pending.intent, analysis.entities, orders,
                self._thresholds.follow_up_confidence, is_follow_up=True,
            )

        if is_topic_change(message, pending.intent):
            logger.debug("Topic change dropped pending %s", pending.intent.value)
            return None

        candidates = self._pending_candidates(pending, orders)
        if is_help_request(message):
            return self._ask_again(session_id, pending, candidates, help_requested=True)
        return self._ask_again(session_id, pending, candidates, help_requested=False)

    def _pending_candidates(
        self, pending: PendingIntent, orders: Sequence[Order]
    ) -> list[Order]:
        """Orders still actionable for the pending intent, preferring those offered."""
        offered = [find_order(orders, oid) for oid in pending.candidate_ids]
        still_open = [o for o in offered if o is not None and is_eligible(o, pending.intent)]
        return still_open or eligible_orders(orders, pending.intent)

    def _ask_again(
        self,
        session_id: str,
        pending: PendingIntent,
        candidates: list[Order],
        help_requested: bool,
    ) -> Decision:
        if pending.kind == PendingKind.CONFIRMATION:
            order = find_order(candidates, pending.order_id or "")
            if order is not None:
                self._sessions.set_pending(
                    session_id, pending.intent, PendingKind.CONFIRMATION, order_id=order.id,
                )
                return NeedsConfirmation(
                    pending.intent, order, reprompt=not help_requested, is_follow_up=True,
                )

        if not candidates:
            return Rejected(
                pending.intent, RejectionReason.NO_ELIGIBLE_ORDERS, is_follow_up=True,
            )

        self._sessions.set_pending(
            session_id, pending.intent, PendingKind.SELECTION,
            candidate_ids=[o.id for o in candidates],
        )
        reason = (
            SelectionReason.HELP_REQUESTED if help_requested
            else SelectionReason.UNMATCHED_REPLY
        )
        return NeedsSelection(pending.intent, tuple(candidates), reason, is_follow_up=True)

    # ------------------------------------------------------------------ #
    # Fresh requests
    # ------------------------------------------------------------------ #

    def _resolve_request(
        self, session: SessionData, analysis: IntentAnalysis, orders: Sequence[Order]
    ) -> Decision:
        intent = analysis.primary_intent

        if intent == Intent.UNDO_ACTION:
            return self._resolve_undo(session, analysis, orders)

        if not analysis.is_order_intent:
            mentioned = [find_order(orders, oid) for oid in analysis.entities.order_ids]
            mentioned += [find_order(orders, m.order_id) for m in analysis.entities.matched_orders]
            unique: list[Order] = []
            for order in mentioned:
                if order is not None and order not in unique:
                    unique.append(order)
            return Informational(intent, analysis.confidence, tuple(unique))

        return self._resolve_order_intent(
            session.session_id, intent, analysis.entities, orders, analysis.confidence,
        )

    def _resolve_order_intent(
        self,
        session_id: str,
        intent: Intent,
        entities: ExtractedEntities,
        orders: Sequence[Order],
        confidence: float,
        is_follow_up: bool = False,
    ) -> Decision:
        if entities.order_ids:
            for order_id in entities.order_ids:
                order = find_order(orders, order_id)
                if order is not None:
                    explicit = max(confidence, self._thresholds.explicit_order_confidence)
                    return self._act_on(session_id, intent, order, explicit, is_follow_up)
            logger.info("Order %s not found for customer", entities.order_ids[0])
            return Rejected(
                intent, RejectionReason.ORDER_NOT_FOUND,
                requested_id=entities.order_ids[0],
                candidates=tuple(eligible_orders(orders, intent)),
                confidence=confidence, is_follow_up=is_follow_up,
            )

        matched = [find_order(orders, m.order_id) for m in entities.matched_orders]
        matched = [o for o in matched if o is not None]
        if len(matched) == 1:
            return self._act_on(session_id, intent, matched[0], confidence, is_follow_up)

        if len(matched) > 1:
            eligible_matches = [o for o in matched if is_eligible(o, intent)]
            if len(eligible_matches) == 1:
                return self._act_on(
                    session_id, intent, eligible_matches[0], confidence, is_follow_up,
                )
            if eligible_matches:
                return self._ask_selection(
                    session_id, intent, eligible_matches,
                    SelectionReason.MULTIPLE_MATCHES, confidence, is_follow_up,
                )

        eligible = eligible_orders(orders, intent)
        if not eligible:
            return Rejected(
                intent, RejectionReason.NO_ELIGIBLE_ORDERS,
                suggested_intent=self._suggest_for_none(intent, orders),
                confidence=confidence, is_follow_up=is_follow_up,
            )

        if len(eligible) == 1:
            order = eligible[0]
            if intent in FINANCIAL_INTENTS:
                return self._ask_confirmation(
                    session_id, intent, order, confidence, is_follow_up,
                )
            return Resolved(intent, order, confidence, is_follow_up)

        return self._ask_selection(
            session_id, intent, eligible,
            SelectionReason.MULTIPLE_ELIGIBLE, confidence, is_follow_up,
        )

    def _act_on(
        self,
        session_id: str,
        intent: Intent,
        order: Order,
        confidence: float,
        is_follow_up: bool = False,
    ) -> Decision:
        """Permission check, then execute or (for low-confidence money moves) confirm."""
        if not is_eligible(order, intent):
            return Rejected(
                intent, RejectionReason.NOT_PERMITTED, order=order,
                suggested_intent=alternative_intent(order, intent),
                confidence=confidence, is_follow_up=is_follow_up,
            )
        if intent in FINANCIAL_INTENTS and confidence < self._thresholds.clarification_confidence:
            return self._ask_confirmation(session_id, intent, order, confidence, is_follow_up)
        return Resolved(intent, order, confidence, is_follow_up)

    def _ask_confirmation(
        self,
        session_id: str,
        intent: Intent,
        order: Order,
        confidence: float,
        is_follow_up: bool,
    ) -> NeedsConfirmation:
        self._sessions.set_pending(
            session_id, intent, PendingKind.CONFIRMATION, order_id=order.id,
        )
        return NeedsConfirmation(intent, order, confidence, is_follow_up=is_follow_up)

    def _ask_selection(
        self,
        session_id: str,
        intent: Intent,
        candidates: list[Order],
        reason: SelectionReason,
        confidence: float,
        is_follow_up: bool,
    ) -> NeedsSelection:
        self._sessions.set_pending(
            session_id, intent, PendingKind.SELECTION,
            candidate_ids=[o.id for o in candidates],
        )
        return NeedsSelection(intent, tuple(candidates), reason, confidence, is_follow_up)

    @staticmethod
    def _suggest_for_none(intent: Intent, orders: Sequence[Order]) -> Optional[Intent]:
        if intent == Intent.CANCEL_ORDER and any(can_return(o) for o in orders):
            return Intent.RETURN_ORDER
        if intent == Intent.RETURN_ORDER and any(can_cancel(o) for o in orders):
            return Intent.CANCEL_ORDER
        return None

    # ------------------------------------------------------------------ #
    # Undo
    # ------------------------------------------------------------------ #

    def _resolve_undo(
        self, session: SessionData, analysis: IntentAnalysis, orders: Sequence[Order]
    ) -> Decision:
        last = session.last_action
        if last is None:
            return Rejected(
                Intent.UNDO_ACTION, RejectionReason.NOTHING_TO_UNDO,
                confidence=analysis.confidence,
            )

        requested = analysis.entities.order_ids
        if requested and last.order_id not in requested:
            return Rejected(
                Intent.UNDO_ACTION, RejectionReason.NOTHING_TO_UNDO,
                requested_id=requested[0], confidence=analysis.confidence,
            )

        order = find_order(orders, last.order_id)
        if order is None or order.status != last.resulting_status:
            return Rejected(
                Intent.UNDO_ACTION, RejectionReason.NOTHING_TO_UNDO,
                order=order, confidence=analysis.confidence,
            )
        return Resolved(Intent.UNDO_ACTION, order, analysis.confidence, reverts=last)
