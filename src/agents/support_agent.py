"""
Support agent: the single entry point for customer chat messages.

One call to ``handle_message`` runs a full turn under the session lock:

    guardrails -> analysis -> fallback policy -> (LLM | resolver) -> reply

Ambiguity, invalid references and business-rule refusals come back as
normal replies. Only unexpected errors reach the catch-all, which
apologises, counts a failure and escalates once failures pile up.
"""

import random
from typing import Optional, Sequence

from src.agents.escalation_agent import EscalationAgent
from src.config import AppConfig, settings
from src.conversation.decisions import Decision, Escalated, Failed, Outcome, Resolved
from src.conversation.guardrails import GuardrailPipeline
from src.conversation.resolver import DialogueResolver
from src.conversation.responses import Reply, ResponseGenerator
from src.conversation.session_store import SessionStore
from src.fallback.policy import FallbackPolicy, FallbackRoute, frustration_tier
from src.fallback.response_cache import ResponseCache
from src.llm.client import (
    CompletionError,
    CompletionService,
    build_completion_service,
    complete_with_timeout,
)
from src.logging_context import get_session_logger, set_session_id
from src.nlp.analyzer import MessageAnalyzer
from src.prompts.prompt_templates import build_frustrated_prompt, build_general_prompt
from src.schemas.analysis_schema import Intent, IntentAnalysis
from src.schemas.conversation_schema import (
    ChatResponse,
    EscalationReason,
    ResponseSource,
    Speaker,
)
from src.schemas.order_schema import Order
from src.schemas.session_schema import SessionData

logger = get_session_logger(__name__)

ERROR_INTENT = "ERROR"


class SupportAgent:
    """Order-support chat agent with local resolution and LLM/human fallback."""

    def __init__(
        self,
        completion: Optional[CompletionService] = None,
        sessions: Optional[SessionStore] = None,
        cache: Optional[ResponseCache] = None,
        config: Optional[AppConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config or settings
        self._completion = completion
        self._sessions = sessions or SessionStore(self._config.sessions)
        self._cache = cache or ResponseCache(self._config.cache)
        self._analyzer = MessageAnalyzer()
        self._guardrails = GuardrailPipeline()
        self._policy = FallbackPolicy(
            self._cache, llm_enabled=completion is not None,
            thresholds=self._config.thresholds,
        )
        self._resolver = DialogueResolver(self._sessions, self._config.thresholds)
        self._responses = ResponseGenerator(self._config.store, rng)
        self._escalation = EscalationAgent(self._sessions, self._responses)

    @classmethod
    def from_settings(cls, config: Optional[AppConfig] = None) -> "SupportAgent":
        """Build an agent with the LLM backend named in configuration."""
        config = config or settings
        return cls(completion=build_completion_service(config.model), config=config)

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def start(self) -> None:
        """Start background session eviction (needs a running event loop)."""
        self._sessions.start()

    async def close(self) -> None:
        await self._sessions.stop()

    def get_stats(self) -> dict:
        return {
            "active_sessions": len(self._sessions),
            "llm_backend": self._completion.name if self._completion else None,
            "cache": self._cache.get_stats(),
        }

    # ------------------------------------------------------------------ #
    # Message handling
    # ------------------------------------------------------------------ #

    async def handle_message(
        self,
        message: str,
        customer_id: str,
        session_id: str,
        orders: Sequence[Order],
    ) -> ChatResponse:
        """
        Answer one customer message.

        Args:
            message: Raw customer text.
            customer_id: Owner of the orders; other customers' orders are ignored.
            session_id: Opaque session key.
            orders: The customer's current order snapshot. Executed actions
                flip fields on these objects in place.

        Returns:
            ChatResponse with the reply, emitted actions and routing metadata.
        """
        set_session_id(session_id)
        async with self._sessions.lock(session_id):
            session = self._sessions.get(session_id)
            session.customer_id = customer_id
            self._sessions.add_message(session_id, message, Speaker.USER)
            try:
                response = await self._respond(message, customer_id, session, orders)
            except Exception as exc:
                logger.exception("Unexpected error while handling message")
                response = self._handle_failure(session, exc)
            self._sessions.add_message(session_id, response.message, Speaker.AGENT)
            return response

    async def _respond(
        self,
        message: str,
        customer_id: str,
        session: SessionData,
        orders: Sequence[Order],
    ) -> ChatResponse:
        if session.escalated:
            return self._escalation.escalate(session, EscalationReason.ALREADY_ESCALATED)

        if self._guardrails.check_user_input(message):
            return self._escalation.escalate(session, EscalationReason.CUSTOMER_REQUEST)

        owned = [o for o in orders if o.customer_id == customer_id]
        analysis = self._analyzer.analyze(message, owned)
        session.remember_orders(analysis.entities.order_ids)

        route = self._policy.decide(analysis, session, message)
        if route == FallbackRoute.ESCALATE:
            reason = (
                EscalationReason.LLM_INSUFFICIENT if analysis.is_frustrated
                else EscalationReason.REPEATED_FAILURES
            )
            return self._escalation.escalate(session, reason)

        if route in (FallbackRoute.LLM_CACHED, FallbackRoute.LLM_FRESH):
            response = await self._llm_reply(route, message, analysis, session, owned)
            if response is not None:
                return response
            route = (
                FallbackRoute.LOCAL_EMPATHETIC if analysis.is_frustrated
                else FallbackRoute.LOCAL
            )

        return self._local_reply(route, message, analysis, session, owned)

    def _local_reply(
        self,
        route: FallbackRoute,
        message: str,
        analysis: IntentAnalysis,
        session: SessionData,
        orders: Sequence[Order],
    ) -> ChatResponse:
        decision = self._resolver.resolve(session.session_id, message, analysis, orders)
        if isinstance(decision, Escalated):
            return self._escalation.escalate(session, decision.reason)

        reply = self._responses.render(decision)
        self._apply_outcome(session, decision, reply)
        if session.failed_attempts > self._config.thresholds.max_failed_attempts:
            return self._escalation.escalate(session, EscalationReason.REPEATED_FAILURES)

        text, source = reply.message, ResponseSource.LOCAL
        if route == FallbackRoute.LOCAL_EMPATHETIC:
            text, source = self._responses.with_empathy(text), ResponseSource.LOCAL_EMPATHETIC

        intent = getattr(decision, "intent", None) or analysis.primary_intent
        return ChatResponse(
            message=text,
            intent=intent.value,
            success=reply.success,
            actions=reply.actions,
            confidence=getattr(decision, "confidence", analysis.confidence),
            source=source,
            is_follow_up=getattr(decision, "is_follow_up", False),
            session_id=session.session_id,
            state=session.state.value,
        )

    def _apply_outcome(self, session: SessionData, decision: Decision, reply: Reply) -> None:
        """Fold the decision into session memory and the failure counter."""
        outcome = decision.counts_as
        if outcome != Outcome.NEUTRAL:
            self._sessions.record_outcome(session.session_id, outcome == Outcome.SUCCESS)

        if reply.executed is not None:
            session.last_action = reply.executed
        elif isinstance(decision, Resolved) and decision.intent == Intent.UNDO_ACTION:
            session.last_action = None

        intent = getattr(decision, "intent", None)
        if intent is not None:
            session.last_intent = intent
            session.intents_seen.append(intent)
        session.remember_orders([action.order_id for action in reply.actions])

    async def _llm_reply(
        self,
        route: FallbackRoute,
        message: str,
        analysis: IntentAnalysis,
        session: SessionData,
        orders: Sequence[Order],
    ) -> Optional[ChatResponse]:
        """Answer from the cache or the LLM; None means degrade to a local reply."""
        tier = frustration_tier(analysis)
        if route == FallbackRoute.LLM_CACHED:
            cached = self._cache.get(message, tier)
            if cached is not None:
                return self._fallback_response(cached, analysis, session, ResponseSource.LLM_CACHED)

        if self._completion is None:
            return None

        if analysis.is_frustrated:
            prompt = build_frustrated_prompt(message, analysis)
        else:
            history = session.recent_messages(4)[:-1]
            prompt = build_general_prompt(message, analysis, orders, history)

        try:
            text = await complete_with_timeout(
                self._completion, prompt, self._config.model.llm_timeout_sec,
            )
        except CompletionError as exc:
            logger.warning("LLM fallback failed, answering locally: %s", exc)
            return None

        violations = self._guardrails.check_llm_reply(text)
        if violations:
            logger.warning("Discarded LLM reply (%s)", violations[0].violation_type)
            return None

        if analysis.is_frustrated:
            self._cache.put(message, tier, text)
        return self._fallback_response(text, analysis, session, ResponseSource.LLM_FRESH)

    def _fallback_response(
        self,
        text: str,
        analysis: IntentAnalysis,
        session: SessionData,
        source: ResponseSource,
    ) -> ChatResponse:
        # The LLM answers in place of the resolver, so any open question is void.
        self._sessions.clear_pending(session.session_id)
        session.last_intent = analysis.primary_intent
        session.intents_seen.append(analysis.primary_intent)
        return ChatResponse(
            message=text,
            intent=analysis.primary_intent.value,
            success=True,
            confidence=analysis.confidence,
            source=source,
            session_id=session.session_id,
            state=session.state.value,
        )

    def _handle_failure(self, session: SessionData, exc: Exception) -> ChatResponse:
        failures = self._sessions.record_outcome(session.session_id, success=False)
        if failures > self._config.thresholds.max_failed_attempts and not session.escalated:
            return self._escalation.escalate(session, EscalationReason.REPEATED_FAILURES)

        reply = self._responses.render(Failed(detail=type(exc).__name__))
        return ChatResponse(
            message=reply.message,
            intent=ERROR_INTENT,
            success=False,
            source=ResponseSource.LOCAL,
            session_id=session.session_id,
            state=session.state.value,
        )
