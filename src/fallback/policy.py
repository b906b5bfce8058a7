"""
Tiered fallback policy: local, cached LLM, fresh LLM or human.

Decision order (first match wins):

1. Frustrated with no LLM backend -> LOCAL_EMPATHETIC. Nothing is
   attempted, so this never counts against the session.
2. Frustrated and no LLM fallback used yet this session: cached answer
   -> LLM_CACHED, else LLM_FRESH. The session is marked as having used
   its fallback.
3. Frustrated again after that fallback -> ESCALATE.
4. Too many failed attempts -> ESCALATE.
5. Low-confidence general inquiry that is not an answer to a pending
   question and names no order -> LLM_FRESH when a backend exists.
6. Otherwise LOCAL.
"""

import logging
from enum import Enum
from typing import Optional

from src.config import ThresholdConfig, settings
from src.fallback.response_cache import FRUSTRATED_TIER, NEUTRAL_TIER, ResponseCache
from src.schemas.analysis_schema import Intent, IntentAnalysis
from src.schemas.session_schema import SessionData

logger = logging.getLogger(__name__)


class FallbackRoute(str, Enum):
    LOCAL = "local"
    LOCAL_EMPATHETIC = "local_empathetic"
    LLM_CACHED = "llm_cached"
    LLM_FRESH = "llm_fresh"
    ESCALATE = "escalate"


def frustration_tier(analysis: IntentAnalysis) -> str:
    return FRUSTRATED_TIER if analysis.is_frustrated else NEUTRAL_TIER


class FallbackPolicy:
    """Chooses how a turn is answered before the dialogue resolver runs."""

    def __init__(
        self,
        cache: ResponseCache,
        llm_enabled: bool,
        thresholds: Optional[ThresholdConfig] = None,
    ) -> None:
        self._cache = cache
        self._llm_enabled = llm_enabled
        self._thresholds = thresholds or settings.thresholds

    @property
    def llm_enabled(self) -> bool:
        return self._llm_enabled

    def decide(self, analysis: IntentAnalysis, session: SessionData, message: str) -> FallbackRoute:
        """
        Pick the route for this turn.

        Args:
            analysis: Fresh classification of the message.
            session: The session; ``fallback_attempted`` is set here.
            message: Raw message, used for the cache lookup.

        Returns:
            The FallbackRoute to take.
        """
        route = self._decide(analysis, session, message)
        logger.debug(
            "Fallback route %s (frustrated=%s, confidence=%.2f, failures=%d)",
            route.value, analysis.is_frustrated, analysis.confidence, session.failed_attempts,
        )
        return route

    def _decide(
        self, analysis: IntentAnalysis, session: SessionData, message: str
    ) -> FallbackRoute:
        if analysis.is_frustrated and not self._llm_enabled:
            return FallbackRoute.LOCAL_EMPATHETIC

        if analysis.is_frustrated and not session.fallback_attempted:
            session.fallback_attempted = True
            if self._cache.contains(message, frustration_tier(analysis)):
                return FallbackRoute.LLM_CACHED
            return FallbackRoute.LLM_FRESH

        if analysis.is_frustrated:
            return FallbackRoute.ESCALATE

        if session.failed_attempts > self._thresholds.max_failed_attempts:
            return FallbackRoute.ESCALATE

        if (
            self._llm_enabled
            and analysis.confidence < self._thresholds.llm_fallback_confidence
            and analysis.primary_intent == Intent.GENERAL_INQUIRY
            and session.pending_intent is None
            and not analysis.entities.references_order
        ):
            return FallbackRoute.LLM_FRESH

        return FallbackRoute.LOCAL
