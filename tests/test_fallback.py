"""Tests for the tiered fallback policy and the response cache."""

import pytest

from src.config import CacheConfig
from src.fallback.policy import FallbackPolicy, FallbackRoute, frustration_tier
from src.fallback.response_cache import FRUSTRATED_TIER, NEUTRAL_TIER, ResponseCache
from src.schemas.analysis_schema import Intent
from src.schemas.session_schema import PendingIntent, PendingKind, SessionData
from tests.conftest import make_analysis

ANGRY = "This is ridiculous, where is my stuff"


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestResponseCache:
    def setup_method(self):
        self.clock = FakeClock()
        self.cache = ResponseCache(CacheConfig(max_entries=2, ttl_sec=60), clock=self.clock)

    def test_key_normalizes_message(self):
        key = ResponseCache.make_key("  Where is my ORDER?! ", FRUSTRATED_TIER)
        assert key == "where is my order_frustrated"

    def test_put_then_get(self):
        self.cache.put("Where is my order?", FRUSTRATED_TIER, "Sorry!")
        assert self.cache.get("where is my order", FRUSTRATED_TIER) == "Sorry!"

    def test_tiers_are_separate(self):
        self.cache.put("hello", FRUSTRATED_TIER, "Sorry!")
        assert self.cache.get("hello", NEUTRAL_TIER) is None

    def test_entries_expire(self):
        self.cache.put("hello", NEUTRAL_TIER, "Hi")
        self.clock.now += 61
        assert self.cache.get("hello", NEUTRAL_TIER) is None
        assert len(self.cache) == 0

    def test_contains_does_not_count(self):
        self.cache.put("hello", NEUTRAL_TIER, "Hi")
        assert self.cache.contains("hello", NEUTRAL_TIER)
        assert not self.cache.contains("bye", NEUTRAL_TIER)
        stats = self.cache.get_stats()
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    def test_oldest_evicted_when_full(self):
        self.cache.put("one", NEUTRAL_TIER, "1")
        self.clock.now += 1
        self.cache.put("two", NEUTRAL_TIER, "2")
        self.clock.now += 1
        self.cache.put("three", NEUTRAL_TIER, "3")
        assert len(self.cache) == 2
        assert self.cache.get("one", NEUTRAL_TIER) is None
        assert self.cache.get("three", NEUTRAL_TIER) == "3"
        assert self.cache.get_stats()["evictions"] == 1

    def test_overwrite_refreshes_entry(self):
        self.cache.put("one", NEUTRAL_TIER, "1")
        self.cache.put("two", NEUTRAL_TIER, "2")
        self.cache.put("one", NEUTRAL_TIER, "uno")
        self.cache.put("three", NEUTRAL_TIER, "3")
        assert self.cache.get("one", NEUTRAL_TIER) == "uno"
        assert self.cache.get("two", NEUTRAL_TIER) is None

    def test_stats(self):
        self.cache.put("hello", NEUTRAL_TIER, "Hi")
        self.cache.get("hello", NEUTRAL_TIER)
        self.cache.get("missing", NEUTRAL_TIER)
        stats = self.cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(0.5)

    def test_clear(self):
        self.cache.put("hello", NEUTRAL_TIER, "Hi")
        self.cache.clear()
        assert len(self.cache) == 0


class TestFrustrationTier:
    def test_tiers(self):
        assert frustration_tier(make_analysis(is_frustrated=True)) == FRUSTRATED_TIER
        assert frustration_tier(make_analysis()) == NEUTRAL_TIER


class TestFallbackPolicy:
    def setup_method(self):
        self.cache = ResponseCache()
        self.session = SessionData(session_id="s1")

    def policy(self, llm_enabled=True):
        return FallbackPolicy(self.cache, llm_enabled=llm_enabled)

    def test_confident_request_is_local(self):
        analysis = make_analysis(Intent.CANCEL_ORDER, 0.34)
        assert self.policy().decide(analysis, self.session, "cancel my order") == FallbackRoute.LOCAL

    def test_first_frustration_goes_to_llm(self):
        analysis = make_analysis(is_frustrated=True)
        route = self.policy().decide(analysis, self.session, ANGRY)
        assert route == FallbackRoute.LLM_FRESH
        assert self.session.fallback_attempted

    def test_cached_frustration_answer(self):
        self.cache.put(ANGRY, FRUSTRATED_TIER, "So sorry.")
        analysis = make_analysis(is_frustrated=True)
        assert self.policy().decide(analysis, self.session, ANGRY) == FallbackRoute.LLM_CACHED

    def test_frustration_without_llm_is_empathetic_local(self):
        analysis = make_analysis(is_frustrated=True)
        route = self.policy(llm_enabled=False).decide(analysis, self.session, ANGRY)
        assert route == FallbackRoute.LOCAL_EMPATHETIC
        assert not self.session.fallback_attempted

    def test_repeated_frustration_without_llm_stays_local(self):
        policy = self.policy(llm_enabled=False)
        analysis = make_analysis(is_frustrated=True)
        policy.decide(analysis, self.session, ANGRY)
        assert policy.decide(analysis, self.session, ANGRY) == FallbackRoute.LOCAL_EMPATHETIC

    def test_second_frustration_escalates(self):
        self.session.fallback_attempted = True
        analysis = make_analysis(is_frustrated=True)
        assert self.policy().decide(analysis, self.session, ANGRY) == FallbackRoute.ESCALATE

    def test_repeated_failures_escalate(self):
        self.session.failed_attempts = 3
        analysis = make_analysis(Intent.TRACK_ORDER, 0.5)
        assert self.policy().decide(analysis, self.session, "track") == FallbackRoute.ESCALATE

    def test_failures_at_limit_stay_local(self):
        self.session.failed_attempts = 2
        analysis = make_analysis(Intent.TRACK_ORDER, 0.5)
        assert self.policy().decide(analysis, self.session, "track") == FallbackRoute.LOCAL

    def test_vague_general_inquiry_uses_llm(self):
        analysis = make_analysis(Intent.GENERAL_INQUIRY, 0.3)
        route = self.policy().decide(analysis, self.session, "what's your return policy")
        assert route == FallbackRoute.LLM_FRESH

    def test_vague_inquiry_without_llm_is_local(self):
        analysis = make_analysis(Intent.GENERAL_INQUIRY, 0.3)
        route = self.policy(llm_enabled=False).decide(analysis, self.session, "hi")
        assert route == FallbackRoute.LOCAL

    def test_pending_question_stays_local(self):
        self.session.pending_intent = PendingIntent(Intent.CANCEL_ORDER, PendingKind.SELECTION)
        analysis = make_analysis(Intent.GENERAL_INQUIRY, 0.3)
        assert self.policy().decide(analysis, self.session, "hmm") == FallbackRoute.LOCAL

    def test_order_reference_stays_local(self):
        analysis = make_analysis(Intent.GENERAL_INQUIRY, 0.3, order_ids=["ORD-12345"])
        assert self.policy().decide(analysis, self.session, "ORD-12345") == FallbackRoute.LOCAL
