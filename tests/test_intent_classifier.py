"""Tests for weighted intent scoring and frustration detection."""

import pytest

from src.nlp.analyzer import MessageAnalyzer
from src.nlp.intent_classifier import IntentClassifier, detect_frustration
from src.schemas.analysis_schema import Intent
from tests.conftest import make_order


@pytest.fixture
def classifier():
    return IntentClassifier()


class TestClassification:
    def test_cancel_with_pattern(self, classifier):
        result = classifier.classify("cancel my order")
        assert result.primary_intent == Intent.CANCEL_ORDER
        assert result.confidence == pytest.approx(0.9 * (0.5 * 1 / 4 + 0.5 * 1 / 2), abs=1e-3)

    def test_track_where_is(self, classifier):
        result = classifier.classify("Where is my package?")
        assert result.primary_intent == Intent.TRACK_ORDER

    def test_return_keyword_only(self, classifier):
        result = classifier.classify("return my MacBook")
        assert result.primary_intent == Intent.RETURN_ORDER
        assert result.confidence == pytest.approx(0.1)

    def test_refund_request(self, classifier):
        assert classifier.classify("I want a refund").primary_intent == Intent.RETURN_ORDER

    def test_undo(self, classifier):
        assert classifier.classify("please undo that").primary_intent == Intent.UNDO_ACTION

    def test_unmatched_is_general_with_default_confidence(self, classifier):
        result = classifier.classify("hello there")
        assert result.primary_intent == Intent.GENERAL_INQUIRY
        assert result.confidence == pytest.approx(0.3)

    def test_explicit_help_scores_general(self, classifier):
        result = classifier.classify("I need help")
        assert result.primary_intent == Intent.GENERAL_INQUIRY
        assert result.confidence < 0.3

    def test_every_intent_scored(self, classifier):
        result = classifier.classify("cancel my order")
        assert set(result.scores) == set(Intent)

    def test_highest_score_wins(self, classifier):
        result = classifier.classify("cancel order and track order status")
        best = max(result.scores, key=result.scores.get)
        assert result.primary_intent == best


class TestFrustration:
    @pytest.mark.parametrize("message", [
        "This is unacceptable",
        "I'm still waiting for my package",
        "I am fed up with this",
        "where is it!!",
        "WHERE IS MY ORDER",
    ])
    def test_frustrated(self, message):
        assert detect_frustration(message) is True

    @pytest.mark.parametrize("message", [
        "Where is my package?",
        "Thanks!",
        "cancel ORD-12345 please",
        "track ORD-ABCDE",
    ])
    def test_calm(self, message):
        assert detect_frustration(message) is False

    def test_long_complaint(self):
        message = (
            "I have been trying to get an answer about my delivery for three days now "
            "and nobody has replied to any of my emails about it"
        )
        assert len(message) > 100
        assert detect_frustration(message) is True

    def test_long_message_without_complaint(self):
        message = (
            "Hello, I ordered a new laptop last month and I would like to know "
            "what the estimated delivery date is for my order please"
        )
        assert detect_frustration(message) is False

    def test_classifier_sets_flag(self, classifier):
        assert classifier.classify("this is ridiculous").is_frustrated


class TestMessageAnalyzer:
    def test_combines_intent_and_entities(self):
        orders = [make_order("ORD-10001", items=["iPhone 15 Pro"])]
        analysis = MessageAnalyzer().analyze("cancel my iPhone", orders)
        assert analysis.primary_intent == Intent.CANCEL_ORDER
        assert analysis.is_order_intent
        assert [m.order_id for m in analysis.entities.matched_orders] == ["ORD-10001"]
        assert not analysis.is_frustrated
