"""
Weighted keyword + pattern intent classification and frustration detection.

Each intent has a keyword list, a regex pattern list and a weight:

    score = weight * (0.5 * keyword_hit_ratio + 0.5 * pattern_hit_ratio)

The highest score wins. When nothing clears the floor the message is a
general inquiry with a fixed low confidence. Downstream confidence
thresholds are tuned against this shape, so keep it intact.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from src.config import ThresholdConfig, settings
from src.schemas.analysis_schema import Classification, Intent
from src.utils import contains_term

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentRule:
    """Signals and weight for one intent."""
    intent: Intent
    keywords: tuple[str, ...]
    patterns: tuple[re.Pattern, ...] = field(default_factory=tuple)
    weight: float = 1.0

    def score(self, lower_message: str) -> float:
        keyword_hits = sum(1 for kw in self.keywords if kw in lower_message)
        pattern_hits = sum(1 for p in self.patterns if p.search(lower_message))
        keyword_ratio = keyword_hits / len(self.keywords) if self.keywords else 0.0
        pattern_ratio = pattern_hits / len(self.patterns) if self.patterns else 0.0
        return self.weight * (0.5 * keyword_ratio + 0.5 * pattern_ratio)


def _compile(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        Intent.CANCEL_ORDER,
        keywords=("cancel", "stop", "abort", "remove"),
        patterns=_compile(r"cancel\s+(?:my\s+)?order", r"stop\s+(?:my\s+)?order"),
        weight=0.9,
    ),
    IntentRule(
        Intent.TRACK_ORDER,
        keywords=("track", "status", "where", "shipped", "delivery", "arrive", "tracking"),
        patterns=_compile(
            r"track\s+(?:my\s+)?order", r"order\s+status", r"where\s+is", r"track.*ord",
        ),
        weight=0.85,
    ),
    IntentRule(
        Intent.RETURN_ORDER,
        keywords=("return", "refund", "exchange", "send back"),
        patterns=_compile(r"return\s+(?:my\s+)?order", r"want\s+(?:a\s+)?refund"),
        weight=0.8,
    ),
    IntentRule(
        Intent.UNDO_ACTION,
        keywords=("undo", "revert", "reverse", "restore", "changed my mind"),
        patterns=_compile(
            r"\bundo\b", r"\b(?:un-?cancel|reinstate|restore|bring\s+back)\b",
        ),
        weight=0.85,
    ),
    IntentRule(
        Intent.GENERAL_INQUIRY,
        keywords=("help", "support", "question"),
        patterns=_compile(r"need\s+help", r"can\s+you\s+help"),
        weight=0.4,
    ),
)

FRUSTRATION_TERMS = (
    "frustrated", "frustrating", "angry", "upset", "furious", "annoyed",
    "terrible", "awful", "horrible", "worst", "ridiculous", "unacceptable",
    "useless", "pathetic", "disappointed", "fed up", "sick of", "tired of",
    "still not", "still waiting", "not working", "waste of time",
)

_COMPLAINT_PATTERN = re.compile(
    r"(?:not work|doesn't work|won't work|isn't working|trying to|hours|days|weeks|attempts?)",
    re.IGNORECASE,
)
_SHOUTING_PATTERN = re.compile(r"[A-Z]{4,}")
_ORDER_TOKEN_PATTERN = re.compile(r"\bORD-?[A-Z0-9]+\b", re.IGNORECASE)

LONG_COMPLAINT_LENGTH = 100


def detect_frustration(message: str) -> bool:
    """OR-combine the frustration signals for a raw message."""
    lower = message.lower()
    if any(contains_term(lower, term) for term in FRUSTRATION_TERMS):
        return True
    if message.count("!") > 1:
        return True
    # Order ids are uppercase by convention and must not read as shouting.
    if _SHOUTING_PATTERN.search(_ORDER_TOKEN_PATTERN.sub(" ", message)):
        return True
    return len(message) > LONG_COMPLAINT_LENGTH and bool(_COMPLAINT_PATTERN.search(message))


class IntentClassifier:
    """Scores every intent rule against a message and picks the best."""

    def __init__(
        self,
        rules: tuple[IntentRule, ...] = INTENT_RULES,
        thresholds: Optional[ThresholdConfig] = None,
    ) -> None:
        self._rules = rules
        self._thresholds = thresholds or settings.thresholds

    def classify(self, message: str) -> Classification:
        lower = message.lower()
        scores = {rule.intent: rule.score(lower) for rule in self._rules}

        best_intent = Intent.GENERAL_INQUIRY
        best_score = self._thresholds.min_intent_score
        for intent, score in scores.items():
            if score > best_score:
                best_intent, best_score = intent, score

        if best_score <= self._thresholds.min_intent_score:
            confidence = self._thresholds.general_confidence
        else:
            confidence = round(best_score, 4)

        result = Classification(
            primary_intent=best_intent,
            confidence=confidence,
            is_frustrated=detect_frustration(message),
            scores=scores,
        )
        logger.debug(
            "Classified as %s (confidence %.3f, frustrated=%s)",
            result.primary_intent.value, result.confidence, result.is_frustrated,
        )
        return result
