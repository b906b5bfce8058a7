"""Runs classification and extraction together for one message."""

from typing import Optional, Sequence

from src.nlp.entity_extractor import EntityExtractor
from src.nlp.intent_classifier import IntentClassifier
from src.schemas.analysis_schema import IntentAnalysis
from src.schemas.order_schema import Order


class MessageAnalyzer:
    """Produces the per-turn IntentAnalysis consumed by policy and resolver."""

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        extractor: Optional[EntityExtractor] = None,
    ) -> None:
        self.classifier = classifier or IntentClassifier()
        self.extractor = extractor or EntityExtractor()

    def analyze(self, message: str, orders: Optional[Sequence[Order]] = None) -> IntentAnalysis:
        classification = self.classifier.classify(message)
        return IntentAnalysis(
            primary_intent=classification.primary_intent,
            confidence=classification.confidence,
            entities=self.extractor.extract(message, orders),
            is_frustrated=classification.is_frustrated,
        )
