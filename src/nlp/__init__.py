from src.nlp.analyzer import MessageAnalyzer
from src.nlp.entity_extractor import EntityExtractor
from src.nlp.intent_classifier import IntentClassifier, detect_frustration

__all__ = [
    "MessageAnalyzer",
    "EntityExtractor",
    "IntentClassifier",
    "detect_frustration",
]
