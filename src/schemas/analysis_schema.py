"""Per-message analysis results produced by the NLP layer."""

from dataclasses import dataclass, field
from enum import Enum


class Intent(str, Enum):
    CANCEL_ORDER = "CANCEL_ORDER"
    TRACK_ORDER = "TRACK_ORDER"
    RETURN_ORDER = "RETURN_ORDER"
    UNDO_ACTION = "UNDO_ACTION"
    GENERAL_INQUIRY = "GENERAL_INQUIRY"


# Intents that act on a specific order and go through disambiguation.
ORDER_INTENTS = (Intent.CANCEL_ORDER, Intent.TRACK_ORDER, Intent.RETURN_ORDER)

# Order intents whose execution has a financial effect and needs a yes/no first.
FINANCIAL_INTENTS = (Intent.CANCEL_ORDER, Intent.RETURN_ORDER)


class MatchType(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"


@dataclass(frozen=True)
class MatchedOrder:
    """A candidate order inferred from a product mention."""
    order_id: str
    matched_product: str
    match_type: MatchType
    confidence: float


@dataclass
class ExtractedEntities:
    """Order and product references found in one message."""
    order_ids: list[str] = field(default_factory=list)
    products: list[str] = field(default_factory=list)
    matched_orders: list[MatchedOrder] = field(default_factory=list)

    @property
    def references_order(self) -> bool:
        return bool(self.order_ids or self.matched_orders)


@dataclass(frozen=True)
class Classification:
    """Intent classifier output."""
    primary_intent: Intent
    confidence: float
    is_frustrated: bool
    scores: dict[Intent, float] = field(default_factory=dict)


@dataclass
class IntentAnalysis:
    """Classification plus extracted entities for one message."""
    primary_intent: Intent
    confidence: float
    entities: ExtractedEntities
    is_frustrated: bool = False

    @property
    def is_order_intent(self) -> bool:
        return self.primary_intent in ORDER_INTENTS
