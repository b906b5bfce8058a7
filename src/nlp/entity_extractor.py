"""
Order and product reference extraction.

Pulls order identifiers and product mentions out of free text. When the
customer's orders are known, product mentions are resolved to concrete
orders (exact name or keyword overlap); otherwise a small generic
category vocabulary only tells us the message is about *some* product.
"""

import logging
import math
import re
from typing import Optional, Sequence

from src.schemas.analysis_schema import ExtractedEntities, MatchedOrder, MatchType
from src.schemas.order_schema import Order
from src.utils import contains_term

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "ORD-"

# Group 1 of every pattern captures the identifier body.
_ORDER_ID_PATTERNS: list[re.Pattern] = [
    re.compile(r"\bORD-([A-Z0-9]{5,8})\b", re.IGNORECASE),
    re.compile(r"\bORD\s?(\d{5,8})\b", re.IGNORECASE),
    re.compile(r"\border\s+(?:#\s*|number\s+|no\.?\s*)?(\d{5,8})\b", re.IGNORECASE),
    re.compile(r"#(\d{5,8})\b"),
]

# Words that fit the identifier shape but are never identifiers.
RESERVED_ID_WORDS = frozenset({
    "CANCEL", "TRACK", "RETURN", "ORDER", "ORDERS", "WANT", "THIS", "THAT",
    "STATUS", "REFUND", "NUMBER", "PLEASE", "STOP", "UNDO", "DELIVERY",
})

GENERIC_PRODUCTS: dict[str, str] = {
    "phone": "phone",
    "iphone": "phone",
    "smartphone": "phone",
    "laptop": "laptop",
    "macbook": "laptop",
    "notebook": "laptop",
    "headphones": "headphones",
    "earbuds": "headphones",
    "airpods": "headphones",
    "watch": "watch",
    "smartwatch": "watch",
}

MIN_KEYWORD_LENGTH = 3


def product_keywords(name: str) -> list[str]:
    """Keywords of an item name: lowercase words longer than two characters."""
    words = re.findall(r"[a-z0-9]+", name.lower())
    return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH]


def _mentions(lower_message: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}s?\b", lower_message) is not None


class EntityExtractor:
    """Pure extraction of order ids, product mentions and matched orders."""

    def extract(
        self, message: str, known_orders: Optional[Sequence[Order]] = None
    ) -> ExtractedEntities:
        """
        Extract structured references from a customer message.

        Args:
            message: Raw customer text.
            known_orders: The customer's current orders, if available.

        Returns:
            ExtractedEntities; empty lists mean nothing could be resolved.
        """
        order_ids = self.extract_order_ids(message)
        if known_orders:
            matched = self.match_orders(message, known_orders)
            products = []
            for match in matched:
                if match.matched_product not in products:
                    products.append(match.matched_product)
        else:
            matched = []
            products = self.extract_generic_products(message)

        entities = ExtractedEntities(
            order_ids=order_ids, products=products, matched_orders=matched,
        )
        logger.debug(
            "Extracted ids=%s products=%s matches=%d",
            order_ids, products, len(matched),
        )
        return entities

    def extract_order_ids(self, message: str) -> list[str]:
        """Find order identifiers, normalized to the ``ORD-`` prefix, deduplicated."""
        found: list[str] = []
        for pattern in _ORDER_ID_PATTERNS:
            for match in pattern.finditer(message):
                body = match.group(1).upper()
                if body in RESERVED_ID_WORDS:
                    continue
                order_id = f"{ORDER_ID_PREFIX}{body}"
                if order_id not in found:
                    found.append(order_id)
        return found

    def extract_generic_products(self, message: str) -> list[str]:
        lower = message.lower()
        labels: list[str] = []
        for word, label in GENERIC_PRODUCTS.items():
            if _mentions(lower, word) and label not in labels:
                labels.append(label)
        return labels

    def match_orders(self, message: str, orders: Sequence[Order]) -> list[MatchedOrder]:
        """
        Link product mentions to concrete orders.

        An item matches exactly when its full lowercase name appears in the
        message, partially when at least half (rounded up, minimum one) of
        its keywords appear. Only the best match per order is kept; exact
        matches shadow partial ones, and among partial matches only the
        strongest survive.
        """
        lower = message.lower()
        best: dict[str, MatchedOrder] = {}

        for order in orders:
            for item in order.items:
                match = self._match_item(lower, order.id, item.name)
                if match is None:
                    continue
                current = best.get(order.id)
                if current is None or match.confidence > current.confidence:
                    best[order.id] = match

        matches = sorted(best.values(), key=lambda m: m.confidence, reverse=True)
        exact = [m for m in matches if m.match_type == MatchType.EXACT]
        if exact:
            return exact
        if matches:
            top = matches[0].confidence
            return [m for m in matches if m.confidence == top]
        return []

    def _match_item(
        self, lower_message: str, order_id: str, item_name: str
    ) -> Optional[MatchedOrder]:
        name = item_name.lower().strip()
        if name and contains_term(lower_message, name):
            return MatchedOrder(order_id, item_name, MatchType.EXACT, 1.0)

        keywords = product_keywords(item_name)
        if not keywords:
            return None
        hits = sum(1 for kw in keywords if _mentions(lower_message, kw))
        required = max(1, math.ceil(0.5 * len(keywords)))
        if hits < required:
            return None
        return MatchedOrder(order_id, item_name, MatchType.PARTIAL, hits / len(keywords))
