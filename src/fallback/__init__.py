from src.fallback.policy import FallbackPolicy, FallbackRoute, frustration_tier
from src.fallback.response_cache import FRUSTRATED_TIER, NEUTRAL_TIER, ResponseCache

__all__ = [
    "FallbackPolicy",
    "FallbackRoute",
    "frustration_tier",
    "ResponseCache",
    "FRUSTRATED_TIER",
    "NEUTRAL_TIER",
]
