"""
Centralized configuration with environment variable overrides.

Store details, confidence thresholds, session limits and LLM backend
settings are configurable here. Nothing is hardcoded in resolver or
policy logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

LLM_PROVIDERS = ("openai", "gemini", "none")
DEFAULT_MODELS = {"openai": "gpt-4o-mini", "gemini": "gemini-2.0-flash"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class StoreConfig:
    """Store-specific settings loaded from environment or defaults."""

    name: str = os.getenv("STORE_NAME", "Northwind Goods")
    assistant_name: str = os.getenv("ASSISTANT_NAME", "Sam")
    support_email: str = os.getenv("SUPPORT_EMAIL", "support@northwind.example")
    handoff_sla_minutes: int = _safe_int("HANDOFF_SLA_MINUTES", "15")


@dataclass(frozen=True)
class ModelConfig:
    """LLM fallback backend settings."""

    llm_provider: str = os.getenv("LLM_PROVIDER", "openai").lower()
    llm_model: str = os.getenv("LLM_MODEL", "")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.3")
    llm_max_tokens: int = _safe_int("LLM_MAX_TOKENS", "300")
    llm_timeout_sec: float = _safe_float("LLM_TIMEOUT_SEC", "10.0")
    openai_api_key: str = field(default=os.getenv("OPENAI_API_KEY", ""), repr=False)
    gemini_api_key: str = field(default=os.getenv("GEMINI_API_KEY", ""), repr=False)

    @property
    def model_name(self) -> str:
        return self.llm_model or DEFAULT_MODELS.get(self.llm_provider, "")

    @property
    def api_key(self) -> str:
        if self.llm_provider == "openai":
            return self.openai_api_key
        if self.llm_provider == "gemini":
            return self.gemini_api_key
        return ""

    @property
    def llm_enabled(self) -> bool:
        return self.llm_provider != "none" and bool(self.api_key)


@dataclass(frozen=True)
class ThresholdConfig:
    """Confidence thresholds and escalation limits for the dialogue resolver."""

    llm_fallback_confidence: float = _safe_float("LLM_FALLBACK_CONFIDENCE", "0.4")
    clarification_confidence: float = _safe_float("CLARIFICATION_CONFIDENCE", "0.6")
    follow_up_confidence: float = _safe_float("FOLLOW_UP_CONFIDENCE", "0.9")
    explicit_order_confidence: float = _safe_float("EXPLICIT_ORDER_CONFIDENCE", "0.95")
    min_intent_score: float = _safe_float("MIN_INTENT_SCORE", "0.08")
    general_confidence: float = _safe_float("GENERAL_CONFIDENCE", "0.3")
    max_failed_attempts: int = _safe_int("MAX_FAILED_ATTEMPTS", "2")


@dataclass(frozen=True)
class SessionConfig:
    """In-memory session lifecycle settings."""

    ttl_minutes: int = _safe_int("SESSION_TTL_MINUTES", "30")
    max_history: int = _safe_int("SESSION_MAX_HISTORY", "20")
    sweep_interval_sec: float = _safe_float("SESSION_SWEEP_INTERVAL_SEC", "300")
    pending_ttl_sec: float = _safe_float("PENDING_INTENT_TTL_SEC", "600")


@dataclass(frozen=True)
class CacheConfig:
    """Fallback response cache limits."""

    max_entries: int = _safe_int("CACHE_MAX_ENTRIES", "1000")
    ttl_sec: float = _safe_float("CACHE_TTL_SEC", "3600")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    store: StoreConfig = field(default_factory=StoreConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.model.llm_provider not in LLM_PROVIDERS:
        raise ValueError(
            f"LLM_PROVIDER must be one of {LLM_PROVIDERS}, got {config.model.llm_provider!r}"
        )
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.llm_max_tokens < 1:
        raise ValueError(f"LLM_MAX_TOKENS must be >= 1, got {config.model.llm_max_tokens}")
    if config.model.llm_timeout_sec <= 0:
        raise ValueError(f"LLM_TIMEOUT_SEC must be > 0, got {config.model.llm_timeout_sec}")

    thresholds = config.thresholds
    for name, value in [
        ("LLM_FALLBACK_CONFIDENCE", thresholds.llm_fallback_confidence),
        ("CLARIFICATION_CONFIDENCE", thresholds.clarification_confidence),
        ("FOLLOW_UP_CONFIDENCE", thresholds.follow_up_confidence),
        ("EXPLICIT_ORDER_CONFIDENCE", thresholds.explicit_order_confidence),
        ("MIN_INTENT_SCORE", thresholds.min_intent_score),
        ("GENERAL_CONFIDENCE", thresholds.general_confidence),
    ]:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
    if thresholds.llm_fallback_confidence > thresholds.clarification_confidence:
        raise ValueError(
            "LLM_FALLBACK_CONFIDENCE must not exceed CLARIFICATION_CONFIDENCE, got "
            f"{thresholds.llm_fallback_confidence} > {thresholds.clarification_confidence}"
        )
    if thresholds.max_failed_attempts < 0:
        raise ValueError(
            f"MAX_FAILED_ATTEMPTS must be >= 0, got {thresholds.max_failed_attempts}"
        )

    if config.sessions.ttl_minutes < 1:
        raise ValueError(f"SESSION_TTL_MINUTES must be >= 1, got {config.sessions.ttl_minutes}")
    if not 2 <= config.sessions.max_history <= 200:
        raise ValueError(
            f"SESSION_MAX_HISTORY must be between 2 and 200, got {config.sessions.max_history}"
        )
    if config.sessions.sweep_interval_sec <= 0:
        raise ValueError(
            "SESSION_SWEEP_INTERVAL_SEC must be > 0, "
            f"got {config.sessions.sweep_interval_sec}"
        )
    if config.sessions.pending_ttl_sec <= 0:
        raise ValueError(
            f"PENDING_INTENT_TTL_SEC must be > 0, got {config.sessions.pending_ttl_sec}"
        )

    if config.cache.max_entries < 1:
        raise ValueError(f"CACHE_MAX_ENTRIES must be >= 1, got {config.cache.max_entries}")
    if config.cache.ttl_sec <= 0:
        raise ValueError(f"CACHE_TTL_SEC must be > 0, got {config.cache.ttl_sec}")
    if config.store.handoff_sla_minutes < 1:
        raise ValueError(
            f"HANDOFF_SLA_MINUTES must be >= 1, got {config.store.handoff_sla_minutes}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded for '%s' (llm provider: %s)",
        config.store.name, config.model.llm_provider,
    )
    return config


# Singleton instance
settings = load_config()
