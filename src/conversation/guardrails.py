"""
Guardrails around the support conversation.

Two layers, each checking a different concern:
1. HandoffGuardrail   (customer input) explicit requests for a human
2. ReplyGuardrail     (LLM output) claims of order changes the LLM cannot
                      make, and persona breaks

Composed into a GuardrailPipeline for pre-resolver and post-LLM checks.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.utils import contains_term

logger = logging.getLogger(__name__)


@dataclass
class GuardrailResult:
    """Outcome of a single guardrail check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "warning"  # "warning" | "block" | "escalate"


class HandoffGuardrail:
    """Detects customers explicitly asking for a person."""

    HANDOFF_PHRASES = [
        "speak to a human", "talk to a human", "speak to a person",
        "talk to a person", "real person", "human agent", "live agent",
        "speak to someone", "talk to someone", "manager", "supervisor",
        "representative",
    ]

    def check_handoff_request(self, user_message: str) -> GuardrailResult:
        lower = user_message.lower()
        for phrase in self.HANDOFF_PHRASES:
            if contains_term(lower, phrase):
                logger.info("Human handoff requested: '%s'", phrase)
                return GuardrailResult(
                    passed=False,
                    violation_type="handoff_requested",
                    message=f"Customer asked for a human: '{phrase}'.",
                    severity="escalate",
                )
        return GuardrailResult(passed=True)


class ReplyGuardrail:
    """Rejects LLM replies that claim actions or break persona."""

    ACTION_CLAIMS = [
        "i've cancelled", "i have cancelled", "i've canceled", "i have canceled",
        "has been cancelled", "has been canceled", "i've refunded", "i have refunded",
        "refund has been processed", "refund has been issued",
        "i've processed", "i have processed", "return has been started",
        "i've started a return", "i've initiated",
    ]

    PERSONA_BREAKS = [
        "as an ai", "as a language model", "i'm just a computer",
        "i am an ai", "i'm an ai",
    ]

    def check_action_claims(self, reply_text: str) -> GuardrailResult:
        lower = reply_text.lower()
        for claim in self.ACTION_CLAIMS:
            if claim in lower:
                logger.warning("LLM reply claims an order action: '%s'", claim)
                return GuardrailResult(
                    passed=False,
                    violation_type="unbacked_action_claim",
                    message=f"Reply claims an action that was not executed: '{claim}'.",
                    severity="block",
                )
        return GuardrailResult(passed=True)

    def check_persona(self, reply_text: str) -> GuardrailResult:
        lower = reply_text.lower()
        for pattern in self.PERSONA_BREAKS:
            if pattern in lower:
                return GuardrailResult(
                    passed=False,
                    violation_type="persona_break",
                    message=f"Reply breaks persona with: '{pattern}'.",
                    severity="block",
                )
        return GuardrailResult(passed=True)


class GuardrailPipeline:
    """Composes the guardrails into input and LLM-output checks."""

    def __init__(self) -> None:
        self.handoff = HandoffGuardrail()
        self.reply = ReplyGuardrail()

    def check_user_input(self, text: str) -> list[GuardrailResult]:
        """Pre-resolver: check customer input for handoff requests."""
        results = [self.handoff.check_handoff_request(text)]
        return [r for r in results if not r.passed]

    def check_llm_reply(self, text: str) -> list[GuardrailResult]:
        """Post-LLM: check a generated reply before it reaches the customer."""
        results = [
            self.reply.check_action_claims(text),
            self.reply.check_persona(text),
        ]
        return [r for r in results if not r.passed]
