"""Prompt construction for LLM fallback turns."""

from typing import Sequence

from src.prompts.system_prompts import FRUSTRATED_SYSTEM_PROMPT, GENERAL_SYSTEM_PROMPT
from src.schemas.analysis_schema import IntentAnalysis
from src.schemas.order_schema import Order
from src.schemas.session_schema import SessionMessage


def build_frustrated_prompt(message: str, analysis: IntentAnalysis) -> str:
    """
    Prompt for a frustrated customer.

    Built only from the message itself so the answer can be cached and
    shared across sessions under the message's cache key.
    """
    lines = [
        FRUSTRATED_SYSTEM_PROMPT,
        f"Customer message: {message}",
        f"Detected request: {analysis.primary_intent.value}",
    ]
    if analysis.entities.order_ids:
        lines.append(f"Order numbers mentioned: {', '.join(analysis.entities.order_ids)}")
    lines.append("\nWrite your reply:")
    return "\n".join(lines)


def build_general_prompt(
    message: str,
    analysis: IntentAnalysis,
    orders: Sequence[Order],
    history: Sequence[SessionMessage],
) -> str:
    """Prompt for an open-ended question, with the customer's orders and recent turns."""
    lines = [GENERAL_SYSTEM_PROMPT, f"Customer message: {message}"]
    lines.append(f"Detected request: {analysis.primary_intent.value}")

    if orders:
        lines.append("Customer's orders:")
        for order in orders:
            lines.append(f"  {order.describe()}: {order.status.value}")

    if history:
        lines.append("Recent conversation:")
        for turn in history:
            lines.append(f"  {turn.speaker.value}: {turn.text}")

    lines.append("\nWrite your reply:")
    return "\n".join(lines)
