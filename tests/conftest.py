"""Shared test fixtures and helpers."""

import asyncio
from typing import Optional

import pytest

from src.agents.support_agent import SupportAgent
from src.conversation.guardrails import GuardrailPipeline
from src.conversation.session_store import SessionStore
from src.conversation.state_machine import DialogueStateMachine
from src.fallback.response_cache import ResponseCache
from src.schemas.analysis_schema import ExtractedEntities, Intent, IntentAnalysis
from src.schemas.order_schema import Order, OrderItem, OrderStatus
from src.tools import orders as order_store

EMPATHETIC_REPLY = (
    "I'm really sorry your package is taking so long. "
    "Let me look into this for you right away."
)


class FakeCompletionService:
    """In-memory completion backend that records every prompt it receives."""

    name = "fake"

    def __init__(
        self,
        reply: str = EMPATHETIC_REPLY,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def reset_order_store():
    order_store.reset()
    yield
    order_store.reset()


@pytest.fixture
def state_machine():
    return DialogueStateMachine()


@pytest.fixture
def guardrail_pipeline():
    return GuardrailPipeline()


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def cache():
    return ResponseCache()


@pytest.fixture
def agent():
    """Agent without an LLM backend: every turn is answered locally."""
    return SupportAgent()


@pytest.fixture
def fake_llm():
    return FakeCompletionService()


@pytest.fixture
def llm_agent(fake_llm):
    return SupportAgent(completion=fake_llm)


@pytest.fixture
def alice_orders():
    """CUST-001: a confirmed iPhone, a shipped MacBook and a processing watch."""
    return order_store.get_customer_orders("CUST-001")


@pytest.fixture
def bob_orders():
    """CUST-002: a single delivered AirPods order."""
    return order_store.get_customer_orders("CUST-002")


def make_order(
    order_id: str = "ORD-10001",
    status: OrderStatus = OrderStatus.CONFIRMED,
    items: Optional[list[str]] = None,
    customer_id: str = "CUST-900",
    total: float = 100.0,
    can_cancel: Optional[bool] = None,
    can_return: Optional[bool] = None,
    tracking_number: Optional[str] = None,
) -> Order:
    """Helper to create an Order with flags that fit its status by default."""
    if can_cancel is None:
        can_cancel = status in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
    if can_return is None:
        can_return = status == OrderStatus.DELIVERED
    return Order(
        id=order_id,
        customer_id=customer_id,
        status=status,
        items=[OrderItem(name=name) for name in (items or ["Widget"])],
        total=total,
        can_cancel=can_cancel,
        can_return=can_return,
        tracking_number=tracking_number,
    )


def make_analysis(
    intent: Intent = Intent.GENERAL_INQUIRY,
    confidence: float = 0.3,
    order_ids: Optional[list[str]] = None,
    is_frustrated: bool = False,
) -> IntentAnalysis:
    """Helper to create an IntentAnalysis without running the NLP layer."""
    return IntentAnalysis(
        primary_intent=intent,
        confidence=confidence,
        entities=ExtractedEntities(order_ids=order_ids or []),
        is_frustrated=is_frustrated,
    )
