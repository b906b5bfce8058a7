"""Tests for LLM prompt construction."""

from src.prompts.prompt_templates import build_frustrated_prompt, build_general_prompt
from src.schemas.analysis_schema import Intent
from src.schemas.conversation_schema import Speaker
from src.schemas.order_schema import OrderStatus
from src.schemas.session_schema import SessionMessage
from tests.conftest import make_analysis, make_order


class TestFrustratedPrompt:
    def test_contains_message_and_intent(self):
        analysis = make_analysis(Intent.TRACK_ORDER, 0.2, is_frustrated=True)
        prompt = build_frustrated_prompt("Where is my stuff?!", analysis)
        assert "Customer message: Where is my stuff?!" in prompt
        assert "TRACK_ORDER" in prompt

    def test_mentions_order_ids(self):
        analysis = make_analysis(order_ids=["ORD-12345"], is_frustrated=True)
        prompt = build_frustrated_prompt("ORD-12345 is late!!", analysis)
        assert "Order numbers mentioned: ORD-12345" in prompt

    def test_same_message_same_prompt(self):
        analysis = make_analysis(is_frustrated=True)
        assert build_frustrated_prompt("ugh", analysis) == build_frustrated_prompt("ugh", analysis)


class TestGeneralPrompt:
    def test_includes_orders_and_history(self):
        orders = [make_order("ORD-1", OrderStatus.SHIPPED, items=["Lamp"])]
        history = [
            SessionMessage(text="hi", speaker=Speaker.USER),
            SessionMessage(text="Hello! How can I help?", speaker=Speaker.AGENT),
        ]
        prompt = build_general_prompt("do you ship abroad", make_analysis(), orders, history)
        assert "ORD-1 (Lamp): shipped" in prompt
        assert "user: hi" in prompt
        assert "agent: Hello! How can I help?" in prompt

    def test_without_orders_or_history(self):
        prompt = build_general_prompt("hello", make_analysis(), [], [])
        assert "Customer's orders" not in prompt
        assert "Recent conversation" not in prompt
        assert prompt.endswith("Write your reply:")
