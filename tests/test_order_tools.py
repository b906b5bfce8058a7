"""Tests for order eligibility rules, the mock order store and the message log."""

import pytest

from src.schemas.analysis_schema import Intent
from src.schemas.conversation_schema import ChatResponse, ResponseSource, Speaker
from src.schemas.order_schema import Order, OrderStatus
from src.tools import orders as order_store
from src.tools.message_log import InMemoryMessageLog
from src.tools.orders import (
    alternative_intent,
    can_cancel,
    can_return,
    can_track,
    eligible_orders,
    find_order,
    is_eligible,
)
from tests.conftest import make_order


class TestOrderModel:
    def test_delivered_cannot_be_cancelled(self):
        order = Order(
            id="ORD-1", customer_id="C", status=OrderStatus.DELIVERED,
            can_cancel=True, can_return=True,
        )
        assert order.can_cancel is False
        assert order.can_return is True

    def test_only_delivered_can_be_returned(self):
        order = Order(id="ORD-1", customer_id="C", status=OrderStatus.SHIPPED, can_return=True)
        assert order.can_return is False

    def test_describe(self):
        assert make_order("ORD-1", items=["Lamp", "Rug"]).describe() == "ORD-1 (Lamp, Rug)"
        assert Order(id="ORD-2", customer_id="C", status=OrderStatus.CONFIRMED).describe() == "ORD-2"


class TestEligibility:
    @pytest.mark.parametrize("status, expected", [
        (OrderStatus.CONFIRMED, True),
        (OrderStatus.PROCESSING, True),
        (OrderStatus.SHIPPED, False),
        (OrderStatus.DELIVERED, False),
        (OrderStatus.CANCELLED, False),
    ])
    def test_can_cancel(self, status, expected):
        order = make_order(status=status, can_cancel=status != OrderStatus.SHIPPED)
        assert can_cancel(order) is expected

    def test_cancel_flag_respected(self):
        assert can_cancel(make_order(status=OrderStatus.CONFIRMED, can_cancel=False)) is False

    def test_can_return(self):
        assert can_return(make_order(status=OrderStatus.DELIVERED))
        assert not can_return(make_order(status=OrderStatus.DELIVERED, can_return=False))

    def test_can_track(self):
        assert can_track(make_order(status=OrderStatus.SHIPPED))
        assert not can_track(make_order(status=OrderStatus.CANCELLED))

    def test_undo_is_never_an_order_eligibility(self):
        assert not is_eligible(make_order(), Intent.UNDO_ACTION)

    def test_eligible_orders_keeps_order(self):
        orders = [
            make_order("ORD-1"),
            make_order("ORD-2", OrderStatus.SHIPPED),
            make_order("ORD-3", OrderStatus.PROCESSING),
        ]
        assert [o.id for o in eligible_orders(orders, Intent.CANCEL_ORDER)] == ["ORD-1", "ORD-3"]

    def test_find_order_case_insensitive(self):
        orders = [make_order("ORD-ABC12")]
        assert find_order(orders, "ord-abc12") is orders[0]
        assert find_order(orders, "ORD-00000") is None

    def test_alternative_intent(self):
        delivered = make_order(status=OrderStatus.DELIVERED)
        shipped = make_order(status=OrderStatus.SHIPPED)
        returned = make_order(status=OrderStatus.RETURNED)
        assert alternative_intent(delivered, Intent.CANCEL_ORDER) == Intent.RETURN_ORDER
        assert alternative_intent(make_order(), Intent.RETURN_ORDER) == Intent.CANCEL_ORDER
        assert alternative_intent(shipped, Intent.RETURN_ORDER) == Intent.TRACK_ORDER
        assert alternative_intent(returned, Intent.CANCEL_ORDER) is None


class TestMockOrderStore:
    def test_demo_customers(self):
        assert order_store.list_customers() == ["CUST-001", "CUST-002"]
        assert len(order_store.get_customer_orders("CUST-001")) == 3

    def test_orders_are_live_objects(self):
        order_store.get_customer_orders("CUST-001")[0].status = OrderStatus.CANCELLED
        assert order_store.get_customer_orders("CUST-001")[0].status == OrderStatus.CANCELLED

    def test_reset_restores_seed(self):
        order_store.get_customer_orders("CUST-001")[0].status = OrderStatus.CANCELLED
        order_store.reset()
        assert order_store.get_customer_orders("CUST-001")[0].status == OrderStatus.CONFIRMED

    def test_unknown_customer_has_no_orders(self):
        assert order_store.get_customer_orders("CUST-404") == []


class TestMessageLog:
    def test_transcript_in_order(self):
        log = InMemoryMessageLog()
        log.log_customer_message("s1", "CUST-001", "where is my order")
        log.log_response("s1", "CUST-001", ChatResponse(
            message="It has shipped.", intent="TRACK_ORDER", success=True,
        ))
        turns = log.get_transcript("s1")
        assert [t.speaker for t in turns] == [Speaker.USER, Speaker.AGENT]
        assert turns[1].intent == "TRACK_ORDER"
        assert turns[1].source == ResponseSource.LOCAL

    def test_sessions_kept_apart(self):
        log = InMemoryMessageLog()
        log.log_customer_message("s1", "CUST-001", "hi")
        log.log_customer_message("s2", "CUST-002", "hello")
        assert len(log.get_transcript("s1")) == 1
        assert log.get_transcript("missing") == []

    def test_limit(self):
        log = InMemoryMessageLog()
        for i in range(5):
            log.log_customer_message("s1", "CUST-001", f"m{i}")
        assert [t.text for t in log.get_transcript("s1", limit=2)] == ["m3", "m4"]

    def test_clear(self):
        log = InMemoryMessageLog()
        log.log_customer_message("s1", "CUST-001", "hi")
        log.clear()
        assert log.get_transcript("s1") == []
