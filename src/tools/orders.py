"""
Order eligibility rules and mock order data.

In production the snapshot comes from the order service (Shopify,
a custom OMS, ...) on every request; here the demo customers live in a
module-level dict that can be reset between tests.
"""

import logging
from typing import Optional, Sequence

from src.schemas.analysis_schema import Intent
from src.schemas.order_schema import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

_NOT_CANCELLABLE = (
    OrderStatus.CANCELLED, OrderStatus.DELIVERED,
    OrderStatus.RETURN_REQUESTED, OrderStatus.RETURNED,
)
_NOT_TRACKABLE = (OrderStatus.CANCELLED, OrderStatus.RETURNED)


def can_cancel(order: Order) -> bool:
    return order.can_cancel and order.status not in _NOT_CANCELLABLE


def can_return(order: Order) -> bool:
    return order.status == OrderStatus.DELIVERED and order.can_return


def can_track(order: Order) -> bool:
    return order.status not in _NOT_TRACKABLE


_ELIGIBILITY = {
    Intent.CANCEL_ORDER: can_cancel,
    Intent.RETURN_ORDER: can_return,
    Intent.TRACK_ORDER: can_track,
}


def is_eligible(order: Order, intent: Intent) -> bool:
    """Whether the order's current state permits ``intent``."""
    check = _ELIGIBILITY.get(intent)
    return check is not None and check(order)


def eligible_orders(orders: Sequence[Order], intent: Intent) -> list[Order]:
    return [o for o in orders if is_eligible(o, intent)]


def find_order(orders: Sequence[Order], order_id: str) -> Optional[Order]:
    wanted = order_id.upper()
    for order in orders:
        if order.id.upper() == wanted:
            return order
    return None


def alternative_intent(order: Order, intent: Intent) -> Optional[Intent]:
    """Suggest what the customer can do instead when ``intent`` is not permitted."""
    if intent == Intent.CANCEL_ORDER and can_return(order):
        return Intent.RETURN_ORDER
    if intent == Intent.RETURN_ORDER and can_cancel(order):
        return Intent.CANCEL_ORDER
    if intent in (Intent.CANCEL_ORDER, Intent.RETURN_ORDER) and can_track(order):
        return Intent.TRACK_ORDER
    return None


# ------------------------------------------------------------------ #
# Mock order store
# ------------------------------------------------------------------ #

def _demo_orders() -> dict[str, list[Order]]:
    return {
        "CUST-001": [
            Order(
                id="ORD-12345", customer_id="CUST-001", status=OrderStatus.CONFIRMED,
                items=[OrderItem(name="iPhone 15 Pro", variant="256GB Natural Titanium")],
                total=1199.00, can_cancel=True,
                estimated_delivery="2025-03-20",
            ),
            Order(
                id="ORD-12346", customer_id="CUST-001", status=OrderStatus.SHIPPED,
                items=[OrderItem(name="MacBook Pro 14", variant="M3 Pro, 18GB")],
                total=1999.00, tracking_number="1Z999AA10123456784",
                estimated_delivery="2025-03-18",
            ),
            Order(
                id="ORD-12348", customer_id="CUST-001", status=OrderStatus.PROCESSING,
                items=[OrderItem(name="Apple Watch Ultra 2", variant="49mm")],
                total=799.00, can_cancel=True,
                estimated_delivery="2025-03-22",
            ),
        ],
        "CUST-002": [
            Order(
                id="ORD-12347", customer_id="CUST-002", status=OrderStatus.DELIVERED,
                items=[OrderItem(name="AirPods Pro 2nd Gen")],
                total=249.00, can_return=True,
                tracking_number="1Z999AA10123456799",
            ),
        ],
    }


_orders: dict[str, list[Order]] = _demo_orders()


def get_customer_orders(customer_id: str) -> list[Order]:
    """Return the live (mutable) order list for a customer."""
    return _orders.setdefault(customer_id, [])


def list_customers() -> list[str]:
    return sorted(_orders)


def reset() -> None:
    """Restore the mock store to its seeded state (for tests and demos)."""
    global _orders
    _orders = _demo_orders()
    logger.debug("Mock order store reset")
