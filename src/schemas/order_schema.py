"""Order snapshot models and the action requests emitted for them."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class OrderStatus(str, Enum):
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURN_REQUESTED = "return_requested"
    RETURNED = "returned"


class ActionType(str, Enum):
    CANCEL_ORDER = "CANCEL_ORDER"
    RETURN_ORDER = "RETURN_ORDER"
    TRACK_ORDER = "TRACK_ORDER"
    UNDO_CANCEL = "UNDO_CANCEL"
    UNDO_RETURN = "UNDO_RETURN"


class OrderItem(BaseModel):
    """A single line item on an order."""

    name: str
    variant: Optional[str] = None
    quantity: int = 1


class Order(BaseModel):
    """
    Order as handed in by the caller's order repository.

    The core only flips ``status``, ``can_cancel`` and ``can_return`` on
    the instance it was given; persisting the change is the caller's job.
    """

    id: str
    customer_id: str
    status: OrderStatus
    items: list[OrderItem] = Field(default_factory=list)
    total: float = 0.0
    can_cancel: bool = False
    can_return: bool = False
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[str] = None

    @model_validator(mode="after")
    def _enforce_status_flags(self) -> "Order":
        if self.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            self.can_cancel = False
        if self.status != OrderStatus.DELIVERED:
            self.can_return = False
        return self

    @property
    def item_names(self) -> list[str]:
        return [item.name for item in self.items]

    def describe(self) -> str:
        """Short human-readable label, e.g. 'ORD-12345 (iPhone 15 Pro)'."""
        if not self.items:
            return self.id
        return f"{self.id} ({', '.join(self.item_names)})"


class Action(BaseModel):
    """External command the caller applies to its order store."""

    type: ActionType
    order_id: str
