"""
Execution-layer types: placement request/result, delivery result, trigger outcome.

Collaborators report failure through these results instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from trigger_core.order import OrderType, TargetOrder, TargetOrderStatus, TransactionType


class PlacementStatusKind(Enum):
    """Result of handing an order to the placement collaborator."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PlacementRequest:
    """The real order to place once a target order triggers."""

    instrument_token: str
    quantity: int
    transaction_type: TransactionType
    order_type: OrderType
    price: float | None = None
    target_order_id: str | None = None

    @classmethod
    def from_target_order(cls, order: TargetOrder) -> PlacementRequest:
        """LIMIT orders carry the target price; MARKET orders carry no price."""
        return cls(
            instrument_token=order.instrument_token,
            quantity=order.quantity,
            transaction_type=order.transaction_type,
            order_type=order.order_type,
            price=order.execution_price,
            target_order_id=order.id,
        )


@dataclass(frozen=True)
class PlacementResult:
    """Result of a placement attempt. Immutable."""

    status: PlacementStatusKind
    order_id: str | None = None
    message: str | None = None
    timestamp: datetime | None = None

    @property
    def accepted(self) -> bool:
        return self.status == PlacementStatusKind.ACCEPTED


@dataclass(frozen=True)
class DeliveryResult:
    """Result of a notification attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TriggerOutcome:
    """What happened to one triggered order during a pass."""

    order: TargetOrder
    trigger_price: float
    placement: PlacementResult | None
    notification: DeliveryResult | None
    timestamp: datetime
    error: str | None = None

    @property
    def status(self) -> TargetOrderStatus:
        return self.order.status
