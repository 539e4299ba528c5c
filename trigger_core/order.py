"""
TargetOrder: a conditional instruction ("when the instrument reaches the target
price, place this order").

Immutable. Status changes produce a new instance; the store holds the current one.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import TypeVar

from trigger_core.exceptions import InvalidStatusTransition, OrderValidationError


class TransactionType(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"


class TargetOrderStatus(Enum):
    """Lifecycle: PENDING -> TRIGGERED -> COMPLETED | FAILED. Never backward."""

    PENDING = "PENDING"
    TRIGGERED = "TRIGGERED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TargetOrderStatus.COMPLETED, TargetOrderStatus.FAILED)

    def can_transition_to(self, other: TargetOrderStatus) -> bool:
        return other in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[TargetOrderStatus, frozenset[TargetOrderStatus]] = {
    TargetOrderStatus.PENDING: frozenset({TargetOrderStatus.TRIGGERED}),
    TargetOrderStatus.TRIGGERED: frozenset({TargetOrderStatus.COMPLETED, TargetOrderStatus.FAILED}),
    TargetOrderStatus.COMPLETED: frozenset(),
    TargetOrderStatus.FAILED: frozenset(),
}

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: type[E], value: E | str, field_name: str) -> E:
    """Accept an enum member or its (case-insensitive) string value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_cls)
    raise OrderValidationError(f"{field_name} must be one of {allowed}, got {value!r}")


@dataclass(frozen=True)
class TargetOrder:
    """A target order as held by the store. Only ``status`` ever changes."""

    id: str
    instrument_token: str
    symbol: str
    target_price: float
    quantity: int
    transaction_type: TransactionType
    order_type: OrderType = OrderType.MARKET
    status: TargetOrderStatus = TargetOrderStatus.PENDING
    recipient: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(
        cls,
        instrument_token: str,
        symbol: str,
        target_price: float,
        quantity: int,
        transaction_type: TransactionType | str,
        order_type: OrderType | str = OrderType.MARKET,
        recipient: str = "",
        *,
        created_at: datetime | None = None,
    ) -> TargetOrder:
        """
        Build a new PENDING order with a fresh id.

        Raises OrderValidationError on an empty instrument token, a non-positive
        target price, or a quantity that is not a positive integer.
        """
        if not instrument_token or not str(instrument_token).strip():
            raise OrderValidationError("instrument_token is required")
        if isinstance(target_price, bool):
            raise OrderValidationError("target_price must be a number")
        try:
            price = float(target_price)
        except (TypeError, ValueError) as e:
            raise OrderValidationError(f"target_price must be a number, got {target_price!r}") from e
        if not price > 0:
            raise OrderValidationError(f"target_price must be positive, got {target_price!r}")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise OrderValidationError(f"quantity must be a positive integer, got {quantity!r}")
        return cls(
            id=uuid.uuid4().hex,
            instrument_token=str(instrument_token).strip(),
            symbol=symbol or str(instrument_token).strip(),
            target_price=price,
            quantity=quantity,
            transaction_type=coerce_enum(TransactionType, transaction_type, "transaction_type"),
            order_type=coerce_enum(OrderType, order_type, "order_type"),
            status=TargetOrderStatus.PENDING,
            recipient=recipient,
            created_at=created_at or datetime.now(),
        )

    @property
    def execution_price(self) -> float | None:
        """Price sent with the placed order: target price for LIMIT, none for MARKET."""
        if self.order_type == OrderType.LIMIT:
            return self.target_price
        return None

    def with_status(self, status: TargetOrderStatus) -> TargetOrder:
        """Copy with a new status. Only forward lifecycle moves are allowed."""
        if not self.status.can_transition_to(status):
            raise InvalidStatusTransition(self.id, self.status, status)
        return replace(self, status=status)
