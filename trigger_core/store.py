"""
Order store: the engine's only view of target orders and latest quotes.

OrderStore is the interface the engine consumes. InMemoryOrderStore is the
working-set implementation: one lock around every mutation, snapshots on read,
and compare-and-swap status updates so concurrent passes cannot both claim an order.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from trigger_core.exceptions import (
    InvalidStatusTransition,
    OrderNotFoundError,
    StaleStatusError,
    StoreError,
)
from trigger_core.order import TargetOrder, TargetOrderStatus
from trigger_core.quote import Quote

logger = logging.getLogger(__name__)


class OrderStore(ABC):
    """
    Abstract order store. Writes must be visible to the next read in the same
    process (read-your-writes).
    """

    @abstractmethod
    def list_orders(self) -> list[TargetOrder]:
        """Return a snapshot of all orders, in insertion order."""
        ...

    @abstractmethod
    def get_order(self, order_id: str) -> TargetOrder | None:
        """Return the current version of one order, or None."""
        ...

    @abstractmethod
    def update_order_status(
        self,
        order_id: str,
        new_status: TargetOrderStatus,
        *,
        expected: TargetOrderStatus | None = None,
    ) -> TargetOrder:
        """
        Move an order to new_status and return the updated order.

        With ``expected`` set this is a compare-and-swap: StaleStatusError is raised
        unless the current status equals ``expected``. Backward or skipping moves
        raise InvalidStatusTransition; unknown ids raise OrderNotFoundError.
        """
        ...

    @abstractmethod
    def get_quotes(self) -> dict[str, Quote]:
        """Return a snapshot of the latest quote per instrument."""
        ...

    @abstractmethod
    def set_quotes(self, quotes: Mapping[str, Quote]) -> None:
        """Merge quotes into the snapshot (latest per instrument)."""
        ...


class InMemoryOrderStore(OrderStore):
    """
    In-process store. Holds orders and quotes in memory; nothing survives a restart.
    add_order/remove_order are the external creation and cancel flows.
    """

    def __init__(
        self,
        orders: Iterable[TargetOrder] = (),
        quotes: Mapping[str, Quote] | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._orders: dict[str, TargetOrder] = {}
        self._quotes: dict[str, Quote] = dict(quotes or {})
        for order in orders:
            self.add_order(order)

    def add_order(self, order: TargetOrder) -> TargetOrder:
        """Register a new PENDING order."""
        if order.status != TargetOrderStatus.PENDING:
            raise StoreError(f"New orders must be PENDING, got {order.status.value}")
        with self._lock:
            if order.id in self._orders:
                raise StoreError(f"Duplicate order id {order.id}")
            self._orders[order.id] = order
        logger.info(
            "Target order added: id=%s %s %s x%s @ %s",
            order.id,
            order.transaction_type.value,
            order.symbol,
            order.quantity,
            order.target_price,
        )
        return order

    def remove_order(self, order_id: str) -> TargetOrder:
        """Cancel a PENDING order. Orders already TRIGGERED cannot be cancelled."""
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(f"Unknown order id {order_id}")
            if order.status != TargetOrderStatus.PENDING:
                raise InvalidStatusTransition(order_id, order.status, "REMOVED")
            del self._orders[order_id]
        logger.info("Target order removed: id=%s", order_id)
        return order

    def list_orders(self) -> list[TargetOrder]:
        with self._lock:
            return list(self._orders.values())

    def get_order(self, order_id: str) -> TargetOrder | None:
        with self._lock:
            return self._orders.get(order_id)

    def update_order_status(
        self,
        order_id: str,
        new_status: TargetOrderStatus,
        *,
        expected: TargetOrderStatus | None = None,
    ) -> TargetOrder:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(f"Unknown order id {order_id}")
            if expected is not None and order.status != expected:
                raise StaleStatusError(order_id, expected, order.status)
            updated = order.with_status(new_status)
            self._orders[order_id] = updated
        logger.debug("Order %s status %s -> %s", order_id, order.status.value, new_status.value)
        return updated

    def get_quotes(self) -> dict[str, Quote]:
        with self._lock:
            return dict(self._quotes)

    def set_quotes(self, quotes: Mapping[str, Quote]) -> None:
        with self._lock:
            self._quotes.update(quotes)

    def clear_quotes(self) -> None:
        """Drop all quotes (e.g. between replay runs)."""
        with self._lock:
            self._quotes.clear()
