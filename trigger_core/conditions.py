"""
Condition evaluator: decides whether a target order has triggered.

Pure functions, no side effects. BUY orders trigger at or below the target
price, SELL orders at or above it. Comparison is exact and boundary inclusive.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from trigger_core.order import TargetOrder, TargetOrderStatus, TransactionType
from trigger_core.quote import Quote


def should_trigger(order: TargetOrder, current_price: float) -> bool:
    """True when current_price satisfies the order's trigger direction."""
    if order.transaction_type == TransactionType.BUY:
        return current_price <= order.target_price
    return current_price >= order.target_price


def evaluate(order: TargetOrder, quotes: Mapping[str, Quote]) -> bool:
    """
    Evaluate one order against a quote snapshot.

    Orders that are not PENDING, or whose instrument has no quote yet, are not
    evaluable and return False.
    """
    if order.status != TargetOrderStatus.PENDING:
        return False
    quote = quotes.get(order.instrument_token)
    if quote is None:
        return False
    return should_trigger(order, quote.last_price)


def pending_triggered(
    orders: Iterable[TargetOrder],
    quotes: Mapping[str, Quote],
) -> list[TargetOrder]:
    """PENDING orders that trigger against this snapshot, in the given order."""
    return [o for o in orders if evaluate(o, quotes)]
