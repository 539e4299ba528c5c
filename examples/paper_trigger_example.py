"""
Paper trigger example: run the trigger engine tick by tick with paper collaborators.

Shows: InMemoryOrderStore, FrameQuoteFeed driven by a mutable price dict,
PaperPlacementAdapter, LoggingNotifier, an observer, and a forced rejection.
"""

from __future__ import annotations

import logging

from trigger_core import InMemoryOrderStore, TargetOrder
from trigger_core.execution import (
    FrameQuoteFeed,
    LoggingNotifier,
    PaperPlacementAdapter,
    TriggerEngine,
    TriggerOutcome,
)


def print_outcome_observer(outcome: TriggerOutcome) -> None:
    """Observer: post-execution log (e.g. journal, metrics)."""
    o = outcome.order
    print(f"  [Observer] {o.symbol} {o.transaction_type.value} x{o.quantity} @ {outcome.trigger_price} -> {o.status.value}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    latest_prices: dict[str, float] = {"INFY": 1520.0, "TCS": 3990.0}
    store = InMemoryOrderStore()
    buy = store.add_order(TargetOrder.create("INFY", "INFY", 1500.0, 10, "BUY", "LIMIT", "trader@example.com"))
    sell = store.add_order(TargetOrder.create("TCS", "TCS", 4000.0, 2, "SELL", "MARKET", "+919800000000"))

    placement = PaperPlacementAdapter()
    notifier = LoggingNotifier()
    engine = TriggerEngine(
        store,
        placement,
        notifier,
        quote_feed=FrameQuoteFeed(latest_prices=latest_prices),
        observers=[print_outcome_observer],
    )

    print("--- Tick 1: no condition met ---")
    engine.tick()

    print("\n--- Tick 2: INFY falls to 1500 (BUY target, boundary) ---")
    latest_prices["INFY"] = 1500.0
    engine.tick()

    print("\n--- Tick 3: TCS rises to 4005, broker rejects ---")
    latest_prices["TCS"] = 4005.0
    placement.fail_next("Insufficient margin (paper)")
    engine.tick()

    print("\n--- Tick 4: nothing left PENDING ---")
    engine.tick()

    print("\n--- Final state ---")
    for order in store.list_orders():
        print(f"  {order.symbol}: {order.status.value}")
    for request, result in placement.get_order_log():
        print(f"  Placement: {request.instrument_token} {request.transaction_type.value} -> {result.status.value}")
    for recipient, subject, _ in notifier.get_deliveries():
        print(f"  Notified {recipient}: {subject}")
    assert store.get_order(buy.id).status.value == "COMPLETED"
    assert store.get_order(sell.id).status.value == "FAILED"


if __name__ == "__main__":
    main()
