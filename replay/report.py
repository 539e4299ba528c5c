"""
Replay report: print a summary of a ReplayResult.
"""

from __future__ import annotations

from trigger_core.order import TargetOrderStatus

from replay.engine import ReplayResult


def print_report(result: ReplayResult) -> dict[TargetOrderStatus, int]:
    """
    Print final status per order and counts by status.

    Returns
    -------
    dict
        TargetOrderStatus -> number of orders ending in it.
    """
    counts = {status: 0 for status in TargetOrderStatus}
    for order in result.orders:
        counts[order.status] += 1
    print("--- Replay Summary ---")
    print(f"Ticks:           {result.ticks}")
    print(f"Orders:          {len(result.orders)}")
    for status, n in counts.items():
        print(f"{status.value + ':':<17}{n}")
    for outcome in result.outcomes:
        o = outcome.order
        print(
            f"  {o.symbol} {o.transaction_type.value} x{o.quantity} target={o.target_price} "
            f"triggered@{outcome.trigger_price} -> {o.status.value}"
        )
    print("----------------------")
    return counts
