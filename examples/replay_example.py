"""
Replay demo: dry-run target orders against a day of recorded quotes.

Demonstrates: load CSV → TargetOrders → ReplayEngine (real TriggerEngine, paper
placement) → status history → summary report.
"""

from pathlib import Path
import logging

from replay import ReplayEngine, load_quotes_csv, print_report
from trigger_core import TargetOrder


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    csv_path = Path(__file__).resolve().parent / "data" / "sample_quotes.csv"
    quotes = load_quotes_csv(csv_path)

    orders = [
        TargetOrder.create("NSE_EQ|INE002A01018", "RELIANCE", 2930.0, 10, "BUY", "LIMIT", "trader@example.com"),
        TargetOrder.create("NSE_EQ|INE467B01029", "TCS", 4010.0, 5, "SELL", "MARKET", "trader@example.com"),
        TargetOrder.create("NSE_EQ|INE009A01021", "INFY", 1500.0, 20, "BUY", "MARKET", "trader@example.com"),
    ]

    result = ReplayEngine(orders).run(quotes)

    for ts, order_id, status in result.status_history:
        print(f"{ts:%H:%M:%S} {order_id[:8]} -> {status.value}")
    print_report(result)


if __name__ == "__main__":
    main()
