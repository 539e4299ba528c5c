"""
Gateway monitor: run the trigger engine against a brokerage gateway.

Configuration comes from TRIGGER_* / EMAIL_* environment variables, or from a YAML
file given as the first argument. Without TRIGGER_GATEWAY_URL the engine falls
back to paper collaborators. Real orders additionally require
TRIGGER_LIVE_TRADING_ENABLED=true.

    TRIGGER_GATEWAY_URL=http://localhost:8000 python examples/gateway_monitor.py
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from trigger_core import EngineConfig, InMemoryOrderStore, TargetOrder
from trigger_core.execution import TriggerEngine

logger = logging.getLogger("gateway_monitor")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = EngineConfig.from_yaml(sys.argv[1]) if len(sys.argv) > 1 else EngineConfig.from_env()

    store = InMemoryOrderStore()
    store.add_order(TargetOrder.create("NSE_EQ|INE002A01018", "RELIANCE", 2900.0, 1, "BUY", "LIMIT", "trader@example.com"))

    engine = TriggerEngine.from_config(config, store)
    done = threading.Event()

    def shutdown_handler(sig, frame):
        logger.info("Graceful shutdown initiated...")
        done.set()

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    engine.start()
    try:
        done.wait()
    finally:
        engine.close(timeout=config.request_timeout_seconds)
        for order in store.list_orders():
            logger.info("Order %s (%s): %s", order.id, order.symbol, order.status.value)


if __name__ == "__main__":
    main()
