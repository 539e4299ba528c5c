"""
trigger-core: target-order trigger engine.

Watches latest quotes, fires conditional (target-price) orders exactly once,
records their status and notifies the user. Collaborators (store, quote feed,
placement, notifier) are injected; no global state.
"""

__version__ = "0.1.0"

from trigger_core.order import OrderType, TargetOrder, TargetOrderStatus, TransactionType
from trigger_core.quote import Quote
from trigger_core.conditions import evaluate, should_trigger
from trigger_core.store import InMemoryOrderStore, OrderStore
from trigger_core.scheduler import Ticker
from trigger_core.config import EngineConfig

__all__ = [
    "TargetOrder",
    "TargetOrderStatus",
    "TransactionType",
    "OrderType",
    "Quote",
    "should_trigger",
    "evaluate",
    "OrderStore",
    "InMemoryOrderStore",
    "Ticker",
    "EngineConfig",
]
