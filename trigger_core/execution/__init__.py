"""
Execution layer: collaborator interfaces, paper and gateway adapters, trigger engine.

PlacementAdapter / QuoteFeed / Notifier interfaces; paper adapters for dry runs;
HTTP gateway adapters for live use. TriggerEngine runs the evaluation pass.
"""

from trigger_core.execution.broker import Notifier, PlacementAdapter, QuoteFeed
from trigger_core.execution.paper import FrameQuoteFeed, LoggingNotifier, PaperPlacementAdapter
from trigger_core.execution.live import (
    EmailNotifier,
    GatewayNotifier,
    GatewayPlacementAdapter,
    GatewayQuoteFeed,
)
from trigger_core.execution.engine import TriggerEngine, TriggerObserver
from trigger_core.execution.types import (
    DeliveryResult,
    PlacementRequest,
    PlacementResult,
    PlacementStatusKind,
    TriggerOutcome,
)

__all__ = [
    "PlacementAdapter",
    "QuoteFeed",
    "Notifier",
    "PaperPlacementAdapter",
    "FrameQuoteFeed",
    "LoggingNotifier",
    "GatewayPlacementAdapter",
    "GatewayQuoteFeed",
    "GatewayNotifier",
    "EmailNotifier",
    "TriggerEngine",
    "TriggerObserver",
    "PlacementRequest",
    "PlacementResult",
    "PlacementStatusKind",
    "DeliveryResult",
    "TriggerOutcome",
]
