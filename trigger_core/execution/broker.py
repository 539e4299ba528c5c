"""
Collaborator interfaces consumed by the trigger engine.

PlacementAdapter places the real order, QuoteFeed supplies latest quotes,
Notifier delivers outcome messages. Paper implementations live in paper.py,
HTTP gateway implementations in live.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from trigger_core.quote import Quote

from trigger_core.execution.types import DeliveryResult, PlacementRequest, PlacementResult


class PlacementAdapter(ABC):
    """
    Abstract order-placement collaborator. Same interface for paper and gateway.
    The engine calls place_order at most once per triggered order.
    """

    @abstractmethod
    def place_order(self, request: PlacementRequest) -> PlacementResult:
        """
        Place an order. Returns ACCEPTED with the broker order id, or REJECTED
        with a reason. Implementations should not raise for broker-side errors.
        """
        ...


class QuoteFeed(ABC):
    """Pull-based source of the latest quote per instrument."""

    @abstractmethod
    def get_latest_quotes(self) -> dict[str, Quote]:
        """Return instrument_token -> latest Quote. Missing instruments are omitted."""
        ...


class Notifier(ABC):
    """Outcome notification collaborator. Fire-and-forget from the engine's side."""

    channel_type: str = "email"

    @abstractmethod
    def notify(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        """Deliver one message. Report failure in the result rather than raising."""
        ...
