"""
Paper collaborators: simulate placement, quotes and notifications in-process.

No broker connection and no network. Placement accepts every order unless told
otherwise; quotes come from a provided source (dict of instrument -> price, or a
DataFrame provider); notifications are logged and recorded.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from collections.abc import Callable, Iterable
from datetime import datetime

import pandas as pd

from trigger_core.quote import Quote, quotes_from_dataframe

from trigger_core.execution.broker import Notifier, PlacementAdapter, QuoteFeed
from trigger_core.execution.notifications import mask_recipient
from trigger_core.execution.types import (
    DeliveryResult,
    PlacementRequest,
    PlacementResult,
    PlacementStatusKind,
)

logger = logging.getLogger(__name__)


class PaperPlacementAdapter(PlacementAdapter):
    """
    Paper placement. Accepts orders and assigns a paper order id.
    Rejects orders for instruments in ``reject_instruments``, and the next N
    orders after fail_next() calls (for demos and failure drills).
    """

    def __init__(self, *, reject_instruments: Iterable[str] = ()) -> None:
        self._reject_instruments = set(reject_instruments)
        self._queued_failures: deque[str] = deque()
        self._order_log: list[tuple[PlacementRequest, PlacementResult]] = []

    def fail_next(self, message: str = "Simulated rejection") -> None:
        """Reject the next placement with ``message``."""
        self._queued_failures.append(message)

    def place_order(self, request: PlacementRequest) -> PlacementResult:
        if self._queued_failures:
            result = self._reject(self._queued_failures.popleft())
        elif request.instrument_token in self._reject_instruments:
            result = self._reject(f"Instrument {request.instrument_token} not tradable (paper)")
        else:
            result = PlacementResult(
                status=PlacementStatusKind.ACCEPTED,
                order_id=f"paper-{uuid.uuid4().hex[:12]}",
                timestamp=datetime.now(),
            )
            logger.info(
                "Paper order accepted: %s %s x%s %s price=%s id=%s",
                request.transaction_type.value,
                request.instrument_token,
                request.quantity,
                request.order_type.value,
                request.price,
                result.order_id,
            )
        self._order_log.append((request, result))
        return result

    def _reject(self, message: str) -> PlacementResult:
        logger.warning("Paper order rejected: %s", message)
        return PlacementResult(
            status=PlacementStatusKind.REJECTED,
            message=message,
            timestamp=datetime.now(),
        )

    def get_order_log(self) -> list[tuple[PlacementRequest, PlacementResult]]:
        """Return all placement requests and their results."""
        return list(self._order_log)


class FrameQuoteFeed(QuoteFeed):
    """
    Quote feed backed by a DataFrame provider or a mutable dict of prices.
    Pass market_data_source(() -> DataFrame), or latest_prices (instrument -> price).
    """

    def __init__(
        self,
        *,
        market_data_source: Callable[[], pd.DataFrame] | None = None,
        latest_prices: dict[str, float] | None = None,
    ) -> None:
        if market_data_source is None and latest_prices is None:
            raise ValueError("FrameQuoteFeed needs market_data_source or latest_prices")
        self._market_data_source = market_data_source
        self._latest_prices = latest_prices

    def get_latest_quotes(self) -> dict[str, Quote]:
        if self._market_data_source is not None:
            return quotes_from_dataframe(self._market_data_source())
        now = datetime.now()
        return {
            token: Quote(instrument_token=token, last_price=price, timestamp=now)
            for token, price in (self._latest_prices or {}).items()
        }


class LoggingNotifier(Notifier):
    """Logs each message (recipient masked) and keeps a delivery log."""

    def __init__(self, *, fail: bool = False) -> None:
        self._fail = fail
        self._deliveries: list[tuple[str, str, str]] = []

    def notify(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        self._deliveries.append((recipient, subject, body))
        if self._fail:
            logger.warning("Notification to %s not delivered (paper failure)", mask_recipient(recipient))
            return DeliveryResult(success=False, error="Simulated delivery failure")
        logger.info("Notification to %s: %s", mask_recipient(recipient), subject)
        return DeliveryResult(success=True, message_id=f"log-{uuid.uuid4().hex[:8]}")

    def get_deliveries(self) -> list[tuple[str, str, str]]:
        """Return (recipient, subject, body) for every notify() call."""
        return list(self._deliveries)
