"""
Trigger engine: evaluate pending target orders against latest quotes and execute
the ones that trigger, exactly once.

Flow per pass: refresh quotes from the feed → read orders + quotes once → for each
PENDING order that triggers: claim (PENDING → TRIGGERED, compare-and-swap) →
place order → COMPLETED or FAILED → notify → observers.
The claim is written before any downstream call, so a crash or slow call can never
let a later pass place the same order again.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from trigger_core.conditions import pending_triggered
from trigger_core.config import STUCK_ORDER_POLICIES, EngineConfig
from trigger_core.exceptions import ConfigurationError, InvalidStatusTransition, StaleStatusError, StoreError
from trigger_core.order import TargetOrder, TargetOrderStatus
from trigger_core.scheduler import DEFAULT_INTERVAL_SECONDS, Ticker
from trigger_core.store import OrderStore

from trigger_core.execution.broker import Notifier, PlacementAdapter, QuoteFeed
from trigger_core.execution.notifications import failure_message, mask_recipient, stuck_message, success_message
from trigger_core.execution.types import (
    DeliveryResult,
    PlacementRequest,
    PlacementResult,
    PlacementStatusKind,
    TriggerOutcome,
)

logger = logging.getLogger(__name__)


class TriggerObserver(Protocol):
    """Post-execution callback (e.g. journal, metrics). Receives every outcome."""

    def __call__(self, outcome: TriggerOutcome) -> None:
        ...


class TriggerEngine:
    """
    Monitors target orders held by an OrderStore and executes them through the
    injected collaborators. Construct once at startup and pass it around; there is
    no module-level instance.

    Drive it with start()/stop() (background Ticker) or call run_once() directly.
    """

    def __init__(
        self,
        store: OrderStore,
        placement: PlacementAdapter,
        notifier: Notifier,
        *,
        quote_feed: QuoteFeed | None = None,
        observers: Sequence[TriggerObserver] = (),
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        stuck_order_policy: str = "fail",
    ) -> None:
        if stuck_order_policy not in STUCK_ORDER_POLICIES:
            raise ConfigurationError(f"Unknown stuck_order_policy {stuck_order_policy!r}")
        self.store = store
        self.placement = placement
        self.notifier = notifier
        self.quote_feed = quote_feed
        self.observers: list[TriggerObserver] = list(observers)
        self.stuck_order_policy = stuck_order_policy
        self.ticker = Ticker(self.run_once, interval_seconds, name="target-order-monitor")
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()
        self._outcome_log: list[TriggerOutcome] = []

    @classmethod
    def from_config(cls, config: EngineConfig, store: OrderStore) -> TriggerEngine:
        """
        Wire collaborators from config: gateway adapters when gateway_url is set
        (SMTP mail if configured, else gateway notifications), paper ones otherwise.
        """
        from trigger_core.execution.live import (
            EmailNotifier,
            GatewayNotifier,
            GatewayPlacementAdapter,
            GatewayQuoteFeed,
        )
        from trigger_core.execution.paper import LoggingNotifier, PaperPlacementAdapter

        placement: PlacementAdapter
        notifier: Notifier
        quote_feed: QuoteFeed | None = None
        if config.gateway_url:
            placement = GatewayPlacementAdapter(
                config.gateway_url,
                token=config.gateway_token,
                timeout=config.request_timeout_seconds,
                live_trading=config.live_trading,
            )

            def pending_instruments() -> set[str]:
                return {o.instrument_token for o in store.list_orders() if o.status == TargetOrderStatus.PENDING}

            quote_feed = GatewayQuoteFeed(
                config.gateway_url,
                pending_instruments,
                token=config.gateway_token,
                timeout=config.request_timeout_seconds,
            )
            if config.smtp_configured:
                notifier = EmailNotifier(
                    config.smtp_host,
                    config.smtp_username,
                    config.smtp_password,
                    port=config.smtp_port,
                    timeout=config.request_timeout_seconds,
                )
            else:
                notifier = GatewayNotifier(
                    config.gateway_url,
                    token=config.gateway_token,
                    timeout=config.request_timeout_seconds,
                )
        else:
            logger.info("No gateway configured; using paper placement and logging notifier")
            placement = PaperPlacementAdapter()
            notifier = LoggingNotifier()
        return cls(
            store,
            placement,
            notifier,
            quote_feed=quote_feed,
            interval_seconds=config.check_interval_seconds,
            stuck_order_policy=config.stuck_order_policy,
        )

    # --- Lifecycle ---

    @property
    def running(self) -> bool:
        return self.ticker.running

    def start(self) -> None:
        """Resolve stuck orders once, then start periodic passes. No-op if running."""
        if self.ticker.running:
            return
        try:
            self.recover_stuck_orders()
        except StoreError:
            logger.exception("Stuck-order recovery failed; starting monitor anyway")
        self.ticker.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop future passes. A pass already running is allowed to finish."""
        self.ticker.stop(timeout)

    def close(self, timeout: float | None = None) -> None:
        """Stop the monitor and release collaborators that hold connections (HTTP clients)."""
        self.stop(timeout)
        for collaborator in (self.placement, self.quote_feed, self.notifier):
            close = getattr(collaborator, "close", None)
            if callable(close):
                close()

    def tick(self) -> bool:
        """Run one pass through the Ticker (skipped if a pass is in progress)."""
        return self.ticker.tick()

    def get_outcome_log(self) -> list[TriggerOutcome]:
        """Return every outcome produced by this engine, oldest first."""
        return list(self._outcome_log)

    # --- Evaluation pass ---

    def _refresh_quotes(self) -> None:
        if self.quote_feed is None:
            return
        try:
            quotes = self.quote_feed.get_latest_quotes()
        except Exception as e:  # noqa: BLE001
            logger.warning("Quote feed failed; evaluating last known quotes: %s", e)
            return
        if quotes:
            self.store.set_quotes(quotes)

    def run_once(self) -> list[TriggerOutcome]:
        """
        One pass: refresh quotes, take a single snapshot of orders and quotes,
        execute every PENDING order that triggers against it.
        Orders without a quote are skipped until a later pass. Store read errors
        propagate (the Ticker logs them and retries on the next tick).
        """
        self._refresh_quotes()
        orders = self.store.list_orders()
        quotes = self.store.get_quotes()

        outcomes: list[TriggerOutcome] = []
        for order in pending_triggered(orders, quotes):
            outcome = self.execute(order, quotes[order.instrument_token].last_price)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    # --- Executor ---

    def execute(self, order: TargetOrder, trigger_price: float) -> TriggerOutcome | None:
        """
        Execute a triggered order. Returns None when the order could not be claimed
        (already claimed by another pass, or the store write failed); nothing
        downstream is called in that case.
        """
        with self._in_flight_lock:
            if order.id in self._in_flight:
                logger.debug("Order %s already executing; skipping", order.id)
                return None
            self._in_flight.add(order.id)
        try:
            return self._execute(order, trigger_price)
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(order.id)

    def _execute(self, order: TargetOrder, trigger_price: float) -> TriggerOutcome | None:
        try:
            claimed = self.store.update_order_status(
                order.id, TargetOrderStatus.TRIGGERED, expected=TargetOrderStatus.PENDING
            )
        except StaleStatusError as e:
            logger.info("Order %s not claimed: status is already %s", order.id, e.actual)
            return None
        except (StoreError, InvalidStatusTransition) as e:
            logger.error("Order %s not claimed: store write failed: %s", order.id, e)
            return None

        logger.info(
            "Target order triggered: id=%s %s %s x%s target=%s price=%s",
            claimed.id,
            claimed.transaction_type.value,
            claimed.symbol,
            claimed.quantity,
            claimed.target_price,
            trigger_price,
        )

        request = PlacementRequest.from_target_order(claimed)
        try:
            placement = self.placement.place_order(request)
        except Exception as e:  # noqa: BLE001
            logger.exception("Placement raised for order %s", claimed.id)
            placement = PlacementResult(
                status=PlacementStatusKind.REJECTED,
                message=f"Placement error: {e!s}",
                timestamp=datetime.now(),
            )

        if placement.accepted:
            final_status = TargetOrderStatus.COMPLETED
            subject, body = success_message(claimed, trigger_price)
        else:
            final_status = TargetOrderStatus.FAILED
            subject, body = failure_message(claimed, placement.message)
            logger.warning("Target order %s failed: %s", claimed.id, placement.message)

        error: str | None = None
        notify = True
        try:
            final = self.store.update_order_status(claimed.id, final_status, expected=TargetOrderStatus.TRIGGERED)
        except StaleStatusError as e:
            # Resolved elsewhere (e.g. another engine's recovery); that path notified the user.
            error = f"Could not record {final_status.value}: {e!s}"
            logger.error("Order %s was resolved elsewhere as %s: %s", claimed.id, e.actual, error)
            final = claimed.with_status(e.actual) if claimed.status.can_transition_to(e.actual) else claimed
            notify = False
        except (StoreError, InvalidStatusTransition) as e:
            error = f"Could not record {final_status.value}: {e!s}"
            logger.error("Order %s left TRIGGERED: %s", claimed.id, error)
            final = claimed
        else:
            logger.info("Target order %s %s (broker order id=%s)", final.id, final.status.value, placement.order_id)

        notification = self._notify(final, subject, body) if notify else None
        outcome = TriggerOutcome(
            order=final,
            trigger_price=trigger_price,
            placement=placement,
            notification=notification,
            timestamp=datetime.now(),
            error=error,
        )
        self._outcome_log.append(outcome)
        self._observe(outcome)
        return outcome

    def _notify(self, order: TargetOrder, subject: str, body: str) -> DeliveryResult | None:
        """Deliver an outcome message. Failures are logged and never change status."""
        if not order.recipient:
            logger.debug("Order %s has no recipient; notification skipped", order.id)
            return None
        try:
            result = self.notifier.notify(order.recipient, subject, body)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Notification for order %s to %s raised: %s",
                order.id,
                mask_recipient(order.recipient),
                e,
                exc_info=True,
            )
            return DeliveryResult(success=False, error=str(e))
        if not result.success:
            logger.warning(
                "Notification for order %s to %s not delivered: %s",
                order.id,
                mask_recipient(order.recipient),
                result.error,
            )
        return result

    def _observe(self, outcome: TriggerOutcome) -> None:
        for obs in self.observers:
            try:
                obs(outcome)
            except Exception:  # noqa: BLE001
                logger.exception("Observer failed for order %s", outcome.order.id)

    # --- Recovery ---

    def recover_stuck_orders(self, policy: str | None = None) -> list[TargetOrder]:
        """
        Handle orders left TRIGGERED with no execution in progress (e.g. the
        process died between claiming and recording the result).

        policy "fail": mark each FAILED and send a review notice; the order is never
        placed again. Returns the FAILED orders.
        policy "ignore": log and leave them. Returns the stuck orders untouched.
        """
        policy = policy or self.stuck_order_policy
        if policy not in STUCK_ORDER_POLICIES:
            raise ConfigurationError(f"Unknown stuck_order_policy {policy!r}")
        # Read orders before in-flight ids: an order is added to _in_flight before it
        # is claimed, so anything TRIGGERED here is either still in the set or done.
        orders = self.store.list_orders()
        with self._in_flight_lock:
            in_flight = set(self._in_flight)
        stuck = [o for o in orders if o.status == TargetOrderStatus.TRIGGERED and o.id not in in_flight]
        if not stuck:
            return []
        if policy == "ignore":
            for order in stuck:
                logger.warning("Order %s is stuck in TRIGGERED; leaving it (policy=ignore)", order.id)
            return stuck

        recovered: list[TargetOrder] = []
        for order in stuck:
            try:
                failed = self.store.update_order_status(
                    order.id, TargetOrderStatus.FAILED, expected=TargetOrderStatus.TRIGGERED
                )
            except StaleStatusError:
                continue
            logger.warning("Order %s was stuck in TRIGGERED; marked FAILED", order.id)
            subject, body = stuck_message(failed)
            self._notify(failed, subject, body)
            recovered.append(failed)
        return recovered
