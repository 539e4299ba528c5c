"""
Gateway collaborators: talk to the brokerage gateway over HTTP.

GatewayPlacementAdapter posts to /place-order, GatewayQuoteFeed polls
/market-quotes, GatewayNotifier posts to /send-notification. EmailNotifier sends
outcome mail directly over SMTP.

Real orders are blocked unless TRIGGER_LIVE_TRADING_ENABLED=true (or live_trading=True
is passed explicitly). Broker and transport errors become REJECTED results or
unsuccessful deliveries; no silent failures, no exceptions out of place_order/notify.
"""

from __future__ import annotations

import logging
import os
import smtplib
import ssl
from collections.abc import Callable, Iterable
from datetime import datetime
from email.message import EmailMessage
from typing import Any

import httpx

from trigger_core.config import LIVE_TRADING_ENV
from trigger_core.exceptions import ConfigurationError
from trigger_core.order import OrderType
from trigger_core.quote import Quote

from trigger_core.execution.broker import Notifier, PlacementAdapter, QuoteFeed
from trigger_core.execution.notifications import mask_recipient
from trigger_core.execution.types import (
    DeliveryResult,
    PlacementRequest,
    PlacementResult,
    PlacementStatusKind,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds


def _error_message(response: httpx.Response) -> str:
    """Best-effort reason from a gateway error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        msg = body.get("message") or data.get("message")
        if msg:
            return f"HTTP {response.status_code}: {msg}"
    return f"HTTP {response.status_code}"


def _parse_timestamp(value: Any) -> datetime:
    if value in (None, ""):
        return datetime.now()
    if isinstance(value, (int, float)):
        # Gateway sends epoch milliseconds for numeric timestamps.
        return datetime.fromtimestamp(value / 1000.0)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable quote timestamp %r; using now", value)
        return datetime.now()


class _GatewayClient:
    """Shared HTTP plumbing: base URL, bearer token, owned or injected httpx.Client."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        if not base_url:
            raise ConfigurationError("Gateway base_url is required")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class GatewayPlacementAdapter(_GatewayClient, PlacementAdapter):
    """
    Places orders through the brokerage gateway.

    - live_trading=None (default): read TRIGGER_LIVE_TRADING_ENABLED on every call.
    - live_trading=False: every order is REJECTED with a reason; nothing is sent.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        live_trading: bool | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(base_url, token=token, timeout=timeout, client=client)
        self._live_trading = live_trading

    def _live_enabled(self) -> bool:
        if self._live_trading is not None:
            return self._live_trading
        return os.environ.get(LIVE_TRADING_ENV, "").lower() == "true"

    def place_order(self, request: PlacementRequest) -> PlacementResult:
        logger.info(
            "Submitting order: instrument=%s, side=%s, qty=%s, type=%s, price=%s",
            request.instrument_token,
            request.transaction_type.value,
            request.quantity,
            request.order_type.value,
            request.price,
        )
        if not self._live_enabled():
            reason = f"Live trading disabled. Set {LIVE_TRADING_ENV}=true to allow real orders."
            logger.warning("Order rejected: %s", reason)
            return PlacementResult(status=PlacementStatusKind.REJECTED, message=reason, timestamp=datetime.now())

        payload = {
            "instrumentKey": request.instrument_token,
            "quantity": request.quantity,
            "transactionType": request.transaction_type.value,
            "orderType": request.order_type.value,
            # Gateway expects 0 for market orders.
            "price": request.price if request.order_type == OrderType.LIMIT and request.price is not None else 0,
        }
        try:
            response = self._client.post(self._url("place-order"), json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            reason = f"Gateway request failed: {e!s}"
            logger.exception("Order submission failed: %s", reason)
            return PlacementResult(status=PlacementStatusKind.REJECTED, message=reason, timestamp=datetime.now())

        if response.is_error:
            reason = _error_message(response)
            logger.warning("Order rejected by gateway: %s", reason)
            return PlacementResult(status=PlacementStatusKind.REJECTED, message=reason, timestamp=datetime.now())

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        if str(body.get("status", "")).lower() == "error":
            reason = body.get("message") or data.get("message") or "Gateway reported an error"
            logger.warning("Order rejected by gateway: %s", reason)
            return PlacementResult(status=PlacementStatusKind.REJECTED, message=reason, timestamp=datetime.now())

        order_id = data.get("order_id") or body.get("order_id")
        logger.info("Gateway accepted order: order_id=%s", order_id)
        return PlacementResult(
            status=PlacementStatusKind.ACCEPTED,
            order_id=order_id,
            message=body.get("message") or data.get("message"),
            timestamp=datetime.now(),
        )


class GatewayQuoteFeed(_GatewayClient, QuoteFeed):
    """
    Polls /market-quotes for a set of instrument keys. ``instruments`` is either a
    fixed iterable or a callable evaluated on every poll (e.g. pending instruments).
    Transport and HTTP errors propagate; the engine logs them and keeps the last snapshot.
    """

    def __init__(
        self,
        base_url: str,
        instruments: Iterable[str] | Callable[[], Iterable[str]],
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(base_url, token=token, timeout=timeout, client=client)
        self._instruments = instruments if callable(instruments) else tuple(instruments)

    def _instrument_keys(self) -> list[str]:
        keys = self._instruments() if callable(self._instruments) else self._instruments
        return sorted({str(k) for k in keys})

    def get_latest_quotes(self) -> dict[str, Quote]:
        keys = self._instrument_keys()
        if not keys:
            return {}
        response = self._client.get(
            self._url("market-quotes"),
            params={"instrument_key": ",".join(keys)},
            headers=self._headers(),
        )
        response.raise_for_status()
        data = response.json().get("data") or {}
        quotes: dict[str, Quote] = {}
        for key, item in data.items():
            if not isinstance(item, dict):
                continue
            price = item.get("lastPrice", item.get("last_price"))
            if price is None:
                continue
            token = str(item.get("instrumentToken") or item.get("instrument_token") or key)
            quotes[token] = Quote(
                instrument_token=token,
                last_price=float(price),
                timestamp=_parse_timestamp(item.get("timestamp") or item.get("lastTradeTime")),
            )
        logger.debug("Fetched %d quote(s) for %d instrument(s)", len(quotes), len(keys))
        return quotes


class GatewayNotifier(_GatewayClient, Notifier):
    """Delivers outcome messages through the gateway's /send-notification endpoint."""

    def notify(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        masked = mask_recipient(recipient)
        payload = {"email": recipient, "subject": subject, "message": body}
        try:
            response = self._client.post(self._url("send-notification"), json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("Notification to %s failed: %s", masked, e)
            return DeliveryResult(success=False, error=f"Gateway request failed: {e!s}")
        if response.is_error:
            reason = _error_message(response)
            logger.warning("Notification to %s rejected: %s", masked, reason)
            return DeliveryResult(success=False, error=reason)
        logger.info("Notification sent to %s: %s", masked, subject)
        return DeliveryResult(success=True)


class EmailNotifier(Notifier):
    """Sends outcome mail over SMTP with SSL. Missing credentials fail each delivery."""

    def __init__(
        self,
        host: str | None,
        username: str | None,
        password: str | None,
        *,
        port: int = 465,
        from_address: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address or username
        self.timeout = timeout

    def notify(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        masked = mask_recipient(recipient)
        if not all([self.host, self.username, self.password]):
            logger.error("Email credentials missing; cannot notify %s", masked)
            return DeliveryResult(success=False, error="SMTP credentials not configured")
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = recipient
        msg.set_content(body)
        try:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", masked, e)
            return DeliveryResult(success=False, error=str(e))
        logger.info("Email sent to %s: %s", masked, subject)
        return DeliveryResult(success=True)
