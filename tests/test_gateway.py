"""
Tests for gateway collaborators against httpx.MockTransport, and the SMTP notifier.
"""

import json
import smtplib
from datetime import datetime

import httpx
import pytest

from trigger_core import TargetOrder
from trigger_core.exceptions import ConfigurationError
from trigger_core.execution import (
    EmailNotifier,
    GatewayNotifier,
    GatewayPlacementAdapter,
    GatewayQuoteFeed,
    PlacementRequest,
    PlacementStatusKind,
)
from trigger_core.execution.notifications import mask_recipient

BASE = "http://gateway.test"


def _client(handler, captured=None):
    def wrapped(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return handler(request)

    return httpx.Client(transport=httpx.MockTransport(wrapped))


def _request(order_type="LIMIT"):
    order = TargetOrder.create("NSE_EQ|INE002A01018", "RELIANCE", 2900.0, 3, "BUY", order_type)
    return PlacementRequest.from_target_order(order)


# --- GatewayPlacementAdapter ---


def test_place_order_posts_payload_and_maps_order_id():
    captured = []
    client = _client(lambda r: httpx.Response(200, json={"status": "success", "data": {"order_id": "OID-1"}}), captured)
    adapter = GatewayPlacementAdapter(BASE, token="tok", live_trading=True, client=client)

    result = adapter.place_order(_request("LIMIT"))

    assert result.status == PlacementStatusKind.ACCEPTED
    assert result.order_id == "OID-1"
    (req,) = captured
    assert req.method == "POST"
    assert str(req.url) == f"{BASE}/place-order"
    assert req.headers["Authorization"] == "Bearer tok"
    assert json.loads(req.content) == {
        "instrumentKey": "NSE_EQ|INE002A01018",
        "quantity": 3,
        "transactionType": "BUY",
        "orderType": "LIMIT",
        "price": 2900.0,
    }


def test_market_order_sends_zero_price():
    captured = []
    client = _client(lambda r: httpx.Response(200, json={"data": {"order_id": "X"}}), captured)
    GatewayPlacementAdapter(BASE, live_trading=True, client=client).place_order(_request("MARKET"))
    assert json.loads(captured[0].content)["price"] == 0
    assert "Authorization" not in captured[0].headers


def test_place_order_blocked_when_live_trading_disabled(monkeypatch):
    monkeypatch.delenv("TRIGGER_LIVE_TRADING_ENABLED", raising=False)
    captured = []
    client = _client(lambda r: httpx.Response(200, json={}), captured)
    result = GatewayPlacementAdapter(BASE, client=client).place_order(_request())
    assert result.status == PlacementStatusKind.REJECTED
    assert "TRIGGER_LIVE_TRADING_ENABLED" in result.message
    assert captured == []


def test_place_order_env_enables_live_trading(monkeypatch):
    monkeypatch.setenv("TRIGGER_LIVE_TRADING_ENABLED", "true")
    client = _client(lambda r: httpx.Response(200, json={"data": {"order_id": "E1"}}))
    assert GatewayPlacementAdapter(BASE, client=client).place_order(_request()).accepted


def test_place_order_http_error_is_rejected():
    client = _client(lambda r: httpx.Response(400, json={"status": "error", "message": "Insufficient funds"}))
    result = GatewayPlacementAdapter(BASE, live_trading=True, client=client).place_order(_request())
    assert result.status == PlacementStatusKind.REJECTED
    assert result.message == "HTTP 400: Insufficient funds"


def test_place_order_error_body_is_rejected():
    client = _client(lambda r: httpx.Response(200, json={"status": "error", "message": "Market closed"}))
    result = GatewayPlacementAdapter(BASE, live_trading=True, client=client).place_order(_request())
    assert result.status == PlacementStatusKind.REJECTED
    assert result.message == "Market closed"


def test_place_order_transport_error_is_rejected():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = GatewayPlacementAdapter(BASE, live_trading=True, client=_client(handler)).place_order(_request())
    assert result.status == PlacementStatusKind.REJECTED
    assert "connection refused" in result.message


def test_close_releases_only_owned_client():
    injected = _client(lambda r: httpx.Response(200, json={}))
    GatewayPlacementAdapter(BASE, client=injected).close()
    assert not injected.is_closed

    owned = GatewayNotifier(BASE)
    owned.close()
    assert owned._client.is_closed


def test_gateway_requires_base_url():
    with pytest.raises(ConfigurationError):
        GatewayPlacementAdapter("")


# --- GatewayQuoteFeed ---


def test_quote_feed_maps_response():
    captured = []
    payload = {
        "status": "success",
        "data": {
            "NSE_EQ:RELIANCE": {
                "instrumentToken": "NSE_EQ|INE002A01018",
                "lastPrice": 2895.5,
                "timestamp": "2024-03-01T09:15:00",
            },
            "NSE_EQ:TCS": {"instrument_token": "NSE_EQ|INE467B01029", "last_price": 4001, "timestamp": 1709264700000},
            "NSE_EQ:BAD": {"instrumentToken": "X"},
        },
    }
    client = _client(lambda r: httpx.Response(200, json=payload), captured)
    feed = GatewayQuoteFeed(BASE, ["NSE_EQ|INE467B01029", "NSE_EQ|INE002A01018"], client=client)

    quotes = feed.get_latest_quotes()

    assert set(quotes) == {"NSE_EQ|INE002A01018", "NSE_EQ|INE467B01029"}
    assert quotes["NSE_EQ|INE002A01018"].last_price == 2895.5
    assert quotes["NSE_EQ|INE002A01018"].timestamp == datetime(2024, 3, 1, 9, 15)
    assert quotes["NSE_EQ|INE467B01029"].last_price == 4001.0
    assert captured[0].url.params["instrument_key"] == "NSE_EQ|INE002A01018,NSE_EQ|INE467B01029"


def test_quote_feed_uses_callable_instruments_and_skips_empty():
    captured = []
    client = _client(lambda r: httpx.Response(200, json={"data": {}}), captured)
    keys: set[str] = set()
    feed = GatewayQuoteFeed(BASE, lambda: keys, client=client)
    assert feed.get_latest_quotes() == {}
    assert captured == []
    keys.add("INFY")
    feed.get_latest_quotes()
    assert captured[0].url.params["instrument_key"] == "INFY"


def test_quote_feed_http_error_raises():
    client = _client(lambda r: httpx.Response(503))
    with pytest.raises(httpx.HTTPStatusError):
        GatewayQuoteFeed(BASE, ["INFY"], client=client).get_latest_quotes()


# --- GatewayNotifier ---


def test_gateway_notifier_posts_message():
    captured = []
    client = _client(lambda r: httpx.Response(200, json={"status": "success"}), captured)
    result = GatewayNotifier(BASE, client=client).notify("a@b.com", "Subject", "Body")
    assert result.success
    assert str(captured[0].url) == f"{BASE}/send-notification"
    assert json.loads(captured[0].content) == {"email": "a@b.com", "subject": "Subject", "message": "Body"}


def test_gateway_notifier_failures_are_results():
    result = GatewayNotifier(BASE, client=_client(lambda r: httpx.Response(500))).notify("a@b.com", "S", "B")
    assert not result.success
    assert result.error == "HTTP 500"

    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = GatewayNotifier(BASE, client=_client(handler)).notify("a@b.com", "S", "B")
    assert not result.success
    assert "timed out" in result.error


# --- EmailNotifier ---


class FakeSMTP:
    sent = []

    def __init__(self, host, port, context=None, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, username, password):
        if password == "wrong":
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def test_email_notifier_sends(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    result = EmailNotifier("smtp.test", "bot@test", "secret").notify("user@test", "Target Order Executed", "done")
    assert result.success
    (msg,) = FakeSMTP.sent
    assert msg["To"] == "user@test"
    assert msg["From"] == "bot@test"
    assert msg["Subject"] == "Target Order Executed"


def test_email_notifier_failures(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    assert not EmailNotifier(None, None, None).notify("u@test", "S", "B").success
    result = EmailNotifier("smtp.test", "bot@test", "wrong").notify("u@test", "S", "B")
    assert not result.success


def test_mask_recipient():
    assert mask_recipient("trader@example.com") == "***.com"
    assert mask_recipient("+919800001234") == "***1234"
    assert mask_recipient("ab") == "***"
