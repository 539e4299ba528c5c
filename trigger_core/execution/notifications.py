"""Outcome messages sent to the user, and recipient masking for logs."""

from __future__ import annotations

from trigger_core.order import TargetOrder


def mask_recipient(value: str) -> str:
    """Show only the last 4 characters: user@example.com -> ***.com"""
    if value and len(value) >= 4:
        return f"***{value[-4:]}"
    return "***"


def success_message(order: TargetOrder, trigger_price: float) -> tuple[str, str]:
    subject = "Target Order Executed"
    body = (
        f"Your target order for {order.symbol} has been executed successfully.\n"
        f"Instrument: {order.instrument_token}\n"
        f"Transaction Type: {order.transaction_type.value}\n"
        f"Quantity: {order.quantity}\n"
        f"Trigger Price: {trigger_price}\n"
        f"Target Price: {order.target_price}\n"
        f"Order Type: {order.order_type.value}"
    )
    return subject, body


def failure_message(order: TargetOrder, reason: str | None = None) -> tuple[str, str]:
    subject = "Target Order Failed"
    body = (
        f"Your target order for {order.symbol} failed to execute.\n"
        f"Transaction Type: {order.transaction_type.value}\n"
        f"Quantity: {order.quantity}\n"
    )
    if reason:
        body += f"Reason: {reason}\n"
    body += "Please check your account or contact support for assistance."
    return subject, body


def stuck_message(order: TargetOrder) -> tuple[str, str]:
    """Sent when an order found TRIGGERED at startup is marked FAILED."""
    subject = "Target Order Needs Review"
    body = (
        f"Your target order for {order.symbol} was interrupted while executing "
        f"({order.transaction_type.value} {order.quantity}).\n"
        "It has been marked as failed and will not be retried. The order may or may "
        "not have reached your broker; please verify your order book."
    )
    return subject, body
