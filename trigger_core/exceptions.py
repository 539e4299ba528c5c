"""
Exceptions raised by trigger-core.

Collaborator adapters report downstream failures as result objects, not
exceptions; these cover validation, lifecycle and store errors.
"""

from __future__ import annotations


class TriggerCoreError(Exception):
    """Base class for all trigger-core errors."""


class OrderValidationError(TriggerCoreError, ValueError):
    """A target order was created with invalid fields."""


class InvalidStatusTransition(TriggerCoreError):
    """A status change would move an order backward or skip TRIGGERED."""

    def __init__(self, order_id: str, current: object, requested: object) -> None:
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(f"Order {order_id}: cannot move from {current} to {requested}")


class StoreError(TriggerCoreError):
    """The order store failed to read or write."""


class OrderNotFoundError(StoreError, KeyError):
    """No order with the given id is held by the store."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class StaleStatusError(StoreError):
    """Compare-and-swap failed: the order's status is not the expected one."""

    def __init__(self, order_id: str, expected: object, actual: object) -> None:
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Order {order_id}: expected status {expected}, found {actual}")


class ConfigurationError(TriggerCoreError):
    """Engine configuration is missing or invalid."""
