"""
Replay engine: run the real TriggerEngine over historical quotes.

One pass per distinct timestamp. Quotes at that timestamp are merged into the
latest-quote snapshot, then the pass runs with paper collaborators (or the ones
given). Every status change is recorded with the replay timestamp.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from trigger_core.order import TargetOrder, TargetOrderStatus
from trigger_core.quote import quotes_from_dataframe
from trigger_core.store import InMemoryOrderStore
from trigger_core.execution.broker import Notifier, PlacementAdapter
from trigger_core.execution.engine import TriggerEngine, TriggerObserver
from trigger_core.execution.paper import LoggingNotifier, PaperPlacementAdapter
from trigger_core.execution.types import TriggerOutcome


@dataclass
class ReplayResult:
    """Result of a replay: final orders, outcomes, and timestamped status history."""

    orders: list[TargetOrder]
    outcomes: list[TriggerOutcome] = field(default_factory=list)
    status_history: list[tuple[datetime, str, TargetOrderStatus]] = field(default_factory=list)
    ticks: int = 0

    def final_status(self, order_id: str) -> TargetOrderStatus | None:
        for order in self.orders:
            if order.id == order_id:
                return order.status
        return None

    def history_for(self, order_id: str) -> list[tuple[datetime, TargetOrderStatus]]:
        return [(ts, status) for ts, oid, status in self.status_history if oid == order_id]


class _RecordingStore(InMemoryOrderStore):
    """In-memory store that records each status change with the current replay time."""

    def __init__(self, orders: Iterable[TargetOrder]) -> None:
        super().__init__(orders)
        self.clock: datetime | None = None
        self.history: list[tuple[datetime, str, TargetOrderStatus]] = []

    def update_order_status(
        self,
        order_id: str,
        new_status: TargetOrderStatus,
        *,
        expected: TargetOrderStatus | None = None,
    ) -> TargetOrder:
        updated = super().update_order_status(order_id, new_status, expected=expected)
        self.history.append((self.clock or datetime.now(), order_id, new_status))
        return updated


class ReplayEngine:
    """
    Replays a quote frame (see replay.data_loader) through a TriggerEngine.
    Orders must be PENDING; each run starts from the given orders afresh.
    """

    def __init__(
        self,
        orders: Sequence[TargetOrder],
        *,
        placement: PlacementAdapter | None = None,
        notifier: Notifier | None = None,
        observers: Sequence[TriggerObserver] = (),
    ) -> None:
        self.orders = list(orders)
        self.placement = placement or PaperPlacementAdapter()
        self.notifier = notifier or LoggingNotifier()
        self.observers = list(observers)

    def run(self, frame: pd.DataFrame) -> ReplayResult:
        """
        Run the replay.

        Parameters
        ----------
        frame : pd.DataFrame
            DatetimeIndex and columns instrument_token, last_price.

        Returns
        -------
        ReplayResult
            Final orders, outcomes and status history.
        """
        store = _RecordingStore(self.orders)
        engine = TriggerEngine(store, self.placement, self.notifier, observers=self.observers)
        outcomes: list[TriggerOutcome] = []
        ticks = 0
        for ts, rows in frame.groupby(level=0, sort=True):
            store.clock = ts.to_pydatetime()
            store.set_quotes(quotes_from_dataframe(rows))
            outcomes.extend(engine.run_once())
            ticks += 1
        return ReplayResult(
            orders=store.list_orders(),
            outcomes=outcomes,
            status_history=list(store.history),
            ticks=ticks,
        )
