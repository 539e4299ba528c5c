"""
Quote: latest observed market state for an instrument.

Immutable data carrier. The engine keeps only the most recent quote per
instrument; there is no history and no staleness check.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pandas as pd

PRICE_COLUMNS = ("last_price", "close")


@dataclass(frozen=True)
class Quote:
    """Last traded price for one instrument at a point in time."""

    instrument_token: str
    last_price: float
    timestamp: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, datetime):
            object.__setattr__(self, "timestamp", datetime.fromisoformat(str(self.timestamp)))
        object.__setattr__(self, "last_price", float(self.last_price))


def quotes_from_dataframe(df: pd.DataFrame, *, timestamp: datetime | None = None) -> dict[str, Quote]:
    """
    Build a quote map from a DataFrame with one row per observation.

    Expects an ``instrument_token`` column and a price column (``last_price`` or
    ``close``). The timestamp comes from a ``timestamp`` column, else a
    DatetimeIndex, else ``timestamp`` (default: now). Later rows win per instrument.
    """
    quotes: dict[str, Quote] = {}
    if df.empty or "instrument_token" not in df.columns:
        return quotes
    price_col = next((c for c in PRICE_COLUMNS if c in df.columns), None)
    if price_col is None:
        return quotes
    fallback_ts = timestamp or datetime.now()
    has_dt_index = isinstance(df.index, pd.DatetimeIndex)
    for idx, row in df.iterrows():
        price = row[price_col]
        if pd.isna(price):
            continue
        if "timestamp" in df.columns and not pd.isna(row["timestamp"]):
            ts = pd.Timestamp(row["timestamp"]).to_pydatetime()
        elif has_dt_index:
            ts = idx.to_pydatetime()
        else:
            ts = fallback_ts
        token = str(row["instrument_token"])
        quotes[token] = Quote(instrument_token=token, last_price=float(price), timestamp=ts)
    return quotes
