"""
Load historical quotes from CSV or DataFrame for replay.

Output has a DatetimeIndex named 'datetime' and columns instrument_token and
last_price. Several rows may share a timestamp (one per instrument).
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

QUOTE_COLUMNS = ("instrument_token", "last_price")

_ALIASES = {
    "token": "instrument_token",
    "instrument_key": "instrument_token",
    "instrumentkey": "instrument_token",
    "instrumenttoken": "instrument_token",
    "ltp": "last_price",
    "lastprice": "last_price",
    "price": "last_price",
    "close": "last_price",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase column names and map common aliases to instrument_token/last_price."""
    out = df.copy()
    out.columns = [str(c).lower().strip() for c in out.columns]
    renames = {k: v for k, v in _ALIASES.items() if k in out.columns and v not in out.columns}
    return out.rename(columns=renames)


def _finish(out: pd.DataFrame, instrument_token: str | None) -> pd.DataFrame:
    if "instrument_token" not in out.columns:
        if instrument_token is None:
            raise ValueError("No instrument_token column; pass instrument_token=")
        out["instrument_token"] = instrument_token
    if "last_price" not in out.columns:
        raise ValueError("No price column (last_price, ltp, price or close)")
    out = out.sort_index(kind="mergesort")
    out.index.name = "datetime"
    out = out[list(QUOTE_COLUMNS)].copy()
    out["instrument_token"] = out["instrument_token"].astype(str)
    out["last_price"] = out["last_price"].astype(float)
    return out


def load_quotes_csv(
    path: str | Path,
    *,
    date_column: str | None = None,
    datetime_format: str | None = None,
    instrument_token: str | None = None,
) -> pd.DataFrame:
    """
    Load quotes from a CSV file.

    Parameters
    ----------
    path : str or Path
        Path to the CSV file.
    date_column : str, optional
        Column to use as datetime index. If None, 'datetime', 'timestamp' or 'date'
        is used, else the first column.
    datetime_format : str, optional
        Format for parsing dates (e.g. '%Y-%m-%d %H:%M:%S').
    instrument_token : str, optional
        Instrument for files without an instrument column.

    Returns
    -------
    pd.DataFrame
        DatetimeIndex and columns instrument_token, last_price.
    """
    df = _normalize_columns(pd.read_csv(path))
    date_col = date_column.lower() if date_column else None
    if date_col is None or date_col not in df.columns:
        date_col = next((c for c in ("datetime", "timestamp", "date") if c in df.columns), df.columns[0])
    index = pd.to_datetime(df[date_col], format=datetime_format)
    df = df.drop(columns=[date_col])
    df.index = pd.DatetimeIndex(index)
    return _finish(df, instrument_token)


def load_quote_frame(
    df: pd.DataFrame,
    *,
    datetime_index: str | None = None,
    instrument_token: str | None = None,
) -> pd.DataFrame:
    """
    Normalize a DataFrame of quotes for replay.

    Parameters
    ----------
    df : pd.DataFrame
        Raw DataFrame (columns may be mixed case or aliased).
    datetime_index : str, optional
        Column name to use as index. If None, assume index is already datetime.
    instrument_token : str, optional
        Instrument for frames without an instrument column.
    """
    out = _normalize_columns(df)
    if datetime_index is not None and datetime_index.lower() in out.columns:
        col = datetime_index.lower()
        out.index = pd.DatetimeIndex(pd.to_datetime(out[col]))
        out = out.drop(columns=[col])
    elif not isinstance(out.index, pd.DatetimeIndex):
        out.index = pd.to_datetime(out.index)
    return _finish(out, instrument_token)
