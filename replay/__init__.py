"""
Replay harness on top of trigger-core.

Feeds historical quotes through the real TriggerEngine with paper collaborators,
to dry-run target orders before going live.
"""

from replay.engine import ReplayEngine, ReplayResult
from replay.data_loader import load_quote_frame, load_quotes_csv
from replay.report import print_report

__all__ = [
    "ReplayEngine",
    "ReplayResult",
    "load_quote_frame",
    "load_quotes_csv",
    "print_report",
]
