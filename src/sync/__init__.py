"""Incremental synchronization engine: ledger, staleness policy, sweep, driver."""

from src.sync.driver import RetryPolicy, SyncDriver
from src.sync.engine import SweepResult, SweepStatus, run_sweep
from src.sync.ledger import (
    LEDGER_NAME,
    NEVER_UPDATED,
    CheckpointEntry,
    CheckpointLedger,
    Ledger,
    reconcile,
)
from src.sync.staleness import DEFAULT_REFRESH_INTERVAL, StalenessPolicy

__all__ = [
    "CheckpointEntry",
    "CheckpointLedger",
    "Ledger",
    "reconcile",
    "LEDGER_NAME",
    "NEVER_UPDATED",
    "StalenessPolicy",
    "DEFAULT_REFRESH_INTERVAL",
    "SweepResult",
    "SweepStatus",
    "run_sweep",
    "RetryPolicy",
    "SyncDriver",
]
