"""Shared utilities and configuration."""

from src.shared.config import Config
from src.shared.exceptions import NotFoundError, StoreError, SyncError, TransportError
from src.shared.utils import epoch_seconds, from_epoch, setup_logger, utc_now

__all__ = [
    "Config",
    "setup_logger",
    "utc_now",
    "epoch_seconds",
    "from_epoch",
    "SyncError",
    "TransportError",
    "NotFoundError",
    "StoreError",
]
