"""Staleness policy: which ledger entries are due for a refresh."""

from dataclasses import dataclass

from src.shared.config import Config
from src.sync.ledger import NEVER_UPDATED

DEFAULT_REFRESH_INTERVAL = 24 * 60 * 60  # seconds


@dataclass(frozen=True)
class StalenessPolicy:
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL

    @classmethod
    def from_config(cls) -> "StalenessPolicy":
        return cls(refresh_interval=int(Config.SYNC_REFRESH_INTERVAL_HOURS * 3600))

    def is_due(self, updated_at: int, now: int) -> bool:
        """True iff ``updated_at <= now - refresh_interval`` or never updated."""
        if updated_at == NEVER_UPDATED:
            return True
        return updated_at <= now - self.refresh_interval
