"""
Root pytest configuration.

Provides an in-memory SQLite ProtocolStore, a scriptable catalog collector
and payload builders shaped like the DeFiLlama API responses, so the sync
engine can be exercised end to end without network or Postgres.
"""

from collections.abc import Callable
from types import SimpleNamespace

import pytest

from src.ingestion.collectors.base_collector import BaseCollector
from src.ingestion.types import ProtocolDetail, ProtocolSummary
from src.shared.db import ProtocolStore, create_db_engine
from src.shared.exceptions import NotFoundError, TransportError
from src.sync.ledger import CheckpointLedger, Ledger

NOW = 1_700_000_000
DAY = 24 * 60 * 60


def summary_payload(pid: str, slug: str | None = None, chain_tvls: dict | None = None) -> dict:
    """Build one entry of a GET /protocols response."""
    return {
        "id": pid,
        "name": pid.title(),
        "slug": slug or pid,
        "category": "Dexes",
        "tvl": 100.0,
        "chainTvls": chain_tvls if chain_tvls is not None else {"Ethereum": 100.0},
    }


def detail_payload(
    pid: str,
    chains: tuple[str, ...] = ("Ethereum",),
    dates: tuple[int, ...] = (1_690_000_000, 1_690_086_400),
) -> dict:
    """Build a GET /protocol/{slug} response with one USDC holding per date."""
    chain_tvls = {}
    for chain in chains:
        chain_tvls[chain] = {
            "tvl": [{"date": d, "totalLiquidityUSD": 10.0 * (i + 1)} for i, d in enumerate(dates)],
            "tokens": [{"date": d, "tokens": {"USDC": 5.0 * (i + 1)}} for i, d in enumerate(dates)],
            "tokensInUsd": [{"date": d, "tokens": {"USDC": 5.0 * (i + 1)}} for i, d in enumerate(dates)],
        }
    return {
        "id": pid,
        "name": pid.title(),
        "chainTvls": chain_tvls,
        "currentChainTvls": {chain: 20.0 for chain in chains},
    }


class FakeCatalog(BaseCollector):
    """Catalog collector serving canned payloads.

    ``detail_failures`` maps slug -> exception raised on the next request for
    that slug only; ``summary_failures`` fails that many list calls first.
    """

    SOURCE_NAME = "fake"

    def __init__(
        self,
        summaries: list[dict],
        details: dict[str, dict] | None = None,
        detail_failures: dict[str, Exception] | None = None,
        summary_failures: int = 0,
    ) -> None:
        super().__init__()
        self.summaries = summaries
        self.details = details if details is not None else {
            s["slug"]: detail_payload(s["id"]) for s in summaries
        }
        self.detail_failures = dict(detail_failures or {})
        self.summary_failures = summary_failures
        self.detail_calls: list[str] = []
        self.summary_calls = 0

    def list_summaries(self) -> list[ProtocolSummary]:
        self.summary_calls += 1
        if self.summary_failures:
            self.summary_failures -= 1
            raise TransportError("upstream unavailable")
        return [ProtocolSummary.from_api(p) for p in self.summaries]

    def get_detail(self, slug: str) -> ProtocolDetail:
        self.detail_calls.append(slug)
        if slug in self.detail_failures:
            raise self.detail_failures.pop(slug)
        if slug not in self.details:
            raise NotFoundError(slug)
        return ProtocolDetail.from_api(self.details[slug])

    def health_check(self) -> bool:
        return True


class RecordingLedger(CheckpointLedger):
    """CheckpointLedger that remembers every index passed to record_success."""

    def __init__(self, store: ProtocolStore) -> None:
        super().__init__(store)
        self.recorded: list[int] = []

    def record_success(self, ledger: Ledger, index: int, timestamp: int) -> Ledger:
        result = super().record_success(ledger, index, timestamp)
        self.recorded.append(index)
        return result


@pytest.fixture
def store() -> ProtocolStore:
    """Initialized ProtocolStore on a private in-memory SQLite database."""
    store = ProtocolStore(create_db_engine("sqlite://"))
    store.initialize()
    yield store
    store.dispose()


@pytest.fixture
def checkpoints(store) -> RecordingLedger:
    return RecordingLedger(store)


@pytest.fixture
def make_catalog() -> Callable[..., FakeCatalog]:
    return FakeCatalog


@pytest.fixture
def clock() -> Callable[[], int]:
    """Frozen clock at NOW."""
    return lambda: NOW


@pytest.fixture
def api() -> SimpleNamespace:
    """Payload builders and the frozen time constants."""
    return SimpleNamespace(summary=summary_payload, detail=detail_payload, NOW=NOW, DAY=DAY)
