"""Tests for the retry/scheduling driver."""

from unittest.mock import MagicMock, patch

import pytest

from src.ingestion.collectors.defillama_collector import DefiLlamaCollector
from src.shared.exceptions import TransportError
from src.sync.driver import RetryPolicy, SyncDriver
from src.sync.staleness import StalenessPolicy


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


def _driver(catalog, store, checkpoints, clock, sleep, retry=None):
    return SyncDriver(
        catalog=catalog,
        store=store,
        checkpoints=checkpoints,
        policy=StalenessPolicy(),
        retry=retry or RetryPolicy(base_delay=1.0, max_delay=8.0),
        clock=clock,
        sleep=sleep,
    )


# ---------------------------------------------------------------------------
# RetryPolicy
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    def test_first_retry_is_immediate(self):
        assert RetryPolicy().delay_before_retry(1) == 0.0

    def test_backoff_doubles_and_caps(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=8.0)
        assert [policy.delay_before_retry(n) for n in range(1, 8)] == [0.0, 1.0, 2.0, 4.0, 8.0, 8.0, 8.0]

    def test_unbounded_by_default(self):
        assert RetryPolicy().exhausted(10_000) is False

    def test_max_attempts(self):
        policy = RetryPolicy(max_attempts=3)
        assert policy.exhausted(2) is False
        assert policy.exhausted(3) is True

    def test_from_config(self, monkeypatch):
        monkeypatch.setattr("src.shared.config.Config.SYNC_RETRY_BASE_DELAY", 0.5)
        monkeypatch.setattr("src.shared.config.Config.SYNC_RETRY_MAX_DELAY", 30.0)
        monkeypatch.setattr("src.shared.config.Config.SYNC_MAX_ATTEMPTS", 4)

        assert RetryPolicy.from_config() == RetryPolicy(base_delay=0.5, max_delay=30.0, max_attempts=4)


# ---------------------------------------------------------------------------
# SyncDriver
# ---------------------------------------------------------------------------


class TestRunUntilSuccess:
    def test_success_first_try(self, store, checkpoints, make_catalog, clock, api, sleep):
        catalog = make_catalog([api.summary("a")])

        result = _driver(catalog, store, checkpoints, clock, sleep).run_until_success()

        assert result.ok
        assert catalog.summary_calls == 1
        assert sleep.calls == []

    def test_retries_until_success_with_backoff(self, store, checkpoints, make_catalog, clock, api, sleep):
        catalog = make_catalog([api.summary("a")], summary_failures=3)

        result = _driver(catalog, store, checkpoints, clock, sleep).run_until_success()

        assert result.ok
        assert catalog.summary_calls == 4
        assert sleep.calls == [1.0, 2.0]

    def test_retry_resumes_from_persisted_progress(self, store, checkpoints, make_catalog, clock, api, sleep):
        catalog = make_catalog(
            [api.summary(p) for p in "abc"],
            detail_failures={"b": TransportError("reset")},
        )

        result = _driver(catalog, store, checkpoints, clock, sleep).run_until_success()

        assert result.ok
        assert catalog.detail_calls == ["a", "b", "b", "c"]
        assert checkpoints.recorded == [0, 1, 2]

    def test_gives_up_after_max_attempts(self, store, checkpoints, make_catalog, clock, api, sleep):
        catalog = make_catalog([api.summary("a")], summary_failures=100)
        retry = RetryPolicy(base_delay=1.0, max_delay=8.0, max_attempts=3)

        result = _driver(catalog, store, checkpoints, clock, sleep, retry).run_until_success()

        assert not result.ok
        assert isinstance(result.error, TransportError)
        assert catalog.summary_calls == 3
        assert sleep.calls == [1.0]


class TestRunForever:
    def test_schedules_next_sweep(self, store, checkpoints, make_catalog, clock, api, sleep):
        catalog = make_catalog([api.summary("a")])

        result = _driver(catalog, store, checkpoints, clock, sleep).run_forever(
            interval=3600, max_cycles=3
        )

        assert result.ok
        assert catalog.summary_calls == 3
        assert sleep.calls == [3600, 3600]

    def test_stops_when_a_cycle_gives_up(self, store, checkpoints, make_catalog, clock, api, sleep):
        catalog = make_catalog([api.summary("a")], summary_failures=100)
        retry = RetryPolicy(max_attempts=1)

        result = _driver(catalog, store, checkpoints, clock, sleep, retry).run_forever(
            interval=3600, max_cycles=5
        )

        assert not result.ok
        assert catalog.summary_calls == 1
        assert sleep.calls == []


class TestMalformedCatalog:
    def test_null_slug_fails_sweep_and_is_retried(self, store, checkpoints, clock, sleep, tmp_path):
        collector = DefiLlamaCollector(
            base_url="https://api.example.test", request_delay=0, log_file=tmp_path / "c.log"
        )
        response = MagicMock()
        response.json.return_value = [{"id": "1", "slug": None}]
        retry = RetryPolicy(max_attempts=2)

        with patch.object(collector._session, "get", return_value=response) as mock_get:
            result = _driver(collector, store, checkpoints, clock, sleep, retry).run_until_success()

        assert not result.ok
        assert isinstance(result.error, TransportError)
        assert mock_get.call_count == 2
        assert store.load_checkpoint(checkpoints.name) is None
