"""Sweep driver: owns the retry and scheduling policy around run_sweep.

The sweep itself never sleeps and never retries. The driver reruns it from
scratch until one attempt finishes with zero errors, backing off between
failures so a persistently failing upstream is not hammered.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from src.ingestion.collectors.base_collector import BaseCollector
from src.ingestion.preprocessors.protocol_normalizer import ProtocolNormalizer
from src.shared.config import Config
from src.shared.db.storage import ProtocolStore
from src.shared.utils import epoch_seconds, setup_logger
from src.sync.engine import SweepResult, run_sweep
from src.sync.ledger import CheckpointLedger
from src.sync.staleness import StalenessPolicy


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff between failed sweeps.

    The first retry is immediate; retry ``n >= 2`` waits
    ``min(base_delay * 2 ** (n - 2), max_delay)`` seconds.
    ``max_attempts=None`` retries forever.
    """

    base_delay: float = 1.0
    max_delay: float = 300.0
    max_attempts: int | None = None

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            base_delay=Config.SYNC_RETRY_BASE_DELAY,
            max_delay=Config.SYNC_RETRY_MAX_DELAY,
            max_attempts=Config.SYNC_MAX_ATTEMPTS,
        )

    def delay_before_retry(self, retry: int) -> float:
        if retry <= 1:
            return 0.0
        return min(self.base_delay * 2 ** (retry - 2), self.max_delay)

    def exhausted(self, attempts: int) -> bool:
        return self.max_attempts is not None and attempts >= self.max_attempts


class SyncDriver:
    """Runs sweeps until success, optionally on a fixed schedule."""

    def __init__(
        self,
        catalog: BaseCollector,
        store: ProtocolStore,
        checkpoints: CheckpointLedger | None = None,
        policy: StalenessPolicy | None = None,
        retry: RetryPolicy | None = None,
        normalizer: ProtocolNormalizer | None = None,
        clock: Callable[[], int] = epoch_seconds,
        sleep: Callable[[float], None] = time.sleep,
        log_file: Path | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.checkpoints = checkpoints or CheckpointLedger(store)
        self.policy = policy or StalenessPolicy.from_config()
        self.retry = retry or RetryPolicy.from_config()
        self.normalizer = normalizer or ProtocolNormalizer()
        self.clock = clock
        self.sleep = sleep
        self.logger = setup_logger(self.__class__.__name__, log_file)

    def run_once(self) -> SweepResult:
        return run_sweep(
            self.checkpoints,
            self.catalog,
            self.store,
            policy=self.policy,
            normalizer=self.normalizer,
            clock=self.clock,
        )

    def run_until_success(self) -> SweepResult:
        """Repeat the sweep until it succeeds or max_attempts is reached.

        Returns:
            The successful result, or the last failed one when attempts ran out.
        """
        attempts = 0
        while True:
            attempts += 1
            result = self.run_once()
            if result.ok:
                self.logger.info("Sweep succeeded after %d attempt(s)", attempts)
                return result

            if self.retry.exhausted(attempts):
                self.logger.error("Giving up after %d failed attempts: %s", attempts, result.error)
                return result

            delay = self.retry.delay_before_retry(attempts)
            self.logger.warning(
                "Attempt %d failed (%s), rerunning in %.1fs", attempts, result.error, delay
            )
            if delay:
                self.sleep(delay)

    def run_forever(self, interval: float, max_cycles: int | None = None) -> SweepResult | None:
        """Run a sweep to success, wait ``interval`` seconds, repeat.

        Stops early if a cycle gives up (max_attempts reached) or after
        ``max_cycles`` cycles.
        """
        result = None
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            result = self.run_until_success()
            if not result.ok:
                return result
            if max_cycles is not None and cycles >= max_cycles:
                break
            self.logger.info("Next sweep in %.0fs", interval)
            self.sleep(interval)
        return result
