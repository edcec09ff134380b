"""Sync engine: one sweep over the checkpoint ledger.

A sweep:
    1. fetches every protocol summary and writes all of them wholesale,
    2. loads the ledger and appends never-seen identifiers,
    3. walks the entries from the resume index to the end of the list
       (no wrap within a sweep), refreshing the ones the staleness policy
       marks as due: fetch detail, normalize, replace stored rows, then
       persist the ledger with the new cursor,
    4. marks the ledger complete once the end of the list is reached.

Any error aborts the sweep and is reported as FAILED_RETRY; errors outside
the SyncError family are logged with their traceback. Progress made before
the failure is already durable because the ledger is saved after every
refreshed record, so the next attempt resumes at the last persisted cursor.
Retrying is the driver's job.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from src.ingestion.collectors.base_collector import BaseCollector
from src.ingestion.preprocessors.protocol_normalizer import ProtocolNormalizer
from src.shared.db.storage import ProtocolStore
from src.shared.exceptions import SyncError
from src.shared.utils import epoch_seconds, setup_logger
from src.sync.ledger import CheckpointLedger, Ledger
from src.sync.staleness import StalenessPolicy

logger = setup_logger(__name__)


class SweepStatus(str, Enum):
    SUCCESS = "success"
    FAILED_RETRY = "failed_retry"


@dataclass
class SweepResult:
    status: SweepStatus
    ledger: Ledger | None = None
    refreshed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is SweepStatus.SUCCESS


def run_sweep(
    checkpoints: CheckpointLedger,
    catalog: BaseCollector,
    store: ProtocolStore,
    policy: StalenessPolicy | None = None,
    normalizer: ProtocolNormalizer | None = None,
    clock: Callable[[], int] = epoch_seconds,
) -> SweepResult:
    """Run one sweep and report SUCCESS or FAILED_RETRY.

    Args:
        checkpoints: Ledger persistence.
        catalog: Source of summaries and details.
        store: Destination for protocol rows.
        policy: Staleness policy (default: 24 hour refresh interval).
        normalizer: Detail -> rows transformer.
        clock: Returns the current time as epoch seconds.

    Returns:
        SweepResult with the indices refreshed and skipped in this attempt.
    """
    policy = policy or StalenessPolicy()
    normalizer = normalizer or ProtocolNormalizer()
    result = SweepResult(status=SweepStatus.SUCCESS)

    try:
        summaries = catalog.list_summaries()
        by_id = {s.id: s for s in summaries}

        store.write_summaries(summaries)

        ledger = checkpoints.reconcile(checkpoints.load(), (s.id for s in summaries))
        result.ledger = ledger
        if not ledger.entries:
            logger.info("Ledger is empty, nothing to sync")
            return result

        start = ledger.start_index()
        logger.info("Sweep starting at index %d of %d", start, len(ledger.entries))

        for index in range(start, len(ledger.entries)):
            entry = ledger.entries[index]
            if not policy.is_due(entry.updated_at, clock()):
                result.skipped.append(index)
                continue

            summary = by_id.get(entry.id)
            if summary is None:
                logger.warning("%s is no longer listed upstream, leaving it stale", entry.id)
                result.missing.append(entry.id)
                continue

            detail = catalog.get_detail(summary.slug)
            summary.merge_snapshot(detail)
            frames = normalizer.preprocess(summary.id, detail)
            store.write_protocol(
                summary,
                normalizer.to_rows(frames["tvl"]),
                normalizer.to_rows(frames["tokens"]),
            )
            checkpoints.record_success(ledger, index, clock())
            result.refreshed.append(index)

        checkpoints.mark_complete(ledger, clock())
    except SyncError as e:
        logger.error("Sweep aborted after %d refreshed records: %s", len(result.refreshed), e)
        result.status = SweepStatus.FAILED_RETRY
        result.error = e
        return result
    except Exception as e:
        logger.exception("Sweep aborted after %d refreshed records", len(result.refreshed))
        result.status = SweepStatus.FAILED_RETRY
        result.error = e
        return result

    logger.info(
        "Sweep complete: %d refreshed, %d not due, %d delisted",
        len(result.refreshed),
        len(result.skipped),
        len(result.missing),
    )
    return result
