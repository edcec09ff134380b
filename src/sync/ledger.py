"""Checkpoint ledger: per-protocol freshness plus the resume cursor.

The ledger is a single document holding an ordered list of entries. Entry
order is significant: the cursor is an index into it, so reconciliation only
ever appends. The document is persisted after every refreshed record by a
full replace, never a field patch, so cursor and entries cannot drift apart.

Example:

    checkpoints = CheckpointLedger(store)
    ledger = checkpoints.reconcile(checkpoints.load(), ["aave", "lido"])
    checkpoints.record_success(ledger, 0, epoch_seconds())
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from src.shared.db.storage import ProtocolStore
from src.shared.utils import setup_logger

LEDGER_NAME = "protocol_run_history"

# updated_at value for entries that were never refreshed
NEVER_UPDATED = 0


@dataclass
class CheckpointEntry:
    id: str
    updated_at: int = NEVER_UPDATED


@dataclass
class Ledger:
    """In-memory ledger threaded through one sweep.

    ``cursor`` is the index of the last refreshed entry. ``completed`` is set
    when a sweep reached the end of the list and cleared by the next refresh;
    it decides whether the next sweep resumes at the cursor or starts over.
    """

    entries: list[CheckpointEntry] = field(default_factory=list)
    cursor: int = 0
    last_run_at: int = 0
    completed: bool = False

    @property
    def ids(self) -> list[str]:
        return [e.id for e in self.entries]

    def start_index(self) -> int:
        if not self.entries or self.completed:
            return 0
        return self.cursor % len(self.entries)

    def to_document(self) -> dict[str, Any]:
        return {
            "entries": [{"id": e.id, "updated_at": e.updated_at} for e in self.entries],
            "cursor": self.cursor,
            "last_run_at": self.last_run_at,
            "completed": self.completed,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Ledger":
        return cls(
            entries=[
                CheckpointEntry(id=str(e["id"]), updated_at=int(e.get("updated_at") or NEVER_UPDATED))
                for e in document.get("entries") or []
            ],
            cursor=int(document.get("cursor") or 0),
            last_run_at=int(document.get("last_run_at") or 0),
            completed=bool(document.get("completed", False)),
        )


def reconcile(ledger: Ledger, identifiers: Iterable[str]) -> Ledger:
    """Return a copy of ``ledger`` with a never-updated entry appended per unseen id.

    Existing entries keep their order and position; the cursor is untouched.
    """
    known = set(ledger.ids)
    entries = [replace(e) for e in ledger.entries]
    for identifier in identifiers:
        if identifier not in known:
            entries.append(CheckpointEntry(id=identifier))
            known.add(identifier)
    return replace(ledger, entries=entries)


class CheckpointLedger:
    """Loads and persists the ledger document through ProtocolStore."""

    def __init__(
        self,
        store: ProtocolStore,
        name: str = LEDGER_NAME,
        log_file: Path | None = None,
    ) -> None:
        self.store = store
        self.name = name
        self.logger = setup_logger(self.__class__.__name__, log_file)

    def load(self) -> Ledger:
        """Return the persisted ledger, or an empty one when none exists yet."""
        document = self.store.load_checkpoint(self.name)
        if document is None:
            self.logger.info("No checkpoint '%s' found, starting with an empty ledger", self.name)
            return Ledger()
        ledger = Ledger.from_document(document)
        self.logger.info(
            "Loaded checkpoint '%s': %d entries, cursor=%d", self.name, len(ledger.entries), ledger.cursor
        )
        return ledger

    def save(self, ledger: Ledger) -> None:
        self.store.replace_checkpoint(self.name, ledger.to_document())

    def reconcile(self, ledger: Ledger, identifiers: Iterable[str]) -> Ledger:
        reconciled = reconcile(ledger, identifiers)
        added = len(reconciled.entries) - len(ledger.entries)
        if added:
            self.logger.info("Discovered %d new identifiers", added)
        return reconciled

    def record_success(self, ledger: Ledger, index: int, timestamp: int) -> Ledger:
        """Mark entry ``index`` refreshed at ``timestamp`` and persist the ledger."""
        ledger.entries[index].updated_at = timestamp
        ledger.cursor = index
        ledger.last_run_at = timestamp
        ledger.completed = False
        self.save(ledger)
        return ledger

    def mark_complete(self, ledger: Ledger, timestamp: int) -> Ledger:
        """Record that a sweep reached the end of the entry list."""
        ledger.completed = True
        ledger.last_run_at = timestamp
        self.save(ledger)
        return ledger
