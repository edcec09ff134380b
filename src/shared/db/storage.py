"""
Relational storage layer for the protocol sync.

ProtocolStore exposes the four logical collections the sync writes to:

    protocols          unique on protocol_id              delete-by-key + insert (all, each sweep)
    protocol_tvls      unique on (protocol_id, chain, date)   delete-by-identifier + bulk insert
    protocol_tokens    unique on (protocol_id, chain, token, date)
    sync_checkpoints   singleton document per name        delete-by-id + insert

Every public write runs inside one transaction and every SQLAlchemy failure is
re-raised as StoreError, so callers only deal with the sync error taxonomy.

Example:

    from src.shared.db import ProtocolStore, create_db_engine

    store = ProtocolStore(create_db_engine("sqlite:///data/defillama.db"))
    store.initialize()
    store.write_summaries(summaries)
    store.write_protocol(summary, tvl_rows, token_rows)
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.ingestion.types import ProtocolSummary
from src.shared.exceptions import StoreError
from src.shared.utils import setup_logger, utc_now

from .engine import make_session_factory, session_scope
from .models import Base, Protocol, ProtocolToken, ProtocolTvl, SyncCheckpoint

TVL_COLUMNS = ("protocol_id", "chain", "date", "total_liquidity_usd")
TOKEN_COLUMNS = ("protocol_id", "chain", "token", "date", "amount", "amount_usd")

# Max identifiers per IN (...) list
SUMMARY_CHUNK_SIZE = 500


class ProtocolStore:
    """Durable store backed by SQLAlchemy (Postgres in production, SQLite in tests)."""

    def __init__(self, engine: Engine, log_file: Path | None = None) -> None:
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        self.logger = setup_logger(self.__class__.__name__, log_file)

    @contextmanager
    def _transaction(self, action: str):
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            raise StoreError(f"{action} failed: {e}") from e

    def initialize(self) -> None:
        """Create tables and unique indexes if they do not exist."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Database initialization failed: {e}") from e
        self.logger.info("Store initialized (%s)", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()
        self.logger.info("Store connections released")

    # ------------------------------------------------------------------
    # Protocol data
    # ------------------------------------------------------------------

    def write_protocol(
        self,
        summary: ProtocolSummary,
        tvl_rows: list[dict[str, Any]],
        token_rows: list[dict[str, Any]],
    ) -> None:
        """Replace everything stored for one protocol in a single transaction.

        TVL and token rows are deleted identifier-wide (all chains) before the
        new batch is inserted, so chains that vanished upstream disappear too.
        """
        with self._transaction(f"Writing protocol {summary.id}") as session:
            session.execute(delete(ProtocolTvl).where(ProtocolTvl.protocol_id == summary.id))
            if tvl_rows:
                session.execute(insert(ProtocolTvl), [_pick(r, TVL_COLUMNS) for r in tvl_rows])

            session.execute(delete(ProtocolToken).where(ProtocolToken.protocol_id == summary.id))
            if token_rows:
                session.execute(insert(ProtocolToken), [_pick(r, TOKEN_COLUMNS) for r in token_rows])

            session.execute(delete(Protocol).where(Protocol.protocol_id == summary.id))
            session.add(
                Protocol(
                    protocol_id=summary.id,
                    name=summary.name,
                    slug=summary.slug,
                    current_chain_tvls=summary.current_chain_tvls,
                    payload=summary.payload,
                    synced_at=utc_now(),
                )
            )

        self.logger.debug(
            "Stored %s: %d tvl rows, %d token rows", summary.id, len(tvl_rows), len(token_rows)
        )

    def write_summaries(self, summaries: list[ProtocolSummary]) -> None:
        """Upsert every catalog summary (delete-by-key + insert, one transaction)."""
        # Last occurrence wins, same as the sweep's id lookup
        summaries = list({s.id: s for s in summaries}.values())
        if not summaries:
            return

        synced_at = utc_now()
        with self._transaction(f"Writing {len(summaries)} protocol summaries") as session:
            for start in range(0, len(summaries), SUMMARY_CHUNK_SIZE):
                chunk = summaries[start : start + SUMMARY_CHUNK_SIZE]
                session.execute(
                    delete(Protocol).where(Protocol.protocol_id.in_([s.id for s in chunk]))
                )
                session.execute(
                    insert(Protocol),
                    [
                        {
                            "protocol_id": s.id,
                            "name": s.name,
                            "slug": s.slug,
                            "current_chain_tvls": s.current_chain_tvls,
                            "payload": s.payload,
                            "synced_at": synced_at,
                        }
                        for s in chunk
                    ],
                )

        self.logger.info("Stored %d protocol summaries", len(summaries))

    def get_protocol(self, protocol_id: str) -> dict[str, Any] | None:
        with self._transaction(f"Reading protocol {protocol_id}") as session:
            row = session.scalars(select(Protocol).where(Protocol.protocol_id == protocol_id)).first()
            if row is None:
                return None
            return {
                "protocol_id": row.protocol_id,
                "name": row.name,
                "slug": row.slug,
                "current_chain_tvls": row.current_chain_tvls,
                "payload": row.payload,
            }

    def get_tvl_rows(self, protocol_id: str) -> list[dict[str, Any]]:
        with self._transaction(f"Reading tvl rows for {protocol_id}") as session:
            rows = session.scalars(
                select(ProtocolTvl)
                .where(ProtocolTvl.protocol_id == protocol_id)
                .order_by(ProtocolTvl.chain, ProtocolTvl.date)
            ).all()
            return [{c: getattr(r, c) for c in TVL_COLUMNS} for r in rows]

    def get_token_rows(self, protocol_id: str) -> list[dict[str, Any]]:
        with self._transaction(f"Reading token rows for {protocol_id}") as session:
            rows = session.scalars(
                select(ProtocolToken)
                .where(ProtocolToken.protocol_id == protocol_id)
                .order_by(ProtocolToken.chain, ProtocolToken.token, ProtocolToken.date)
            ).all()
            return [{c: getattr(r, c) for c in TOKEN_COLUMNS} for r in rows]

    # ------------------------------------------------------------------
    # Checkpoint documents
    # ------------------------------------------------------------------

    def load_checkpoint(self, name: str) -> dict[str, Any] | None:
        """Return the checkpoint document stored under ``name``, or None."""
        with self._transaction(f"Loading checkpoint {name}") as session:
            row = session.get(SyncCheckpoint, name)
            if row is None:
                return None
            return {
                "name": row.name,
                "entries": list(row.entries),
                "cursor": row.cursor,
                "last_run_at": row.last_run_at,
                "completed": row.completed,
            }

    def replace_checkpoint(self, name: str, document: dict[str, Any]) -> None:
        """Supersede the checkpoint document (delete + insert, one transaction)."""
        with self._transaction(f"Saving checkpoint {name}") as session:
            session.execute(delete(SyncCheckpoint).where(SyncCheckpoint.name == name))
            session.execute(
                insert(SyncCheckpoint),
                [
                    {
                        "name": name,
                        "entries": document["entries"],
                        "cursor": document["cursor"],
                        "last_run_at": document["last_run_at"],
                        "completed": document.get("completed", False),
                    }
                ],
            )


def _pick(row: dict[str, Any], columns: tuple[str, ...]) -> dict[str, Any]:
    return {c: row[c] for c in columns}
