"""Database engine, session scope, ORM models, and the protocol store."""

from .engine import create_db_engine, make_session_factory, session_scope
from .models import Base, Protocol, ProtocolToken, ProtocolTvl, SyncCheckpoint
from .storage import TOKEN_COLUMNS, TVL_COLUMNS, ProtocolStore

__all__ = [
    # ORM infrastructure
    "Base",
    "create_db_engine",
    "make_session_factory",
    "session_scope",
    # ORM models
    "Protocol",
    "ProtocolTvl",
    "ProtocolToken",
    "SyncCheckpoint",
    # Storage
    "ProtocolStore",
    "TVL_COLUMNS",
    "TOKEN_COLUMNS",
]
