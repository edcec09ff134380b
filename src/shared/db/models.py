from sqlalchemy import (
    JSON,
    TIMESTAMP,
    BigInteger,
    Boolean,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

# Deterministic constraint names on every backend
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


class Protocol(Base):
    __tablename__ = "protocols"

    id = Column(Integer, primary_key=True)
    protocol_id = Column(String(100), nullable=False)
    name = Column(String(200))
    slug = Column(String(200), nullable=False)
    current_chain_tvls = Column(JSON)
    payload = Column(JSON)
    synced_at = Column(TIMESTAMP(timezone=True))

    __table_args__ = (
        UniqueConstraint("protocol_id"),
        Index("idx_protocols_slug", "slug"),
    )


class ProtocolTvl(Base):
    __tablename__ = "protocol_tvls"

    id = Column(Integer, primary_key=True)
    protocol_id = Column(String(100), nullable=False)
    chain = Column(String(100), nullable=False)
    date = Column(BigInteger, nullable=False)
    total_liquidity_usd = Column(Float)

    __table_args__ = (
        UniqueConstraint("protocol_id", "chain", "date"),
        Index("idx_protocol_tvls_protocol", "protocol_id"),
    )


class ProtocolToken(Base):
    __tablename__ = "protocol_tokens"

    id = Column(Integer, primary_key=True)
    protocol_id = Column(String(100), nullable=False)
    chain = Column(String(100), nullable=False)
    token = Column(String(200), nullable=False)
    date = Column(BigInteger, nullable=False)
    amount = Column(Float)
    amount_usd = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint("protocol_id", "chain", "token", "date"),
        Index("idx_protocol_tokens_protocol", "protocol_id"),
    )


class SyncCheckpoint(Base):
    __tablename__ = "sync_checkpoints"

    name = Column(String(100), primary_key=True)
    entries = Column(JSON, nullable=False)
    cursor = Column(Integer, nullable=False, default=0)
    last_run_at = Column(BigInteger, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
