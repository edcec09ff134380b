"""Typed views over DeFiLlama catalog payloads.

The API returns loosely shaped JSON: chain and token names are dynamic map
keys and some series are ``null`` for chains without token breakdowns. These
dataclasses pin the shape the sync relies on and keep the rest of the raw
summary payload around so it can be stored wholesale.
"""

from dataclasses import dataclass, field
from typing import Any


def _identifier(payload: dict[str, Any]) -> str:
    value = payload["id"]
    if isinstance(value, bool) or not isinstance(value, (str, int)) or value == "":
        raise ValueError(f"invalid protocol id: {value!r}")
    return str(value)


def _slug(payload: dict[str, Any]) -> str:
    value = payload["slug"]
    if not isinstance(value, str) or not value:
        raise ValueError(f"invalid protocol slug: {value!r}")
    return value


@dataclass(frozen=True)
class TvlSample:
    """One point of a chain's total-value series."""

    date: int
    total_liquidity_usd: float


@dataclass(frozen=True)
class TokenSample:
    """One point of a token series: token symbol -> value at ``date``."""

    date: int
    tokens: dict[str, float]


@dataclass
class ChainSeries:
    """The three time series DeFiLlama publishes per chain."""

    tvl: list[TvlSample] = field(default_factory=list)
    tokens: list[TokenSample] = field(default_factory=list)
    tokens_in_usd: list[TokenSample] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ChainSeries":
        return cls(
            tvl=[
                TvlSample(date=int(s["date"]), total_liquidity_usd=s["totalLiquidityUSD"])
                for s in payload.get("tvl") or []
            ],
            tokens=[
                TokenSample(date=int(s["date"]), tokens=dict(s.get("tokens") or {}))
                for s in payload.get("tokens") or []
            ],
            tokens_in_usd=[
                TokenSample(date=int(s["date"]), tokens=dict(s.get("tokens") or {}))
                for s in payload.get("tokensInUsd") or []
            ],
        )


@dataclass
class ProtocolSummary:
    """Catalog entry from ``GET /protocols``.

    ``payload`` holds every raw field so the summary can be written wholesale;
    ``current_chain_tvls`` is the denormalized snapshot refreshed from detail.
    """

    id: str
    name: str
    slug: str
    current_chain_tvls: dict[str, float] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ProtocolSummary":
        return cls(
            id=_identifier(payload),
            name=payload.get("name") or "",
            slug=_slug(payload),
            current_chain_tvls=dict(payload.get("chainTvls") or {}),
            payload=dict(payload),
        )

    def merge_snapshot(self, detail: "ProtocolDetail") -> None:
        """Take the current per-chain snapshot from a freshly fetched detail."""
        self.current_chain_tvls = dict(detail.current_chain_tvls)
        self.payload["currentChainTvls"] = dict(detail.current_chain_tvls)


@dataclass
class ProtocolDetail:
    """Per-protocol detail from ``GET /protocol/{slug}``."""

    id: str
    name: str
    chain_tvls: dict[str, ChainSeries] = field(default_factory=dict)
    current_chain_tvls: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ProtocolDetail":
        return cls(
            id=_identifier(payload),
            name=payload.get("name") or "",
            chain_tvls={
                chain: ChainSeries.from_api(series or {})
                for chain, series in (payload.get("chainTvls") or {}).items()
            },
            current_chain_tvls=dict(payload.get("currentChainTvls") or {}),
        )
