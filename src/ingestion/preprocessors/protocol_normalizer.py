"""Protocol detail preprocessor: nested per-chain series -> flat rows.

Output datasets:
    - tvl:    protocol_id, chain, date, total_liquidity_usd
    - tokens: protocol_id, chain, token, date, amount, amount_usd

``amount_usd`` is resolved by joining the holdings series (``tokens``) with the
valuation series (``tokensInUsd``) of the same chain on (token, date). Holdings
without a matching valuation get 0.0.

Dates are kept as the opaque epoch seconds DeFiLlama emits; they are not
aligned to days. Samples colliding on a natural key keep the last occurrence.
"""

from pathlib import Path

import pandas as pd

from src.ingestion.preprocessors.base_preprocessor import BasePreprocessor
from src.ingestion.types import ProtocolDetail

TVL_KEY = ["protocol_id", "chain", "date"]
TOKEN_KEY = ["protocol_id", "chain", "token", "date"]
VALUATION_KEY = ["chain", "token", "date"]


class ProtocolNormalizer(BasePreprocessor):
    """Decomposes a ProtocolDetail into TVL rows and token rows."""

    CATEGORY = "protocol"

    REQUIRED_COLUMNS = {
        "tvl": ["protocol_id", "chain", "date", "total_liquidity_usd"],
        "tokens": ["protocol_id", "chain", "token", "date", "amount", "amount_usd"],
    }

    def __init__(self, log_file: Path | None = None) -> None:
        super().__init__(log_file=log_file)

    def preprocess(self, identifier: str, detail: ProtocolDetail) -> dict[str, pd.DataFrame]:
        """Normalize every chain of ``detail`` for ``identifier``.

        Returns:
            {"tvl": DataFrame, "tokens": DataFrame}
        """
        result = {
            "tvl": self.normalize_tvl(identifier, detail),
            "tokens": self.normalize_tokens(identifier, detail),
        }
        for name, df in result.items():
            self.validate(df, name)

        self.logger.debug(
            "Normalized %s: %d chains, %d tvl rows, %d token rows",
            identifier,
            len(detail.chain_tvls),
            len(result["tvl"]),
            len(result["tokens"]),
        )
        return result

    def validate(self, df: pd.DataFrame, dataset: str) -> bool:
        required = self.REQUIRED_COLUMNS[dataset]
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise ValueError(f"{dataset} rows missing columns: {missing}")

        key = TVL_KEY if dataset == "tvl" else TOKEN_KEY
        if not df.empty and df.duplicated(subset=key).any():
            raise ValueError(f"{dataset} rows contain duplicate keys")
        return True

    def normalize_tvl(self, identifier: str, detail: ProtocolDetail) -> pd.DataFrame:
        records = [
            {
                "protocol_id": identifier,
                "chain": chain,
                "date": sample.date,
                "total_liquidity_usd": sample.total_liquidity_usd,
            }
            for chain, series in detail.chain_tvls.items()
            for sample in series.tvl
        ]
        df = pd.DataFrame.from_records(records, columns=self.REQUIRED_COLUMNS["tvl"])
        return df.drop_duplicates(subset=TVL_KEY, keep="last").reset_index(drop=True)

    def normalize_tokens(self, identifier: str, detail: ProtocolDetail) -> pd.DataFrame:
        holdings = pd.DataFrame.from_records(
            [
                {
                    "protocol_id": identifier,
                    "chain": chain,
                    "token": token,
                    "date": sample.date,
                    "amount": amount,
                }
                for chain, series in detail.chain_tvls.items()
                for sample in series.tokens
                for token, amount in sample.tokens.items()
            ],
            columns=["protocol_id", "chain", "token", "date", "amount"],
        )
        if holdings.empty:
            return pd.DataFrame(columns=self.REQUIRED_COLUMNS["tokens"])
        holdings = holdings.drop_duplicates(subset=TOKEN_KEY, keep="last")

        valuations = pd.DataFrame.from_records(
            [
                {"chain": chain, "token": token, "date": sample.date, "amount_usd": value}
                for chain, series in detail.chain_tvls.items()
                for sample in series.tokens_in_usd
                for token, value in sample.tokens.items()
            ],
            columns=["chain", "token", "date", "amount_usd"],
        )

        if valuations.empty:
            merged = holdings.assign(amount_usd=0.0)
        else:
            valuations = valuations.drop_duplicates(subset=VALUATION_KEY, keep="last")
            holdings["date"] = holdings["date"].astype("int64")
            valuations["date"] = valuations["date"].astype("int64")
            merged = holdings.merge(valuations, on=VALUATION_KEY, how="left")

        merged["amount_usd"] = pd.to_numeric(merged["amount_usd"], errors="coerce").fillna(0.0)
        return merged[self.REQUIRED_COLUMNS["tokens"]].reset_index(drop=True)
