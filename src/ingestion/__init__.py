"""Data ingestion module - collectors, preprocessors and payload types."""

from src.ingestion.collectors import BaseCollector, DefiLlamaCollector
from src.ingestion.preprocessors import BasePreprocessor, ProtocolNormalizer
from src.ingestion.types import (
    ChainSeries,
    ProtocolDetail,
    ProtocolSummary,
    TokenSample,
    TvlSample,
)

__all__ = [
    "BaseCollector",
    "DefiLlamaCollector",
    "BasePreprocessor",
    "ProtocolNormalizer",
    "ChainSeries",
    "ProtocolDetail",
    "ProtocolSummary",
    "TokenSample",
    "TvlSample",
]
