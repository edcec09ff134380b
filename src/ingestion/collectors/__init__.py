"""Collectors package."""

from src.ingestion.collectors.base_collector import BaseCollector
from src.ingestion.collectors.defillama_collector import DefiLlamaCollector

__all__ = ["BaseCollector", "DefiLlamaCollector"]
