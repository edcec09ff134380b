"""Data preprocessors for detail -> normalized row transformation."""

from src.ingestion.preprocessors.base_preprocessor import BasePreprocessor
from src.ingestion.preprocessors.protocol_normalizer import ProtocolNormalizer

__all__ = [
    "BasePreprocessor",
    "ProtocolNormalizer",
]
