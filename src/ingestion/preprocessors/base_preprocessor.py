"""Abstract base class for all detail preprocessors.

Enforces the normalized row contract:
- One flat row per (identifier, series key..., date)
- Standardized column names across all datasets
- Deduplicated on the natural key, so rows satisfy the store's unique indexes

Preprocessors are responsible for nested detail -> flat rows transformation.
They never fetch and never write; collectors and the sync engine do that.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import pandas as pd

from src.shared.utils import setup_logger


class BasePreprocessor(ABC):
    """Base class for all detail preprocessors.

    Subclasses must define:
        CATEGORY (str): data category for log names (e.g., "protocol").

    Subclasses must implement:
        preprocess(): turn one detail record into normalized DataFrames.
        validate(): ensure a DataFrame conforms to the row contract.
    """

    CATEGORY: str  # e.g. "protocol"

    def __init__(self, log_file: Path | None = None) -> None:
        """Initialize the preprocessor.

        Args:
            log_file: Optional path for file-based logging.
        """
        self.logger = setup_logger(self.__class__.__name__, log_file)

    @abstractmethod
    def preprocess(self, identifier: str, detail: Any) -> dict[str, pd.DataFrame]:
        """Transform one detail record into normalized rows.

        Args:
            identifier: Record identifier stamped on every row.
            detail: Parsed detail record.

        Returns:
            Mapping of dataset name to normalized DataFrame.
        """
        ...

    @abstractmethod
    def validate(self, df: pd.DataFrame, dataset: str) -> bool:
        """Validate that DataFrame conforms to the row contract.

        Args:
            df: DataFrame to validate.
            dataset: Dataset name the frame belongs to.

        Returns:
            True if valid.

        Raises:
            ValueError: If validation fails with details.
        """
        ...

    @staticmethod
    def to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
        """Convert a normalized DataFrame into insertable row dicts."""
        if df.empty:
            return []
        return df.to_dict(orient="records")
