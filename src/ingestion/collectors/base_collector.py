"""Abstract base class for catalog collectors.

A catalog collector exposes two reads against an upstream service:
- the full list of summary records
- one detail record per lookup key

Collectors are responsible ONLY for transport and payload shape. They raise
TransportError or NotFoundError and never write to the store; normalization
is handled by preprocessors and persistence by the sync engine.
"""

from abc import ABC, abstractmethod
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from src.ingestion.types import ProtocolDetail, ProtocolSummary
from src.shared.utils import setup_logger


class BaseCollector(ABC):
    """Base class for all catalog collectors.

    Subclasses must define:
        SOURCE_NAME (str): identifier used in log names (e.g. "defillama").

    Subclasses must implement:
        list_summaries(): fetch every summary record.
        get_detail(): fetch one detail record.
        health_check(): verify the source is reachable.
    """

    SOURCE_NAME: str  # e.g. "defillama"

    MAX_RETRIES = 3
    RETRY_BACKOFF = 2.0
    RETRY_STATUSES = (429, 500, 502, 503, 504)

    def __init__(self, log_file: Path | None = None) -> None:
        """Initialize the collector.

        Args:
            log_file: Optional path for file-based logging.
        """
        self.logger = setup_logger(self.__class__.__name__, log_file)

    @abstractmethod
    def list_summaries(self) -> list[ProtocolSummary]:
        """Fetch the full summary list.

        Raises:
            TransportError: Network, HTTP or payload failure.
        """
        ...

    @abstractmethod
    def get_detail(self, slug: str) -> ProtocolDetail:
        """Fetch the detail record for one lookup key.

        Raises:
            NotFoundError: The key is unknown upstream.
            TransportError: Network, HTTP or payload failure.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Verify the data source is reachable and responding.

        Returns:
            True if the source is available, False otherwise.
        """
        ...

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=self.MAX_RETRIES,
            backoff_factor=self.RETRY_BACKOFF,
            status_forcelist=list(self.RETRY_STATUSES),
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session
