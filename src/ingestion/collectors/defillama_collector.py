"""DeFiLlama catalog collector.

Reads the protocol catalog from the public DeFiLlama API:
    - GET /protocols          every protocol with its current TVL snapshot
    - GET /protocol/{slug}    per-chain TVL, token holdings and token USD series

The collector only translates HTTP and payload problems into the sync error
taxonomy. 404 on a detail request becomes NotFoundError; every other network,
HTTP or decoding failure becomes TransportError.

API: https://defillama.com/docs/api

Example:
    >>> from src.ingestion.collectors.defillama_collector import DefiLlamaCollector
    >>>
    >>> collector = DefiLlamaCollector()
    >>> summaries = collector.list_summaries()
    >>> detail = collector.get_detail(summaries[0].slug)
"""

import time
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests

from src.ingestion.collectors.base_collector import BaseCollector
from src.ingestion.types import ProtocolDetail, ProtocolSummary
from src.shared.config import Config
from src.shared.exceptions import NotFoundError, TransportError


class DefiLlamaCollector(BaseCollector):
    """Collector for the DeFiLlama protocol catalog.

    Uses a requests session with automatic retry on 429/5xx. Detail requests
    are spaced by ``request_delay`` seconds to stay friendly with the public API.
    """

    SOURCE_NAME = "defillama"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        request_delay: float | None = None,
        log_file: Path | None = None,
    ) -> None:
        super().__init__(
            log_file=log_file or Config.LOGS_DIR / "collectors" / "defillama_collector.log",
        )
        self.base_url = (base_url or Config.DEFILLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.request_delay = (
            Config.DEFILLAMA_REQUEST_DELAY if request_delay is None else request_delay
        )
        self._session = self._create_session()
        self._last_request_time: float = 0.0
        self.logger.info("DefiLlamaCollector initialized, base_url=%s", self.base_url)

    # ------------------------------------------------------------------
    # BaseCollector interface
    # ------------------------------------------------------------------

    def list_summaries(self) -> list[ProtocolSummary]:
        """Fetch every protocol summary.

        Returns:
            Summaries in upstream order.

        Raises:
            TransportError: Network/HTTP failure or malformed payload.
        """
        payload = self._get_json("/protocols")
        if not isinstance(payload, list):
            raise TransportError(f"Expected a list from /protocols, got {type(payload).__name__}")

        try:
            summaries = [ProtocolSummary.from_api(p) for p in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed protocol summary: {e!r}") from e

        self.logger.info("Fetched %d protocol summaries", len(summaries))
        return summaries

    def get_detail(self, slug: str) -> ProtocolDetail:
        """Fetch the per-chain series for one protocol.

        Args:
            slug: Protocol slug, e.g. "aave-v3".

        Raises:
            NotFoundError: DeFiLlama does not know the slug.
            TransportError: Network/HTTP failure or malformed payload.
        """
        self._throttle()
        payload = self._get_json(f"/protocol/{quote(slug, safe='')}", identifier=slug)
        if not isinstance(payload, dict):
            raise TransportError(f"Expected an object for {slug}, got {type(payload).__name__}")

        try:
            detail = ProtocolDetail.from_api(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise TransportError(f"Malformed protocol detail for {slug}: {e!r}") from e

        self.logger.info("Fetched detail for %s (%d chains)", slug, len(detail.chain_tvls))
        return detail

    def health_check(self) -> bool:
        """Check API availability with a lightweight request."""
        try:
            with self._session.get(f"{self.base_url}/protocols", timeout=10, stream=True) as resp:
                return resp.ok
        except requests.exceptions.RequestException:
            return False

    # ------------------------------------------------------------------
    # Private: HTTP layer
    # ------------------------------------------------------------------

    def _throttle(self) -> None:
        elapsed = time.monotonic() - self._last_request_time
        if self._last_request_time and elapsed < self.request_delay:
            time.sleep(self.request_delay - elapsed)
        self._last_request_time = time.monotonic()

    def _get_json(self, path: str, identifier: str | None = None) -> Any:
        url = f"{self.base_url}{path}"
        self.logger.debug("GET %s", url)

        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status == 404 and identifier is not None:
                raise NotFoundError(identifier) from exc
            raise TransportError(f"GET {url} failed with HTTP {status}") from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"GET {url} returned invalid JSON") from exc
