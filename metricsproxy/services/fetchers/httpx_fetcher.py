"""
Httpx Fetcher - HTTP Client für Upstream-Fetches
"""

import logging
from typing import Optional

import httpx

from .types import ErrorKind, FetchOutcome

logger = logging.getLogger(__name__)

USER_AGENT = "metrics-proxy/1.0"


class HttpxFetcher:
    """
    Fetcht Upstream-URLs mit httpx und einem AsyncClient.

    Der Client wird einmal pro Aggregations-Request erstellt und für alle
    Fetches dieses Requests wiederverwendet. Implementiert Context Manager
    für garantierte Ressourcen-Freigabe.

    Kein Retry, kein eigener Timeout: es gilt der httpx-Default.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Context Manager Entry - stellt Client bereit"""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context Manager Exit - schließt Client garantiert"""
        await self.close()

    async def _ensure_client(self):
        """Stellt sicher, dass ein Client verfügbar ist"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT}
            )
            logger.debug("Httpx client created")

    async def close(self):
        """Schließt den Client"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("Httpx client closed")

    async def fetch(self, url: str) -> FetchOutcome:
        """
        Fetcht eine URL mit genau einem GET.

        Fehler werden nicht geworfen, sondern als FetchOutcome zurückgegeben:
        - Transport-Fehler (Connect, DNS, Timeout) -> TRANSPORT_ERROR
        - Status != 200 -> BAD_STATUS
        - Fehler beim Lesen des Bodys -> BODY_READ_ERROR

        Args:
            url: Die zu fetchende URL

        Returns:
            FetchOutcome
        """
        await self._ensure_client()

        try:
            # stream() gibt die Connection beim Verlassen des Blocks immer frei
            async with self._client.stream("GET", url) as response:
                if response.status_code != httpx.codes.OK:
                    return FetchOutcome.failure(
                        url,
                        ErrorKind.BAD_STATUS,
                        f"bad status for {url}: {response.status_code} {response.reason_phrase}"
                    )

                try:
                    await response.aread()
                except Exception as e:
                    return FetchOutcome.failure(
                        url,
                        ErrorKind.BODY_READ_ERROR,
                        f"failed to read body from {url}: {e!r}"
                    )

                return FetchOutcome.success(url, response.text)

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return FetchOutcome.failure(
                url,
                ErrorKind.TRANSPORT_ERROR,
                f"failed to get {url}: {e!r}"
            )

        except Exception as e:
            # Unerwartete Fehler bleiben ebenfalls Daten und verlassen den Fetch nie
            logger.error(f"Unexpected error fetching {url}: {e!r}")
            return FetchOutcome.failure(
                url,
                ErrorKind.TRANSPORT_ERROR,
                f"failed to get {url}: {e!r}"
            )
