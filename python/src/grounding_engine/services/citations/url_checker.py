"""
URL Accessibility Checker.

Probes URL citations that are still NOT_CHECKED with a HEAD request:
2xx-3xx -> UNGROUNDED_VALID, anything else -> UNGROUNDED_BROKEN, and a
transport failure or any other probe error -> UNGROUNDED_BROKEN with
status 0.

Probes run in parallel behind a semaphore of 10, follow at most 5
redirects (the last response counts), and the call waits for the whole
batch. Output always has the same length and order as the input.
"""

import asyncio
import logging
from typing import List, Optional

import httpx

from ...models.citation import Citation, CitationType, ValidationStatus
from ...monitoring.metrics import url_probes_total

logger = logging.getLogger(__name__)


class URLAccessibilityChecker:
    """
    Bounded-parallel URL liveness prober.

    Example:
        >>> checker = URLAccessibilityChecker()
        >>> citations = await checker.check(citations)
        >>> citations[0].http_status_code
        200
    """

    MAX_CONCURRENT = 10
    PROBE_TIMEOUT = 10.0
    MAX_REDIRECTS = 5

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize checker.

        Args:
            http_client: Client to probe with (a fresh client per batch if None)
        """
        self._http_client = http_client

    async def check(self, citations: List[Citation]) -> List[Citation]:
        """
        Probe every eligible URL citation.

        Args:
            citations: Citations (mutated in place)

        Returns:
            The same citations, same order
        """
        targets = [
            c for c in citations
            if c.type == CitationType.URL
            and c.validation_status == ValidationStatus.NOT_CHECKED
        ]
        if not targets:
            return citations

        logger.info(f"Probing {len(targets)} URLs (max {self.MAX_CONCURRENT} concurrent)")
        semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

        if self._http_client is not None:
            await self._probe_all(self._http_client, targets, semaphore)
        else:
            async with httpx.AsyncClient(timeout=self.PROBE_TIMEOUT) as client:
                await self._probe_all(client, targets, semaphore)

        return citations

    async def _probe_all(
        self,
        client: httpx.AsyncClient,
        targets: List[Citation],
        semaphore: asyncio.Semaphore,
    ) -> None:
        async def bounded(citation: Citation) -> None:
            async with semaphore:
                await self._probe(client, citation)

        await asyncio.gather(*(bounded(c) for c in targets))

    async def _probe(self, client: httpx.AsyncClient, citation: Citation) -> None:
        try:
            status_code = await asyncio.wait_for(
                self._head(client, citation.value),
                timeout=self.PROBE_TIMEOUT,
            )
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as e:
            logger.debug(f"URL probe failed for {citation.value}: {e}")
            citation.resolve(
                ValidationStatus.UNGROUNDED_BROKEN,
                f"Request failed: {e}",
                is_valid=False,
                http_status_code=0,
            )
            url_probes_total.labels(outcome="transport_error").inc()
            return
        except Exception as e:
            # One failing probe must not abort the batch
            logger.warning(f"Unexpected error probing {citation.value}: {e}")
            citation.resolve(
                ValidationStatus.UNGROUNDED_BROKEN,
                f"Request failed: {e}",
                is_valid=False,
                http_status_code=0,
            )
            url_probes_total.labels(outcome="error").inc()
            return

        if 200 <= status_code < 400:
            citation.resolve(
                ValidationStatus.UNGROUNDED_VALID,
                f"URL accessible (HTTP {status_code})",
                is_valid=True,
                http_status_code=status_code,
            )
            url_probes_total.labels(outcome="accessible").inc()
        else:
            citation.resolve(
                ValidationStatus.UNGROUNDED_BROKEN,
                f"URL broken (HTTP {status_code})",
                is_valid=False,
                http_status_code=status_code,
            )
            url_probes_total.labels(outcome="broken").inc()

    async def _head(self, client: httpx.AsyncClient, url: str) -> int:
        """HEAD with a manual redirect cap; the last response's status wins."""
        response = await client.head(url, follow_redirects=False)
        hops = 0
        while response.next_request is not None and hops < self.MAX_REDIRECTS:
            response = await client.send(response.next_request, follow_redirects=False)
            hops += 1
        return response.status_code
