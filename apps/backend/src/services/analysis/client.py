"""HTTP client for the streaming analysis endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

import httpx

from schemas.analysis import PartialAnalysis
from services.analysis.aggregator import AnalysisStreamAggregator
from services.analysis.exceptions import TransportError


logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/v1/analyze"


class AnalysisClient:
    """Streams an analysis from the API and yields progressively richer results.

    The ``httpx.AsyncClient`` is owned by the caller (base URL, timeouts,
    transport). Starting a new analysis resets the client's aggregator, so a
    previous run that is still being iterated stops publishing.

    Example:
        async with httpx.AsyncClient(base_url="http://localhost:8000") as http:
            client = AnalysisClient(http)
            async for partial in client.analyze("Write me a blog post"):
                print(client.aggregator.phase)
    """

    def __init__(self, http_client: httpx.AsyncClient, path: str = ANALYZE_PATH):
        self._http = http_client
        self._path = path
        self.aggregator = AnalysisStreamAggregator()

    async def analyze(self, prompt: str) -> AsyncGenerator[PartialAnalysis, None]:
        """Yield each published result; the last one is the definitive result.

        Raises:
            ProducerError: The analysis reported an error mid-stream.
            TransportError: The request failed or returned a non-success status.
        """
        aggregator = self.aggregator
        aggregator.reset()
        try:
            async with self._http.stream(
                "POST", self._path, json={"prompt": prompt}
            ) as response:
                if not response.is_success:
                    logger.warning(
                        "Analysis request rejected with status %s",
                        response.status_code,
                    )
                    raise TransportError()
                async for partial in aggregator.consume(response.aiter_lines()):
                    yield partial
        except httpx.HTTPError as exc:
            logger.warning("Analysis transport failed: %s", exc.__class__.__name__)
            raise TransportError() from exc
