"""Consumer-side aggregation of the analysis SSE stream.

The aggregator decodes ``data:`` event lines, appends text deltas to a single
buffer and re-runs the extractor over the whole buffer after each delta.
Every published result replaces the previous one: the extractor re-derives
everything from scratch, so each result is self-consistent on its own.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterable, Callable

from schemas.analysis import SSE_DATA_PREFIX, SSE_DONE_SENTINEL, PartialAnalysis
from services.analysis.exceptions import ProducerError
from services.analysis.extractor import extract_partial_result
from services.analysis.rules import RULE_NAMES


logger = logging.getLogger(__name__)

Extractor = Callable[[str], PartialAnalysis | None]

PHASE_STARTED = "Analyzing your prompt..."
PHASE_RULES = "Evaluating rules..."
PHASE_DONE = "Done!"


def describe_phase(result: PartialAnalysis | None) -> str:
    """Human-readable progress label for the most recent result."""
    if result is None:
        return PHASE_STARTED
    if result.improved_prompt is not None:
        return PHASE_DONE
    if result.rule_count:
        return f"{PHASE_RULES} ({result.rule_count}/{len(RULE_NAMES)})"
    if result.score is not None:
        return PHASE_RULES
    return PHASE_STARTED


class AnalysisStreamAggregator:
    """Accumulates one analysis stream and tracks its best-known result.

    One instance serves one request at a time. ``reset()`` discards the
    buffer and makes any ``consume()`` still running for the previous request
    stop at its next fragment without publishing anything.
    """

    def __init__(self, extractor: Extractor = extract_partial_result) -> None:
        self._extract = extractor
        self._buffer = ""
        self._result: PartialAnalysis | None = None
        self._finished = False
        self._run = 0

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def result(self) -> PartialAnalysis | None:
        return self._result

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def phase(self) -> str:
        return describe_phase(self._result)

    def reset(self) -> None:
        """Start over: drop the buffer and result, orphan any running consume()."""
        self._run += 1
        self._buffer = ""
        self._result = None
        self._finished = False

    def feed(self, fragment: str) -> PartialAnalysis | None:
        """Process every event line in ``fragment``.

        Returns:
            The newest result published while processing this fragment, or
            None if it published nothing.

        Raises:
            ProducerError: the stream reported an error. The aggregator is
                finished and ignores anything fed afterwards.
        """
        if self._finished:
            return None

        published: PartialAnalysis | None = None
        for line in fragment.split("\n"):
            delta = self._decode_line(line.rstrip("\r"))
            if not delta:
                continue
            self._buffer += delta
            partial = self._extract(self._buffer)
            if partial is not None:
                self._result = partial
                published = partial
        return published

    def finish(self) -> PartialAnalysis | None:
        """Run the final extraction pass and publish its result as definitive."""
        if not self._finished:
            self._finished = True
            final = self._extract(self._buffer)
            if final is not None:
                self._result = final
        return self._result

    async def consume(
        self, fragments: AsyncIterable[str]
    ) -> AsyncGenerator[PartialAnalysis, None]:
        """Feed fragments in arrival order, yielding each published result.

        The definitive result from ``finish()`` is yielded last. If ``reset()``
        is called while this is suspended, the remaining fragments of the old
        stream are ignored and the generator ends without a final pass.
        """
        run = self._run
        async for fragment in fragments:
            if run != self._run:
                logger.debug("Dropping fragment from a superseded analysis run")
                return
            published = self.feed(fragment)
            if published is not None:
                yield published
            if self._finished:
                return
        if run != self._run:
            return
        final = self.finish()
        if final is not None:
            yield final

    def _decode_line(self, line: str) -> str | None:
        """Return the text delta carried by one event line, if any."""
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        data = line[len(SSE_DATA_PREFIX) :]
        if data == SSE_DONE_SENTINEL:
            return None
        try:
            payload = json.loads(data)
        except ValueError:
            # Payload split across fragments; the stream carries on
            logger.debug("Skipping undecodable event line (%d chars)", len(data))
            return None
        if not isinstance(payload, dict):
            return None

        error = payload.get("error")
        if error:
            self._finished = True
            raise ProducerError(str(error))

        text = payload.get("text")
        return text if isinstance(text, str) else None
