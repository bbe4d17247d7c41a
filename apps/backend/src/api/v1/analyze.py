"""Prompt analysis streaming endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic_ai import Agent

from core.config import get_settings
from core.exceptions import PromptRejectedError
from core.observability import get_tracer
from dependencies.analysis import AnalysisAgentDep
from schemas.analysis import SSE_DONE_EVENT, AnalysisStreamEvent, AnalyzeRequest
from services.analysis.agent import stream_analysis_text


logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

router = APIRouter(tags=["analysis"])

INVALID_PROMPT_MESSAGE = "A valid 'prompt' string is required."

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _get_user_friendly_error_message(exc: Exception) -> str:
    """Convert provider exceptions into messages safe to show the user."""
    exc_str = str(exc).lower()

    if "529" in exc_str or "503" in exc_str or "overloaded" in exc_str:
        return (
            "The AI service is currently experiencing high demand. "
            "Please wait a moment and try again."
        )

    if "429" in exc_str or "rate limit" in exc_str or "quota" in exc_str:
        return "Too many requests. Please wait a minute before trying again."

    if "timeout" in exc_str or "timed out" in exc_str:
        return "The analysis took too long to complete. Please try again."

    if "connection" in exc_str or "network" in exc_str:
        return (
            "There was a network issue connecting to the AI service. "
            "Please try again."
        )

    logger.error(f"Unhandled analysis error: {exc.__class__.__name__}")
    return "Stream error"


async def build_analysis_stream(
    agent: Agent[None, str], prompt: str
) -> AsyncGenerator[str, None]:
    """Relay model text deltas as SSE ``data:`` events.

    A successful stream ends with ``data: [DONE]``. A failing one ends with a
    single ``{"error": ...}`` event and no sentinel.
    """
    # Spans stay detached: an async generator may resume in another context
    span = _tracer.start_span("analyze_prompt")
    span.set_attribute("prompt.length", len(prompt))
    delta_count = 0
    try:
        async for delta in stream_analysis_text(agent, prompt):
            delta_count += 1
            yield AnalysisStreamEvent(text=delta).to_sse()
    except Exception as exc:
        logger.exception("Analysis stream failed after %d deltas", delta_count)
        span.record_exception(exc)
        yield AnalysisStreamEvent(error=_get_user_friendly_error_message(exc)).to_sse()
        return
    finally:
        span.set_attribute("analysis.delta_count", delta_count)
        span.end()

    logger.info("Analysis stream complete (%d deltas)", delta_count)
    yield SSE_DONE_EVENT


@router.post(
    "/analyze",
    summary="Score a prompt against the five rules and stream the analysis",
)
async def analyze_prompt(
    payload: AnalyzeRequest,
    agent: AnalysisAgentDep,
) -> StreamingResponse:
    """Stream the model's analysis JSON as Server-Sent Events.

    Event JSON schema (sent in `data:` lines):
      text: a fragment of the analysis JSON, to be appended in order
      error: terminal failure message; no further events follow
    The literal `data: [DONE]` marks successful completion.
    """
    prompt = payload.prompt.strip()
    if not prompt:
        raise PromptRejectedError(INVALID_PROMPT_MESSAGE)

    max_chars = get_settings().MAX_PROMPT_CHARS
    if len(prompt) > max_chars:
        raise PromptRejectedError(f"Prompt must be at most {max_chars} characters.")

    return StreamingResponse(
        build_analysis_stream(agent, prompt),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
