"""pydantic-ai agent that produces the raw analysis JSON text."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from core.config import get_settings
from services.analysis.rules import ANALYSIS_SYSTEM_PROMPT, build_user_message


def create_analysis_agent(model: Model | str) -> Agent[None, str]:
    """Create the analysis agent around ``model``.

    The output is plain text: the model is instructed to emit the analysis
    JSON itself, which is streamed to the caller and parsed incrementally on
    the consuming side rather than validated here.
    """
    settings = get_settings()
    return Agent(
        model,
        output_type=str,
        system_prompt=ANALYSIS_SYSTEM_PROMPT,
        model_settings=ModelSettings(max_tokens=settings.ANALYSIS_MAX_TOKENS),
    )


async def stream_analysis_text(
    agent: Agent[None, str], prompt: str
) -> AsyncGenerator[str, None]:
    """Yield the model's response to ``prompt`` as text deltas."""
    async with agent.run_stream(build_user_message(prompt)) as result:
        async for delta in result.stream_text(delta=True):
            if delta:
                yield delta
