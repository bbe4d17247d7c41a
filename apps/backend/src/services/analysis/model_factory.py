"""Model factory for prompt analysis.

Builds the pydantic-ai Model for the configured provider. Anthropic is the
default; Gemini is supported as an alternative.

Usage:
    from services.analysis.model_factory import get_analysis_model

    model = get_analysis_model(http_client)  # Returns pydantic-ai Model
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.google import GoogleProvider

from core.config import get_settings


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)


def _is_gemini_provider() -> bool:
    return get_settings().LLM_PROVIDER == "gemini"


def _validate_anthropic_credentials() -> bool:
    """Validate that an Anthropic API key is configured."""
    if not get_settings().ANTHROPIC_API_KEY:
        logger.warning("Anthropic API key not configured")
        return False
    return True


def _validate_gemini_credentials() -> bool:
    """Validate that Gemini API key is configured."""
    if not get_settings().GEMINI_API_KEY:
        logger.warning("Gemini API key not configured")
        return False
    return True


def _create_anthropic_model(
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    settings = get_settings()
    provider = AnthropicProvider(
        api_key=settings.ANTHROPIC_API_KEY,
        http_client=http_client,
    )
    return AnthropicModel(model_name, provider=provider)


def _create_gemini_model(
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    """Create a Google Gemini model with the specified model name."""
    settings = get_settings()
    provider = GoogleProvider(
        api_key=settings.GEMINI_API_KEY,
        http_client=http_client,
    )
    return cast(Model, GoogleModel(model_name, provider=provider))


def get_analysis_model(http_client: AsyncClient | None = None) -> Model:
    """Get the analysis model based on configuration.

    Args:
        http_client: Optional shared HTTP client owned by the caller.

    Returns:
        A pydantic-ai Model configured for the selected provider.

    Raises:
        ValueError: The selected provider has no credentials configured.
    """
    settings = get_settings()

    if _is_gemini_provider():
        if not _validate_gemini_credentials():
            raise ValueError(
                "LLM_PROVIDER=gemini but GEMINI_API_KEY is not configured."
            )
        logger.info(f"Using Gemini analysis model: {settings.ANALYSIS_MODEL}")
        return _create_gemini_model(settings.ANALYSIS_MODEL, http_client)

    if not _validate_anthropic_credentials():
        raise ValueError(
            "No valid LLM provider configured. Set ANTHROPIC_API_KEY, or "
            "LLM_PROVIDER=gemini with GEMINI_API_KEY."
        )

    logger.info(f"Using Anthropic analysis model: {settings.ANALYSIS_MODEL}")
    return _create_anthropic_model(settings.ANALYSIS_MODEL, http_client)
