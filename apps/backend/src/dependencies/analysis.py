"""Analysis agent dependency.

The application lifespan owns one ``httpx.AsyncClient`` (``app.state.http_client``).
The agent is built on first use on top of that client and kept on
``app.state`` for the lifetime of the app. Tests override
``get_analysis_agent`` with an agent around a deterministic model.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from pydantic_ai import Agent

from services.analysis.agent import create_analysis_agent
from services.analysis.model_factory import get_analysis_model


logger = logging.getLogger(__name__)


def get_analysis_agent(request: Request) -> Agent[None, str]:
    state = request.app.state
    agent: Agent[None, str] | None = getattr(state, "analysis_agent", None)
    if agent is not None:
        return agent

    try:
        model = get_analysis_model(getattr(state, "http_client", None))
    except ValueError as exc:
        logger.error("Analysis model unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Prompt analysis is not configured",
        ) from exc

    agent = create_analysis_agent(model)
    state.analysis_agent = agent
    return agent


AnalysisAgentDep = Annotated[Agent[None, str], Depends(get_analysis_agent)]
