"""Shared test fixtures for pytest.

ENVIRONMENT is pinned to ``test`` before the app is imported so settings are
built from defaults only, without reading any .env file. Model requests are
blocked globally: every test that streams an analysis does so through a
``FunctionModel`` that replays canned text.
"""

import copy
import json
import os
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from pydantic_ai import Agent, models
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models.function import AgentInfo, FunctionModel


os.environ.setdefault("ENVIRONMENT", "test")

from dependencies.analysis import get_analysis_agent  # noqa: E402
from main import app  # noqa: E402
from services.analysis.agent import create_analysis_agent  # noqa: E402


models.ALLOW_MODEL_REQUESTS = False

StreamScript = Callable[[list[ModelMessage]], AsyncIterator[str]]

SAMPLE_ANALYSIS = {
    "score": 3,
    "rules": [
        {
            "rule": "Give Context",
            "status": "fail",
            "feedback": "No audience or purpose is given.",
            "recommendation": "Say who the post is for and why.",
        },
        {
            "rule": "Be Specific",
            "status": "partial",
            "feedback": 'The topic "AI" is named, but nothing else is.',
            "recommendation": "Set a length, a tone, and a format.",
        },
        {
            "rule": "Show an Example",
            "status": "fail",
            "feedback": "No example of the desired style.",
            "recommendation": "Paste a paragraph you like.",
        },
        {
            "rule": "Give It a Role",
            "status": "fail",
            "feedback": "No role is assigned.",
            "recommendation": "Start with \"You're a tech journalist\".",
        },
        {
            "rule": "Iterate, Don't Settle",
            "status": "pass",
            "feedback": "Short, but clearly a first draft to build on.",
            "recommendation": "",
        },
    ],
    "improvedPrompt": (
        "You're a tech journalist writing for small-business owners.\n"
        "Write a 600-word blog post about how AI can save them time.\n"
        '\tTone: friendly. Avoid jargon such as "LLM" and C:\\paths.'
    ),
}


@pytest.fixture
def sample_analysis() -> dict:
    """A complete analysis as the model would emit it, as a dict."""
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def sample_analysis_json(sample_analysis: dict) -> str:
    """The sample analysis serialized the way the model usually formats it."""
    return json.dumps(sample_analysis, indent=2)


@pytest.fixture
def make_stream_agent() -> Callable[..., Agent[None, str]]:
    """Build an analysis agent whose model streams canned chunks.

    Pass either a list of text chunks or an async generator function taking
    the request messages, to inspect the prompt or fail mid-stream.
    """

    def _make(script: list[str] | StreamScript) -> Agent[None, str]:
        async def stream_function(
            messages: list[ModelMessage], info: AgentInfo
        ) -> AsyncIterator[str]:
            if callable(script):
                async for chunk in script(messages):
                    yield chunk
            else:
                for chunk in script:
                    yield chunk

        return create_analysis_agent(FunctionModel(stream_function=stream_function))

    return _make


@pytest.fixture
def override_agent() -> Generator[Callable[[Agent[None, str]], None], None, None]:
    """Route the app's analysis dependency to a test agent."""

    def _override(agent: Agent[None, str]) -> None:
        app.dependency_overrides[get_analysis_agent] = lambda: agent

    yield _override
    app.dependency_overrides.pop(get_analysis_agent, None)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.
    """
    with TestClient(app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
