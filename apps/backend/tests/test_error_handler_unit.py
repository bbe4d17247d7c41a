"""Focused unit tests for global exception handling behaviors.

A small FastAPI app wired like the real one (correlation IDs, the
normalization middleware and the shared handler) exercises the error envelope
in each environment.
"""

from __future__ import annotations

from unittest.mock import patch

from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
)
from core.exceptions import DomainError, PromptRejectedError
from core.middleware import CorrelationIdMiddleware
from schemas.analysis import AnalyzeRequest


def build_test_app(env: str) -> TestClient:
    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(ExceptionNormalizationMiddleware)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(DomainError, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)

    @app.post("/analyze")
    async def analyze(payload: AnalyzeRequest):  # pragma: no cover - via client
        return {"ok": True}

    @app.get("/rejected")
    async def rejected():
        raise PromptRejectedError("A valid 'prompt' string is required.")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("Exploded with api_key=should_not_leak")

    @app.get("/unavailable")
    async def unavailable():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Prompt analysis is not configured",
        )

    client = TestClient(app, raise_server_exceptions=False)

    # Patch environment setting per test invocation
    patcher = patch("core.error_handler.get_settings")
    mocked = patcher.start()
    mocked.return_value.ENVIRONMENT = env

    def fin():
        patcher.stop()

    client._finalizer = fin  # type: ignore[attr-defined]
    return client


def test_validation_error_production():
    client = build_test_app("production")
    resp = client.post("/analyze", json={"prompt": 3})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"]["type"] == "validation_error"
    assert "validation_errors" not in data["error"]
    client._finalizer()


def test_validation_error_development():
    client = build_test_app("development")
    resp = client.post("/analyze", json={})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"]["validation_errors"][0]["loc"] == ["body", "prompt"]
    client._finalizer()


def test_domain_error_is_bad_request():
    client = build_test_app("production")
    resp = client.get("/rejected")
    assert resp.status_code == 400
    data = resp.json()
    assert data["success"] is False
    assert data["error"]["type"] == "domain_error"
    assert data["message"] == "A valid 'prompt' string is required."
    assert "details" not in data["error"]
    client._finalizer()


def test_generic_exception_production():
    client = build_test_app("production")
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" not in body["error"]
    assert "should_not_leak" not in str(body)
    client._finalizer()


def test_generic_exception_development():
    client = build_test_app("development")
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert body["error"]["exception_type"] == "RuntimeError"
    assert "traceback" in body["error"]
    client._finalizer()


def test_http_error_keeps_status_and_detail():
    """A 503 from the agent dependency keeps its status and message."""
    client = build_test_app("production")
    resp = client.get("/unavailable")
    assert resp.status_code == 503
    body = resp.json()
    assert body["message"] == "Prompt analysis is not configured"
    assert body["error"]["correlation_id"]
    assert "details" not in body["error"]
    client._finalizer()


def test_http_error_development_includes_details():
    client = build_test_app("development")
    resp = client.get("/unavailable", headers={"X-Correlation-ID": "req-42"})
    body = resp.json()
    assert body["error"]["details"]["detail"] == "Prompt analysis is not configured"
    assert body["error"]["correlation_id"] == "req-42"
    client._finalizer()
