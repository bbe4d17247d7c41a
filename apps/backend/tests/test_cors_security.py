"""Tests for CORS configuration and settings validation."""

import pytest
from fastapi.testclient import TestClient

from core.config import Settings, get_settings
from main import app, validate_cors_origins


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestCORSConfiguration:
    """Test CORS configuration adheres to security requirements."""

    def test_cors_preflight_for_analyze(self, client):
        """The browser UI posts JSON, so the preflight must be allowed."""
        response = client.options(
            "/api/v1/analyze",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    def test_cors_request_from_disallowed_origin(self, client):
        response = client.get(
            "/api/v1/health",
            headers={"Origin": "http://malicious-site.com"},
        )

        assert response.status_code == 200
        assert (
            response.headers.get("Access-Control-Allow-Origin")
            != "http://malicious-site.com"
        )

    def test_invalid_origins_are_dropped(self):
        origins = ["http://localhost:3000", "not-a-url", "ftp://files.example.com"]

        assert validate_cors_origins(origins) == ["http://localhost:3000"]


class TestSettingsValidation:
    """Test settings parsing and validation logic."""

    def test_cors_credentials_with_wildcard_prevented(self):
        with pytest.raises(ValueError, match="CORS configuration error"):
            Settings(CORS_ORIGINS=["*"], ALLOW_CREDENTIALS=True)

    def test_wildcard_allowed_without_credentials(self):
        settings = Settings(CORS_ORIGINS=["*"], ALLOW_CREDENTIALS=False)

        assert settings.CORS_ORIGINS == ["*"]

    def test_cors_origins_csv_parsing(self):
        settings = Settings(
            CORS_ORIGINS="http://localhost:3000,https://grader.example.com, http://127.0.0.1:3000",
        )

        assert settings.CORS_ORIGINS == [
            "http://localhost:3000",
            "https://grader.example.com",
            "http://127.0.0.1:3000",
        ]

    def test_cors_origins_json_parsing(self):
        settings = Settings(
            CORS_ORIGINS='["http://localhost:3000", "https://grader.example.com"]',
        )

        assert settings.CORS_ORIGINS == [
            "http://localhost:3000",
            "https://grader.example.com",
        ]

    def test_llm_provider_is_normalized(self):
        assert Settings(LLM_PROVIDER=" Gemini ").LLM_PROVIDER == "gemini"

    def test_unknown_llm_provider_rejected(self):
        with pytest.raises(ValueError, match="LLM_PROVIDER"):
            Settings(LLM_PROVIDER="azure_openai")

    def test_defaults(self):
        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.LLM_PROVIDER == "anthropic"
        assert settings.MAX_PROMPT_CHARS == 8000
        assert settings.ANALYSIS_MAX_TOKENS == 4096

    def test_invalid_environment_rejected(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")
        get_settings.cache_clear()
        try:
            with pytest.raises(ValueError, match="ENVIRONMENT"):
                get_settings()
        finally:
            monkeypatch.setenv("ENVIRONMENT", "test")
            get_settings.cache_clear()
