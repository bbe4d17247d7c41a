"""
Tests for the main module.
"""


def test_read_root(client):
    """Test the root endpoint returns the expected response."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Prompt Grader API"}


def test_lifespan_provides_http_client(client):
    """The app owns one outbound client for the model provider."""
    from main import app

    assert app.state.http_client is not None
    assert app.state.analysis_agent is None


def test_response_carries_correlation_id(client):
    response = client.get("/")
    assert response.headers["X-Correlation-ID"]
