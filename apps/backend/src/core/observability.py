"""OpenTelemetry tracing, exported to Azure Monitor when enabled.

``configure_observability()`` must run before FastAPI is imported so the
instrumentation can hook into request handling. Export is opt-in: it needs
ENABLE_OBSERVABILITY=true, an APPLICATIONINSIGHTS_CONNECTION_STRING, and the
``observability`` extra installed. Without any of them the OpenTelemetry API
hands out no-op tracers and spans cost nothing.

Spans and logs carry sizes and counts only (prompt length, number of
deltas), never prompt text, feedback or rewritten prompts.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from opentelemetry import trace


logger = logging.getLogger(__name__)

_ENV_ENABLE_OBSERVABILITY = "ENABLE_OBSERVABILITY"
_ENV_APP_INSIGHTS_CONN_STRING = "APPLICATIONINSIGHTS_CONNECTION_STRING"
_ENV_OTEL_SERVICE_NAME = "OTEL_SERVICE_NAME"

_DEFAULT_SERVICE_NAME = "prompt-grader-backend"

# Health probes are not worth a trace each
EXCLUDED_URLS = "health,health/,favicon.ico"


def _is_observability_enabled() -> bool:
    value = os.getenv(_ENV_ENABLE_OBSERVABILITY, "false").lower()
    return value in {"true", "1", "yes", "on"}


@lru_cache
def configure_observability() -> bool:
    """Start exporting traces to Azure Monitor.

    Returns:
        True if the exporter was configured. Every failure is logged and
        reported as False; telemetry never stops the app from starting.
    """
    if not _is_observability_enabled():
        logger.info("Observability disabled (%s not set)", _ENV_ENABLE_OBSERVABILITY)
        return False

    connection_string = os.getenv(_ENV_APP_INSIGHTS_CONN_STRING)
    if not connection_string:
        logger.warning(
            "Observability enabled but %s is missing; not exporting",
            _ENV_APP_INSIGHTS_CONN_STRING,
        )
        return False

    try:
        from azure.monitor.opentelemetry import configure_azure_monitor
    except ImportError:
        logger.warning(
            "azure-monitor-opentelemetry is not installed; "
            "install the 'observability' extra to export traces"
        )
        return False

    service_name = os.getenv(_ENV_OTEL_SERVICE_NAME, _DEFAULT_SERVICE_NAME)
    os.environ.setdefault(_ENV_OTEL_SERVICE_NAME, service_name)
    os.environ.setdefault("OTEL_PYTHON_FASTAPI_EXCLUDED_URLS", EXCLUDED_URLS)

    try:
        configure_azure_monitor(connection_string=connection_string)
    except Exception:
        logger.exception("Failed to configure Azure Monitor")
        return False

    logger.info("Exporting traces to Azure Monitor as '%s'", service_name)
    return True


def get_tracer(name: str) -> trace.Tracer:
    """Tracer for custom spans, e.g. ``get_tracer(__name__).start_span(...)``."""
    return trace.get_tracer(name)
