"""Error envelope and request-scoped logging for the Prompt Grader API.

Every failure leaves the API as an ``ErrorResponse`` that carries the
request's correlation ID. Diagnostics such as the exception type, a traceback
or validation errors are attached only outside production. Structured log
fields pass through ``redact`` before they reach a handler, so provider keys
and auth headers never land in the logs.
"""

import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.exceptions import DomainError
from core.security_config import get_allowed_error_fields, is_sensitive_key
from schemas.api import ErrorResponse


REDACTED = "[REDACTED]"

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str:
    """Return the current request's correlation ID, minting one if unset."""
    correlation_id = _correlation_id_var.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


def _is_header_pair(data: dict[str, Any]) -> bool:
    """``{"name": "Authorization", "value": "..."}`` and ``key``/``value`` pairs."""
    name = data.get("name", data.get("key"))
    return "value" in data and isinstance(name, str) and is_sensitive_key(name)


def redact(value: Any) -> Any:
    """Return ``value`` with credential-like entries replaced by ``[REDACTED]``.

    Dict keys are checked by name, lists are walked, and header-like
    name/value pairs have their value hidden when the header name is
    sensitive.
    """
    if isinstance(value, list):
        return [redact(item) for item in value]
    if not isinstance(value, dict):
        return value
    if _is_header_pair(value):
        return {k: REDACTED if k == "value" else v for k, v in value.items()}
    return {
        key: REDACTED if is_sensitive_key(str(key)) else redact(item)
        for key, item in value.items()
    }


class StructuredLogger:
    """Logger that stamps records with the correlation ID and redacted fields.

    Keyword arguments become the record's ``structured_data``; in production
    the JSON formatter emits them alongside the message.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _emit(
        self,
        level: int,
        message: str,
        fields: dict[str, Any],
        exc_info: bool = False,
    ) -> None:
        correlation_id = get_correlation_id()
        structured = {"correlation_id": correlation_id, **redact(fields)}
        if get_settings().ENVIRONMENT != "production":
            message = f"[{correlation_id}] {message}"
        self.logger.log(
            level, message, extra={"structured_data": structured}, exc_info=exc_info
        )

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._emit(logging.ERROR, message, fields, exc_info=True)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Turn anything that escapes the route stack into the error envelope."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _error_response(
    status_code: int,
    error_type: str,
    message: str,
    environment: str,
    diagnostics: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the envelope, keeping only the diagnostics ``environment`` allows."""
    allowed = get_allowed_error_fields(environment)
    error: dict[str, Any] = {
        "correlation_id": get_correlation_id(),
        "type": error_type,
    }
    for field, value in (diagnostics or {}).items():
        if field in allowed and value is not None:
            error[field] = value

    body = ErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map any exception onto the shared ``ErrorResponse`` envelope.

    - ``HTTPException``: its own status; the detail string is the message
    - request validation: 422 ``validation_error``
    - ``DomainError``: 400 ``domain_error``, message is ``str(exc)``
    - anything else: 500 ``internal_server_error`` with a generic message
    """
    environment = get_settings().ENVIRONMENT

    if isinstance(exc, StarletteHTTPException):
        detail = exc.detail
        return _error_response(
            exc.status_code,
            "http_error",
            detail if isinstance(detail, str) else "An HTTP error occurred",
            environment,
            {
                "details": {"detail": detail},
                "exception_type": exc.__class__.__name__,
            },
        )

    if isinstance(exc, RequestValidationError | ValidationError):
        errors = jsonable_encoder(exc.errors())
        structured_logger.warning(
            "Request validation failed", error_count=len(errors), path=request.url.path
        )
        return _error_response(
            422,
            "validation_error",
            "Invalid request data provided",
            environment,
            {"validation_errors": errors},
        )

    if isinstance(exc, DomainError):
        structured_logger.warning(
            "Request rejected", error_type=exc.__class__.__name__, reason=str(exc)
        )
        return _error_response(
            400,
            "domain_error",
            str(exc) or "The request could not be processed",
            environment,
        )

    structured_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__
    )
    return _error_response(
        500,
        "internal_server_error",
        "An internal error occurred",
        environment,
        {
            "exception_type": exc.__class__.__name__,
            "traceback": "".join(traceback.format_exception(exc)).strip(),
        },
    )


def setup_logging() -> None:
    """Install the root handler once: JSON lines in production, text elsewhere."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    environment = get_settings().ENVIRONMENT
    level = logging.DEBUG if environment == "development" else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if environment == "production":
        handler.setFormatter(
            JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        for noisy in ("uvicorn.access", "httpx", "anthropic"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.setLevel(level)
    root_logger.addHandler(handler)
