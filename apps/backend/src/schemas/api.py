"""Response envelope shared by every JSON endpoint."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper.

    Attributes:
        success: Whether the request was successful.
        data: Payload of a successful response.
        message: Human-readable summary.
        error: Error envelope (correlation ID, type, diagnostics) on failure.
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    error: dict[str, Any] | None = None


class ErrorResponse(ApiResponse[None]):
    success: bool = False
    message: str = "An error occurred"
