"""Terminal failures of a streamed prompt analysis.

Transient conditions (an undecodable event line, a buffer with nothing to
extract yet) never become exceptions; only these two reach a consumer.
Each carries a stable ``error_code`` for logs and metrics tagging.
"""

from __future__ import annotations

from dataclasses import dataclass


GENERIC_FAILURE_MESSAGE = "Analysis failed. Please try again."


@dataclass(slots=True)
class AnalysisError(Exception):
    """Base class for analysis stream errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class ProducerError(AnalysisError):
    """The stream carried an explicit error event; message is shown verbatim."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_code="producer_error")


class TransportError(AnalysisError):
    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(message=message, error_code="transport_failed")
