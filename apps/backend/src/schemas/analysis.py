"""Schemas for prompt analysis results and the analysis SSE stream."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError


SSE_DATA_PREFIX = "data: "
SSE_DONE_SENTINEL = "[DONE]"


class RuleStatus(str, Enum):
    """How well a prompt satisfies one rule."""

    PASS = "pass"
    PARTIAL = "partial"
    FAIL = "fail"


class RuleEvaluation(BaseModel):
    """Verdict for a single catalog rule."""

    rule: str
    status: RuleStatus
    feedback: str
    recommendation: str = ""

    model_config = ConfigDict(frozen=True)


class AnalysisResult(BaseModel):
    """Fully resolved analysis of one prompt.

    Wire names follow the model's JSON (``improvedPrompt``); attribute names
    are snake_case.
    """

    score: int = Field(..., ge=0, le=10)
    rules: tuple[RuleEvaluation, ...]
    improved_prompt: str = Field(..., alias="improvedPrompt")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class PartialAnalysis(BaseModel):
    """Best-effort view of an analysis that may still be streaming.

    Every field is independently optional. ``rules`` only ever holds complete
    records, in the order they appeared in the stream.
    """

    score: int | None = None
    rules: tuple[RuleEvaluation, ...] | None = None
    improved_prompt: str | None = Field(default=None, alias="improvedPrompt")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def is_empty(self) -> bool:
        return self.score is None and self.rules is None and self.improved_prompt is None

    @property
    def rule_count(self) -> int:
        return len(self.rules) if self.rules else 0

    def to_result(self) -> AnalysisResult | None:
        """Return the complete result, or None while any field is missing."""
        if self.score is None or self.rules is None or self.improved_prompt is None:
            return None
        try:
            return AnalysisResult(
                score=self.score,
                rules=self.rules,
                improved_prompt=self.improved_prompt,
            )
        except ValidationError:
            return None


class AnalyzeRequest(BaseModel):
    """Request payload for analyzing a prompt."""

    prompt: str = Field(..., description="The prompt to score and rewrite.")

    model_config = ConfigDict(extra="forbid")


class AnalysisStreamEvent(BaseModel):
    """Payload of one ``data:`` line on the analysis stream.

    Exactly one of ``text`` (a delta to append) or ``error`` (terminal
    failure) is set.
    """

    text: str | None = None
    error: str | None = None

    def to_sse(self) -> str:
        """Serialize event to SSE format."""
        return f"{SSE_DATA_PREFIX}{self.model_dump_json(exclude_none=True)}\n\n"


SSE_DONE_EVENT = f"{SSE_DATA_PREFIX}{SSE_DONE_SENTINEL}\n\n"
