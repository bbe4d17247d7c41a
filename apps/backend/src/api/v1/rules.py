"""Read-only access to the prompting rule catalog."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from schemas.api import ApiResponse
from services.analysis.rules import RULE_CATALOG


router = APIRouter(tags=["analysis"])


class RuleInfo(BaseModel):
    """One catalog entry, numbered in evaluation order."""

    number: int
    rule: str
    description: str


@router.get("/rules", response_model=ApiResponse[list[RuleInfo]])
def list_rules() -> ApiResponse[list[RuleInfo]]:
    rules = [
        RuleInfo(number=index, rule=name, description=description)
        for index, (name, description) in enumerate(RULE_CATALOG.items(), start=1)
    ]
    return ApiResponse(data=rules, message=f"{len(rules)} rules")
