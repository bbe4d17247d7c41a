"""Prompt analysis: rule catalog, streaming model agent, incremental result
extraction and the stream consumer."""

from services.analysis.aggregator import AnalysisStreamAggregator, describe_phase
from services.analysis.client import AnalysisClient
from services.analysis.exceptions import AnalysisError, ProducerError, TransportError
from services.analysis.extractor import extract_partial_result
from services.analysis.rules import (
    ANALYSIS_SYSTEM_PROMPT,
    EXAMPLE_PROMPTS,
    RULE_CATALOG,
    rule_number,
    score_label,
)


__all__ = [
    # Stream consumption
    "AnalysisClient",
    "AnalysisStreamAggregator",
    "describe_phase",
    "extract_partial_result",
    # Errors
    "AnalysisError",
    "ProducerError",
    "TransportError",
    # Catalog
    "ANALYSIS_SYSTEM_PROMPT",
    "EXAMPLE_PROMPTS",
    "RULE_CATALOG",
    "rule_number",
    "score_label",
]
