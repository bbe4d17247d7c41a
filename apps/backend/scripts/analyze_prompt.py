#!/usr/bin/env python3
"""Analyze a prompt against the running API and print the streamed result.

Usage:
    # Analyze a prompt
    uv run python scripts/analyze_prompt.py "Write me a blog post about AI"

    # Use one of the built-in weak examples (1-4)
    uv run python scripts/analyze_prompt.py --example 2

    # Point at another deployment
    uv run python scripts/analyze_prompt.py "Make a website" \\
        --base-url https://grader.example.com
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx

from schemas.analysis import PartialAnalysis
from services.analysis import (
    EXAMPLE_PROMPTS,
    AnalysisClient,
    AnalysisError,
    rule_number,
    score_label,
)


STATUS_MARKS = {"pass": "[pass]   ", "partial": "[partial]", "fail": "[fail]   "}


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score a prompt against the five prompting rules.",
    )
    parser.add_argument("prompt", nargs="?", help="Prompt text to analyze")
    parser.add_argument(
        "--example",
        type=int,
        choices=range(1, len(EXAMPLE_PROMPTS) + 1),
        help="Analyze a built-in example prompt instead",
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="API base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Request timeout in seconds (default: 120)",
    )
    return parser


def _print_result(result: PartialAnalysis) -> None:
    if result.score is not None:
        print(f"\nScore: {result.score}/10 ({score_label(result.score)})")

    for evaluation in result.rules or ():
        number = rule_number(evaluation.rule)
        prefix = f"{number}. " if number is not None else "- "
        print(f"\n{STATUS_MARKS[evaluation.status.value]} {prefix}{evaluation.rule}")
        print(f"    {evaluation.feedback}")
        if evaluation.recommendation:
            print(f"    Fix: {evaluation.recommendation}")

    if result.improved_prompt is not None:
        print("\nImproved prompt:\n")
        print(result.improved_prompt)


async def main() -> int:
    parser = _create_parser()
    args = parser.parse_args()

    if args.example is not None:
        prompt = EXAMPLE_PROMPTS[args.example - 1]
    elif args.prompt:
        prompt = args.prompt
    else:
        parser.error("a prompt or --example is required")

    logging.basicConfig(level=logging.WARNING)
    print(f"Prompt: {prompt}")

    async with httpx.AsyncClient(
        base_url=args.base_url, timeout=httpx.Timeout(args.timeout)
    ) as http:
        client = AnalysisClient(http)
        last_phase = None
        result: PartialAnalysis | None = None
        try:
            async for result in client.analyze(prompt):
                phase = client.aggregator.phase
                if phase != last_phase:
                    print(phase)
                    last_phase = phase
        except AnalysisError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1

    if result is None:
        print("Error: the analysis returned no result", file=sys.stderr)
        return 1

    _print_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
