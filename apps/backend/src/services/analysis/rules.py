"""The five prompting rules, the model instructions built from them, and
score presentation helpers.

The catalog is a convention shared with the model: the extractor never
validates rule names against it.
"""

from __future__ import annotations

from types import MappingProxyType


# Ordered: the model is asked to evaluate the rules in this order.
RULE_CATALOG: MappingProxyType[str, str] = MappingProxyType(
    {
        "Give Context": "Tell it who you are, who it's for, and why it matters",
        "Be Specific": "Define format, length, tone, audience",
        "Show an Example": "If you know what good looks like, share it",
        "Give It a Role": '"You\'re a [expert]" changes everything',
        "Iterate, Don't Settle": "Your first prompt is a draft. Refine it",
    }
)

RULE_NAMES: tuple[str, ...] = tuple(RULE_CATALOG)

EXAMPLE_PROMPTS: tuple[str, ...] = (
    "Write me a blog post about AI",
    "Make a website",
    "Help me fix my code it's broken",
    "Summarize this document",
)

ANALYSIS_SYSTEM_PROMPT = """
You are a prompt engineering expert. Your task is to analyze a given prompt
against these 5 core prompting rules and provide detailed feedback.

## The 5 Rules of Great Prompting

**Rule 1 - Give Context**: Tell the AI who you are, who the output is for, and
why it matters. Without context, the AI guesses.

**Rule 2 - Be Specific**: Vague in, vague out. Define the format, length, tone,
and audience explicitly.

**Rule 3 - Show an Example**: If you know what good output looks like, include
an example. This grounds the AI's response.

**Rule 4 - Give It a Role**: Assigning a role like "You're a [expert]" changes
everything. It frames the AI's perspective and expertise level.

**Rule 5 - Iterate, Don't Settle**: A first prompt is just a draft. This rule is
about mindset, but you can check if the prompt reads like a refined, polished
version or a rough first attempt.

## Scoring

Evaluate the prompt against EACH of the 5 rules individually
(pass/fail/partial) and give an overall score from 0-10:
- Each rule fully met = +2 points (max 10)
- Each rule partially met = +1 point
- Each rule not met = 0 points

## Your Response

Analyze the prompt and return ONLY valid JSON matching this exact schema, with
no markdown formatting, no code fences, and no additional text:
{
  "score": <number 0-10>,
  "rules": [
    { "rule": "Give Context", "status": "pass" | "partial" | "fail", "feedback": "<what's present or missing regarding this rule>", "recommendation": "<specific actionable fix, e.g. 'Add: I am a marketing manager writing for our B2B SaaS blog audience'>" },
    { "rule": "Be Specific", "status": "pass" | "partial" | "fail", "feedback": "<what's present or missing>", "recommendation": "<specific actionable fix>" },
    { "rule": "Show an Example", "status": "pass" | "partial" | "fail", "feedback": "<what's present or missing>", "recommendation": "<specific actionable fix>" },
    { "rule": "Give It a Role", "status": "pass" | "partial" | "fail", "feedback": "<what's present or missing>", "recommendation": "<specific actionable fix>" },
    { "rule": "Iterate, Don't Settle", "status": "pass" | "partial" | "fail", "feedback": "<what's present or missing>", "recommendation": "<specific actionable fix>" }
  ],
  "improvedPrompt": "<the fully rewritten improved prompt that follows ALL 5 rules>"
}
"""


def build_user_message(prompt: str) -> str:
    return f"Analyze this prompt:\n\n{prompt}"


def rule_number(rule: str) -> int | None:
    """1-based catalog position of a rule name, or None if unknown."""
    try:
        return RULE_NAMES.index(rule) + 1
    except ValueError:
        return None


def score_label(score: int) -> str:
    if score <= 3:
        return "Needs work"
    if score <= 6:
        return "Getting there"
    if score <= 8:
        return "Strong"
    return "Excellent"
