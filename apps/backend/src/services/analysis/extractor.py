"""Best-effort recovery of an analysis from a truncated JSON stream.

The model only produces valid JSON once it has finished. Until then the
accumulated text is a JSON prefix cut at an arbitrary point: inside a string,
a key, or between delimiters. ``extract_partial_result`` is called with the
whole buffer after every delta and returns whatever can already be decoded
with certainty, so callers can render the score and finished rule cards while
the rest is still arriving.

The function is pure and stateless: every call re-derives the result from the
full buffer. Buffers are a few kilobytes, so recomputing is cheaper to reason
about than keeping resumable parser state between calls.

Recovery relies on the fixed response shape (a score, uniformly shaped rule
records, one trailing free-text field) and is deliberately not a general JSON
parser. A value is only surfaced once it can no longer change:

- a rule record appears only when all four of its fields are closed;
- ``improvedPrompt`` appears only once its closing quote has arrived;
- a score that runs to the end of the buffer is held back while one more
  digit could still change it (``1`` may become ``10``).
"""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from schemas.analysis import PartialAnalysis, RuleEvaluation, RuleStatus


MAX_SCORE = 10

_FENCE_OPEN_RE = re.compile(r"^```[\w+-]*[ \t]*(?:\r?\n)?")
_FENCE_CLOSE_RE = re.compile(r"\r?\n?```\s*$")

# Keys are matched only where the quote is not itself escaped, so key-like
# text quoted inside another string value is never mistaken for a key.
_SCORE_RE = re.compile(r'(?<!\\)"score"\s*:\s*(\d+)')
_IMPROVED_PROMPT_KEY_RE = re.compile(r'(?<!\\)"improvedPrompt"\s*:\s*"')

# Body of a closed JSON string literal: any non-quote, non-backslash
# character, or a backslash together with whatever it escapes.
_STRING_BODY = r'"((?:[^"\\]|\\.)*)"'
_STATUS_VALUES = "|".join(status.value for status in RuleStatus)
_RULE_RECORD_RE = re.compile(
    r'\{\s*"rule"\s*:\s*' + _STRING_BODY
    + r'\s*,\s*"status"\s*:\s*"(' + _STATUS_VALUES + r')"'
    + r'\s*,\s*"feedback"\s*:\s*' + _STRING_BODY
    + r'\s*,\s*"recommendation"\s*:\s*' + _STRING_BODY
    + r"\s*\}",
    re.DOTALL,
)

_LENIENT_DECODER = json.JSONDecoder(strict=False)
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
}


def strip_code_fence(raw: str) -> str:
    """Trim whitespace and remove a surrounding markdown code fence, if any.

    Only applies when the text opens with a fence; the closing fence is
    optional since it is the last thing the model writes.
    """
    text = raw.strip()
    if not text.startswith("```"):
        return text
    text = _FENCE_OPEN_RE.sub("", text, count=1)
    return _FENCE_CLOSE_RE.sub("", text, count=1)


def decode_string_body(body: str) -> str:
    """Resolve the escape sequences of a closed JSON string literal body."""
    try:
        return _LENIENT_DECODER.decode(f'"{body}"')
    except ValueError:
        # Malformed escape somewhere (e.g. a truncated \u sequence); resolve
        # the simple escapes one by one and leave anything else verbatim.
        return _ESCAPE_RE.sub(
            lambda m: _SIMPLE_ESCAPES.get(m.group(1), m.group(0)), body
        )


def find_string_end(text: str, start: int) -> int | None:
    """Return the index of the quote closing the literal whose body starts at
    ``start``, or None if the literal is still open.

    Escaped characters are skipped as a pair, so ``\\"`` never terminates the
    string and a trailing lone backslash keeps it open.
    """
    i = start
    end = len(text)
    while i < end:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i
        i += 1
    return None


def _parse_document(text: str) -> PartialAnalysis | None:
    try:
        document = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if not isinstance(document, dict):
        return None
    try:
        parsed = PartialAnalysis.model_validate(document)
    except ValidationError:
        return None
    return None if parsed.is_empty else parsed


def _score_could_grow(digits: str) -> bool:
    # JSON numbers have no leading zeros, so "0" is already final.
    return not digits.startswith("0") and int(digits + "0") <= MAX_SCORE


def _recover_score(text: str) -> int | None:
    match = _SCORE_RE.search(text)
    if match is None:
        return None
    digits = match.group(1)
    if match.end() == len(text) and _score_could_grow(digits):
        return None
    return int(digits)


def _recover_rules(text: str) -> tuple[RuleEvaluation, ...] | None:
    rules = tuple(
        RuleEvaluation(
            rule=decode_string_body(match.group(1)),
            status=RuleStatus(match.group(2)),
            feedback=decode_string_body(match.group(3)),
            recommendation=decode_string_body(match.group(4)),
        )
        for match in _RULE_RECORD_RE.finditer(text)
    )
    return rules or None


def _recover_improved_prompt(text: str) -> str | None:
    match = _IMPROVED_PROMPT_KEY_RE.search(text)
    if match is None:
        return None
    end = find_string_end(text, match.end())
    if end is None:
        # Still streaming: a half sentence is not shown
        return None
    return decode_string_body(text[match.end() : end])


def extract_partial_result(buffer: str) -> PartialAnalysis | None:
    """Recover as much of the analysis as ``buffer`` already determines.

    Args:
        buffer: Everything received from the model so far.

    Returns:
        A PartialAnalysis with each field that is fully available, or None
        when nothing is extractable yet. None means "no update", not failure.
        Never raises.
    """
    text = strip_code_fence(buffer)
    if not text:
        return None

    document = _parse_document(text)
    if document is not None:
        return document

    partial = PartialAnalysis(
        score=_recover_score(text),
        rules=_recover_rules(text),
        improved_prompt=_recover_improved_prompt(text),
    )
    return None if partial.is_empty else partial
