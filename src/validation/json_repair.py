"""
JSON Repair — turn syntactically broken LLM text into parseable JSON.

Steps, stopping at the first one whose output passes a strict ``json.loads``:
    1. strict_parse  — the text as-is
    2. extract_span  — first balanced {...} / [...] span inside surrounding prose
    3. normalize     — relaxed syntax fixed outside string literals:
                       single quotes, trailing commas, bare keys, Python literals

Never raises for malformed input; failure is reported in the outcome.
"""
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Tuple

from src.config.constants import (
    PYTHON_LITERALS,
    REPAIR_EXTRACT,
    REPAIR_NORMALIZE,
    REPAIR_STRICT,
)

logger = logging.getLogger(__name__)

_OPENERS = {"{": "}", "[": "]"}


@dataclass
class RepairOutcome:
    """Result of a repair run."""

    success: bool
    original_text: str
    repaired_text: Optional[str] = None
    strategy: Optional[str] = None
    attempts: List[str] = field(default_factory=list)
    value: Any = None
    error: Optional[str] = None


def repair(text: Optional[str]) -> RepairOutcome:
    """
    Attempt to recover one JSON value from *text*.

    Returns:
        RepairOutcome with ``success``, the text that parsed (``repaired_text``),
        the parsed ``value`` and the ordered list of steps tried.
    """
    original = text if isinstance(text, str) else ""
    outcome = RepairOutcome(success=False, original_text=original)

    if not original.strip():
        outcome.error = "empty input"
        return outcome

    # ------------------------------------------------------------------
    # Step 1: strict parse
    # ------------------------------------------------------------------
    outcome.attempts.append(REPAIR_STRICT)
    ok, value, err = _try_parse(original)
    if ok:
        return _succeed(outcome, REPAIR_STRICT, original, value)
    outcome.error = err

    # ------------------------------------------------------------------
    # Step 2: extract the first complete span that parses
    # ------------------------------------------------------------------
    outcome.attempts.append(REPAIR_EXTRACT)
    spans = list(balanced_spans(original))
    for start, end in spans:
        candidate = original[start:end]
        ok, value, err = _try_parse(candidate)
        if ok:
            logger.debug("JSON extracted from surrounding text at [%d:%d]", start, end)
            return _succeed(outcome, REPAIR_EXTRACT, candidate, value)
        outcome.error = err

    # ------------------------------------------------------------------
    # Step 3: normalize relaxed syntax
    # ------------------------------------------------------------------
    outcome.attempts.append(REPAIR_NORMALIZE)
    relaxed_spans = list(balanced_spans(original, quotes="\"'"))
    candidates = [original[s:e] for s, e in relaxed_spans[:1]] + [original]
    for candidate in candidates:
        normalized = normalize_relaxed(candidate)
        ok, value, err = _try_parse(normalized)
        if ok:
            return _succeed(outcome, REPAIR_NORMALIZE, normalized, value)
        outcome.error = err

    logger.debug("JSON repair failed after %s: %s", outcome.attempts, outcome.error)
    return outcome


def balanced_spans(text: str, quotes: str = '"') -> Iterator[Tuple[int, int]]:
    """
    Yield ``(start, end)`` of every balanced top-level ``{...}``/``[...]`` span.

    Depth is tracked on the opener's own bracket type and nested brackets of
    either type; brackets inside string literals (delimited by any char in
    *quotes*) are ignored. Unbalanced tails are not yielded.
    """
    i = 0
    n = len(text)
    while i < n:
        if text[i] not in _OPENERS:
            i += 1
            continue
        end = _match_span(text, i, quotes)
        if end is None:
            i += 1
            continue
        yield i, end
        i = end


def normalize_relaxed(text: str) -> str:
    """
    Rewrite relaxed JSON into strict JSON, touching nothing inside strings.

    - ``'single'`` quoted strings become ``"double"`` quoted (inner ``"`` escaped)
    - trailing commas before ``}`` / ``]`` are dropped
    - bare identifier keys are quoted (``key:`` → ``"key":``)
    - ``True`` / ``False`` / ``None`` become ``true`` / ``false`` / ``null``
    """
    out: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if ch == '"':
            end = _string_end(text, i, '"')
            out.append(text[i:end])
            i = end
            continue

        if ch == "'":
            end = _string_end(text, i, "'")
            body = text[i + 1 : end - 1] if end - i >= 2 and text[end - 1] == "'" else text[i + 1 : end]
            body = body.replace("\\'", "'")
            body = _escape_unescaped_double_quotes(body)
            out.append(f'"{body}"')
            i = end
            continue

        if ch == ",":
            j = _skip_ws(text, i + 1)
            if j < n and text[j] in "}]":
                i += 1
                continue
            out.append(ch)
            i += 1
            continue

        if ch.isalpha() or ch == "_":
            j = i
            while j < n and (text[j].isalnum() or text[j] == "_"):
                j += 1
            word = text[i:j]
            k = _skip_ws(text, j)
            prev = _last_significant(out)
            if k < n and text[k] == ":" and prev in ("{", ","):
                out.append(f'"{word}"')
            elif word in PYTHON_LITERALS:
                out.append(PYTHON_LITERALS[word])
            else:
                out.append(word)
            i = j
            continue

        out.append(ch)
        i += 1

    return "".join(out)


# ======================================================================
# Internal helpers
# ======================================================================

def _try_parse(text: str) -> Tuple[bool, Any, Optional[str]]:
    try:
        return True, json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant), None
    except (ValueError, RecursionError) as e:
        return False, None, str(e)


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number {text} overflows a finite float")
    return value


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by json.loads but are not JSON
    raise ValueError(f"Non-finite number {name} is not valid JSON")


def _succeed(outcome: RepairOutcome, strategy: str, text: str, value: Any) -> RepairOutcome:
    outcome.success = True
    outcome.strategy = strategy
    outcome.repaired_text = text
    outcome.value = value
    outcome.error = None
    return outcome


def _match_span(text: str, start: int, quotes: str) -> Optional[int]:
    """Return the index one past the bracket closing ``text[start]``."""
    stack: List[str] = []
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in quotes:
            i = _string_end(text, i, ch)
            continue
        if ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in "}]":
            if not stack or stack[-1] != ch:
                return None
            stack.pop()
            if not stack:
                return i + 1
        i += 1
    return None


def _string_end(text: str, start: int, quote: str) -> int:
    """Index one past the closing *quote* of the string opened at *start*."""
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        i += 1
    return n


def _escape_unescaped_double_quotes(body: str) -> str:
    out: List[str] = []
    escaped = False
    for ch in body:
        if escaped:
            out.append(ch)
            escaped = False
            continue
        if ch == "\\":
            out.append(ch)
            escaped = True
            continue
        out.append('\\"' if ch == '"' else ch)
    return "".join(out)


def _skip_ws(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def _last_significant(out: List[str]) -> str:
    for chunk in reversed(out):
        stripped = chunk.strip()
        if stripped:
            return stripped[-1]
    return ""
