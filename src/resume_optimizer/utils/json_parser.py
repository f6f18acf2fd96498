"""Utility to extract JSON from LLM responses."""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, TypeVar

import json_repair
from pydantic import BaseModel, ValidationError

from resume_optimizer.errors import MalformedResponse

logger = logging.getLogger(__name__)

_OPEN_FENCE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CLOSE_FENCE = re.compile(r"\n?[ \t]*```\s*$")

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_json(text: str) -> dict | list:
    """Extract a JSON object or array from an LLM response.

    Strategies run in order until one yields structured output:
    1. Strip fenced code block markers and parse
    2. Parse the first '{' to last '}' (or '[' to ']') substring
    3. Repair near-valid JSON with json_repair (trailing commas, unescaped
       quotes, single quotes, unquoted keys, truncated output)

    Raises MalformedResponse carrying a preview of the raw text when every
    strategy fails.
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedResponse("Empty LLM response", text if isinstance(text, str) else "")

    for strategy in PARSE_STRATEGIES:
        result = strategy(text)
        if result is not None:
            if strategy is not parse_strict:
                logger.debug("JSON recovered with %s", strategy.__name__)
            return result

    raise MalformedResponse("Could not extract JSON from LLM response", text)


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    text = text.strip()
    text = _OPEN_FENCE.sub("", text, count=1)
    text = _CLOSE_FENCE.sub("", text, count=1)
    return text.strip()


def _loads_structured(candidate: str) -> dict | list | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, TypeError):
        return None
    # bare numbers and strings are not structured output
    if isinstance(value, (dict, list)):
        return value
    return None


def parse_strict(text: str) -> dict | list | None:
    """Parse the fence-stripped text as-is."""
    return _loads_structured(strip_code_fences(text))


def _slice_between(text: str, open_char: str, close_char: str) -> str | None:
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return None


def parse_braces(text: str) -> dict | list | None:
    """Parse from the first '{' to the last '}', then try '[' to ']'."""
    for open_char, close_char in (("{", "}"), ("[", "]")):
        candidate = _slice_between(text, open_char, close_char)
        if candidate is None:
            continue
        result = _loads_structured(candidate)
        if result is not None:
            return result
    return None


def parse_repaired(text: str) -> dict | list | None:
    """Hand the candidate to json_repair and keep a non-empty object or array.

    The tail from the first opener is tried first so truncated output keeps
    every complete field. When that yields several top-level values (prose
    followed by a second object), the first-opener to last-closer slice wins.
    """
    stripped = strip_code_fences(text)
    starts = [i for i in (stripped.find("{"), stripped.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    opener = stripped[start]
    closer = "}" if opener == "{" else "]"

    candidates = [stripped[start:]]
    sliced = _slice_between(stripped, opener, closer)
    if sliced is not None and sliced != candidates[0]:
        candidates.append(sliced)

    expected = dict if opener == "{" else list
    for candidate in candidates:
        value = json_repair.loads(candidate)
        if isinstance(value, expected) and value:
            return value
    return None


PARSE_STRATEGIES: tuple[Callable[[str], dict | list | None], ...] = (
    parse_strict,
    parse_braces,
    parse_repaired,
)


def validate_payload(data: dict | list, model_cls: type[ModelT], what: str) -> ModelT:
    """Build ``model_cls`` from parsed LLM output or raise MalformedResponse."""
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected dict for {what}, got {type(data).__name__}", str(data))
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponse(f"Invalid {what}: {exc}", json.dumps(data, default=str)) from exc
