"""Utilities for recovering a single JSON value from an LLM response."""

from __future__ import annotations
import json
import re
from typing import Any, Literal

from ..errors import ParseError

Expect = Literal["array", "object"]

_BRACKETS: dict[str, tuple[str, str]] = {
    "array": ("[", "]"),
    "object": ("{", "}"),
}
_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def _strip_code_fences(text: str) -> str:
    """Remove every ``` / ```json marker, then surrounding whitespace."""
    return _FENCE.sub("", text).strip()


def slice_json(text: str, expect: Expect) -> str:
    """
    Cut the candidate JSON out of `text`: from the first opening bracket of
    the expected shape to the last closing one, inclusive. Falls back to the
    fence-stripped text when the brackets are missing or out of order.
    """
    opening, closing = _BRACKETS[expect]
    start = text.find(opening)
    end = text.rfind(closing)
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return _strip_code_fences(text)


def recover_json(text: str, expect: Expect = "array") -> Any:
    """
    Parse the one JSON value an LLM response is expected to contain.
    Handles code fences and leading/trailing prose; raises ParseError
    (with an excerpt of the response) instead of guessing.
    """
    if expect not in _BRACKETS:
        raise ValueError(f"Unsupported JSON shape: {expect!r}")
    if not text or not text.strip():
        raise ParseError("Empty response from the generation service.", text="")

    candidate = slice_json(text, expect)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ParseError("Response is not valid JSON.", text=text) from exc


def require_object(text: str, err: str = "Expected a JSON object.") -> dict:
    """Strict: must return an object, else raise."""
    data = recover_json(text, "object")
    if not isinstance(data, dict):
        raise ParseError(err, text=text)
    return data


def require_array(text: str, err: str = "Expected a JSON array.") -> list:
    """Strict: must return an array, else raise."""
    data = recover_json(text, "array")
    if not isinstance(data, list):
        raise ParseError(err, text=text)
    return data
