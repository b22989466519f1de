"""
Purpose: Turn untrusted model output (or the manual form) into Persona records.

The response schema sent to the model is a request, not a guarantee: every
record is re-validated here. Name and job are required; everything else gets
a defined default so a parsed Persona is always complete.
"""

from __future__ import annotations

from typing import Any

from ..errors import ParseError, ValidationError
from ..models import Persona
from ..prompts.persona import PERSONA_COUNT
from ..utils.llm_json import require_array, require_object

DEFAULT_AGE = 30
DEFAULT_AVATAR = "🤔"
CUSTOM_AVATAR = "😊"


def _to_str_list(x: Any) -> tuple[str, ...]:
    """Convert None, a comma-separated str, or a list to a tuple of strings.
    Discard empty/whitespace-only entries.
    """
    if x is None:
        return ()
    if isinstance(x, str):
        x = x.split(",")
    if not isinstance(x, (list, tuple)):
        return ()
    out = []
    for item in x:
        if item is None:
            continue
        s = str(item).strip()
        if s:
            out.append(s)
    return tuple(out)


def _to_age(x: Any) -> int:
    if isinstance(x, bool):
        return DEFAULT_AGE
    if isinstance(x, (int, float)):
        return int(x)
    if isinstance(x, str):
        try:
            return int(float(x.strip()))
        except ValueError:
            return DEFAULT_AGE
    return DEFAULT_AGE


def _to_text(x: Any) -> str:
    if x is None:
        return ""
    return str(x).strip()


def coerce_persona(raw: Any, *, index: int = 0) -> Persona:
    if not isinstance(raw, dict):
        raise ParseError(f"Persona at index {index} is not an object.")

    name = _to_text(raw.get("name"))
    job = _to_text(raw.get("job"))
    if not name or not job:
        raise ParseError(f"Persona at index {index} is missing a name or job.")

    return Persona(
        name=name,
        age=_to_age(raw.get("age")),
        job=job,
        personality=_to_text(raw.get("personality")),
        background=_to_text(raw.get("background")),
        interests=_to_str_list(raw.get("interests")),
        pain_points=_to_str_list(raw.get("painPoints", raw.get("pain_points"))),
        avatar=_to_text(raw.get("avatar")) or DEFAULT_AVATAR,
    )


def parse_persona_list(text: str) -> list[Persona]:
    """All-or-nothing: exactly PERSONA_COUNT valid personas, or ParseError."""
    items = require_array(text, "Expected a JSON array of personas.")
    if len(items) != PERSONA_COUNT:
        raise ParseError(
            f"Expected {PERSONA_COUNT} personas, got {len(items)}.", text=text
        )
    return [coerce_persona(item, index=i) for i, item in enumerate(items)]


def parse_single_persona(text: str) -> Persona:
    return coerce_persona(require_object(text, "Expected a JSON persona object."))


def build_custom_persona(
    *,
    name: str,
    job: str,
    age: int = DEFAULT_AGE,
    personality: str = "",
    background: str = "",
    interests: str = "",
    pain_points: str = "",
    avatar: str = CUSTOM_AVATAR,
) -> Persona:
    """Manual persona form: interests / pain points are comma-separated."""
    name = (name or "").strip()
    job = (job or "").strip()
    if not name or not job:
        raise ValidationError("Name and job are required.")
    return Persona(
        name=name,
        age=int(age),
        job=job,
        personality=(personality or "").strip(),
        background=(background or "").strip(),
        interests=_to_str_list(interests),
        pain_points=_to_str_list(pain_points),
        avatar=(avatar or "").strip() or CUSTOM_AVATAR,
    )
