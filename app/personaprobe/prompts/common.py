"""Shared prompt helpers used across prompt modules."""

from __future__ import annotations
from typing import Iterable, Sequence

from ..models import Message, MessageRole, Persona

PERSONA_FIELDS = (
    "name (string), age (integer), job (string), personality (string), "
    "background (string), interests (array of strings), "
    "painPoints (array of strings), avatar (a single emoji)"
)


def language_rule(language: str) -> str:
    return f"Write every value in {language}."


def clip_text(s: str, max_chars: int) -> str:
    """Clip text to max_chars, adding ellipsis if clipped."""
    if len(s) <= max_chars:
        return s
    return s[: max_chars - 1].rstrip() + "…"


def join_items(items: Iterable[str], empty_text: str = "none stated") -> str:
    items = [i for i in items if i]
    return ", ".join(items) if items else empty_text


def render_transcript(
    messages: Sequence[Message], persona: Persona, max_chars: int = 12000
) -> str:
    """Render the transcript as `Interviewer: ...` / `<persona name>: ...` lines."""
    lines: list[str] = []
    for m in messages:
        content = (m.content or "").strip()
        if not content:
            continue
        speaker = "Interviewer" if m.role == MessageRole.USER else persona.name
        lines.append(f"{speaker}: {content}")
    return clip_text("\n".join(lines), max_chars)
