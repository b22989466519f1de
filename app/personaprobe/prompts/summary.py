"""Interview summary report prompt."""

from __future__ import annotations
from textwrap import dedent
from typing import Sequence

from ..models import Message, Persona
from .common import render_transcript

FALLBACK_SUMMARY = "Unable to generate a summary."

_SUMMARY_TEMPLATE = dedent(
    """\
    Below is a user interview about the product idea "{idea}".
    Interviewee persona: {name} ({job}, age {age})

    [CONVERSATION]
    {conversation}

    Based on this interview, write a summary report in {language} covering:
    1. Key Insights: what mattered most to the user
    2. Positive Feedback: what they liked about the product
    3. Concerns & Improvements: what worried or bothered them
    4. Overall Verdict: how likely this persona is to use the product, and why

    Use Markdown formatting for readability.
    """
)


def summary_instruction(
    *,
    transcript: Sequence[Message],
    idea: str,
    persona: Persona,
    language: str,
) -> str:
    return _SUMMARY_TEMPLATE.format(
        idea=idea,
        name=persona.name,
        job=persona.job,
        age=persona.age,
        conversation=render_transcript(transcript, persona),
        language=language,
    )
