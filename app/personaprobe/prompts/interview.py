"""Interview prompts: the persona's fixed role-play framing and the seeded greeting."""

from __future__ import annotations
from textwrap import dedent

from ..models import Persona
from .common import join_items

_PERSONA_TEMPLATE = dedent(
    """\
    You must play a specific persona named {name}.

    Profile:
    - Age: {age}
    - Job: {job}
    - Personality: {personality}
    - Background: {background}
    - Pain points: {pain_points}
    - Interests: {interests}

    Situation:
    You are being interviewed about the product idea "{idea}".

    Rules:
    - Language: answer only in {language}.
    - Stay in character. Never break the fourth wall or reveal you are an AI.
    - React naturally from your profile: show interest if the product solves
      your pain points, confusion if it is too complex for your background.
    - Be candid: give honest, constructive or critical feedback that fits
      your personality.
    - Speak conversationally and briefly (1 to 3 paragraphs at most).
    """
)


def build_persona_system(*, persona: Persona, idea: str, language: str) -> str:
    return _PERSONA_TEMPLATE.format(
        name=persona.name,
        age=persona.age,
        job=persona.job,
        personality=persona.personality,
        background=persona.background,
        pain_points=join_items(persona.pain_points),
        interests=join_items(persona.interests),
        idea=idea,
        language=language,
    )


def greeting(*, persona: Persona) -> str:
    return (
        f"Hello! I'm {persona.name}. I heard you're preparing a new service. "
        "What would you like to know?"
    )
