"""Persona generation and persona-from-data analysis prompts."""

from __future__ import annotations
from textwrap import dedent

from .common import PERSONA_FIELDS, language_rule

PERSONA_COUNT = 5

_LIST_TEMPLATE = dedent(
    """\
    Product idea: "{idea}".

    Create {count} realistic user personas who could be potential users
    or stakeholders of this product. Vary their age, technical proficiency
    and background.

    Return a JSON array of exactly {count} objects with the fields:
    {fields}.
    {language_rule}
    For avatar, use the one emoji that best represents the persona.
    """
)

_ANALYSIS_TEMPLATE = dedent(
    """\
    Below is real user material: interview notes, chat logs or feedback.
    Analyze it and extract one persona profile that represents this user.

    [DATA]
    {text}

    Guidelines:
    1. Prefer facts stated in the data (job, age, ...).
    2. Infer anything unstated from tone, interests and context.
    3. If there is no name, invent a fitting pseudonym.
    4. {language_rule}

    Return a single JSON object with the fields: {fields}.
    """
)


def build_persona_list_system(language: str) -> str:
    return (
        "You are an expert UX researcher and product manager. "
        f"{language_rule(language)} "
        "Return only a valid JSON array, with no commentary."
    )


def persona_list_instruction(*, idea: str, language: str) -> str:
    return _LIST_TEMPLATE.format(
        idea=idea,
        count=PERSONA_COUNT,
        fields=PERSONA_FIELDS,
        language_rule=language_rule(language),
    )


def build_persona_analysis_system(language: str) -> str:
    return (
        "You are a UX researcher skilled at data analysis. Extract the user's "
        "traits from the given text and return them as one structured persona "
        f"JSON object. {language_rule(language)}"
    )


def persona_analysis_instruction(*, text: str, language: str) -> str:
    return _ANALYSIS_TEMPLATE.format(
        text=text, fields=PERSONA_FIELDS, language_rule=language_rule(language)
    )
