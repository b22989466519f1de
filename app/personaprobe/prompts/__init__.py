"""Facade over the prompt modules; the gateway only talks to DefaultPromptFactory."""

from __future__ import annotations
from typing import Sequence

from ..models import Message, Persona
from . import interview as _interview
from . import persona as _persona
from . import summary as _summary


class DefaultPromptFactory:
    def __init__(self, language: str = "English"):
        self.language = language

    # PERSONA GENERATION
    def build_persona_list_system(self) -> str:
        return _persona.build_persona_list_system(self.language)

    def persona_list_instruction(self, *, idea: str) -> str:
        return _persona.persona_list_instruction(idea=idea, language=self.language)

    # PERSONA ANALYSIS
    def build_persona_analysis_system(self) -> str:
        return _persona.build_persona_analysis_system(self.language)

    def persona_analysis_instruction(self, *, text: str) -> str:
        return _persona.persona_analysis_instruction(text=text, language=self.language)

    # INTERVIEW
    def build_persona_system(self, *, persona: Persona, idea: str) -> str:
        return _interview.build_persona_system(
            persona=persona, idea=idea, language=self.language
        )

    def greeting(self, *, persona: Persona) -> str:
        return _interview.greeting(persona=persona)

    # SUMMARY
    def summary_instruction(
        self, *, transcript: Sequence[Message], idea: str, persona: Persona
    ) -> str:
        return _summary.summary_instruction(
            transcript=transcript, idea=idea, persona=persona, language=self.language
        )
