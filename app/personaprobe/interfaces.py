"""
Abstractions for pluggable services. Inversion of control: the controller
depends on these protocols, not on OpenAI or on a particular storage medium.

Common protocols:
- LLMClient.chat(messages, settings) -> (reply, meta)
- KeyValueStore.get/set/remove over string blobs
- ChatSession.send(text) -> reply
- GenerationGateway: persona list, persona-from-text, summary, chat sessions
- PromptFactory: every prompt string the gateway sends

Testing: Use simple fake implementations to test the controller without network calls.
"""

from __future__ import annotations
from typing import Optional, Protocol, Sequence

from .models import LLMSettings, Message, Persona


class LLMClient(Protocol):
    async def chat(
        self,
        messages: list[dict[str, str]],
        settings: LLMSettings,
    ) -> tuple[str, dict]: ...


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class ChatSession(Protocol):
    @property
    def persona(self) -> Persona: ...

    @property
    def system_instruction(self) -> str: ...

    async def send(self, text: str) -> str: ...


class GenerationGateway(Protocol):
    async def generate_persona_list(
        self, idea: str, *, credential: str
    ) -> list[Persona]: ...

    async def derive_persona_from_text(
        self, raw_text: str, *, credential: str
    ) -> Persona: ...

    async def summarize(
        self,
        transcript: Sequence[Message],
        idea: str,
        persona: Persona,
        *,
        credential: str,
    ) -> str: ...

    def create_chat_session(
        self, persona: Persona, idea: str, *, credential: str
    ) -> ChatSession: ...


class PromptFactory(Protocol):
    def build_persona_list_system(self) -> str: ...

    def persona_list_instruction(self, *, idea: str) -> str: ...

    def build_persona_analysis_system(self) -> str: ...

    def persona_analysis_instruction(self, *, text: str) -> str: ...

    def build_persona_system(self, *, persona: Persona, idea: str) -> str: ...

    def greeting(self, *, persona: Persona) -> str: ...

    def summary_instruction(
        self, *, transcript: Sequence[Message], idea: str, persona: Persona
    ) -> str: ...
