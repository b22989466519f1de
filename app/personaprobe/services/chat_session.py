"""
Purpose: One live conversation with one persona about one idea.

The system framing (persona profile + scenario) is fixed at construction.
The session remembers only the turns sent through it; it is never seeded
with an external transcript, including when an interview is restored.
Sends must not overlap: the caller serializes them, and an overlapping
send is rejected with BusyError.
"""

from __future__ import annotations
import logging

from ..errors import BusyError, ConfigurationError, ServiceError
from ..interfaces import LLMClient, PromptFactory
from ..models import LLMSettings, Persona

logger = logging.getLogger(__name__)


class PersonaChatSession:
    def __init__(
        self,
        persona: Persona,
        idea: str,
        *,
        llm: LLMClient,
        prompts: PromptFactory,
        settings: LLMSettings,
    ):
        if llm is None:
            raise ConfigurationError("No LLM client for the chat session.")
        self._persona = persona
        self._idea = idea
        self._llm = llm
        self._settings = settings
        self._system = prompts.build_persona_system(persona=persona, idea=idea)
        self._turns: list[dict[str, str]] = []
        self._in_flight = False

    @property
    def persona(self) -> Persona:
        return self._persona

    @property
    def idea(self) -> str:
        return self._idea

    @property
    def system_instruction(self) -> str:
        return self._system

    @property
    def turns(self) -> tuple[dict[str, str], ...]:
        """Turns sent through this session (copies), oldest first."""
        return tuple(dict(t) for t in self._turns)

    async def send(self, text: str) -> str:
        if self._in_flight:
            raise BusyError("A reply is still pending for this session.")
        self._in_flight = True
        try:
            messages = [{"role": "system", "content": self._system}]
            messages.extend(self._turns)
            messages.append({"role": "user", "content": text})

            reply, meta = await self._llm.chat(messages, self._settings)
            reply = (reply or "").strip()
            if not reply:
                raise ServiceError("The persona returned an empty reply.")

            # a failed turn is not remembered
            self._turns.append({"role": "user", "content": text})
            self._turns.append({"role": "assistant", "content": reply})
            logger.debug(
                "Chat turn with %s: %s tokens in, %s out",
                self._persona.name,
                meta.get("tokens_in", 0),
                meta.get("tokens_out", 0),
            )
            return reply
        finally:
            self._in_flight = False
