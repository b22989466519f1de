"""
Purpose: Request/response contract with the generation service.

Every call takes the credential explicitly; nothing here reads ambient
state. Structured calls go through the tolerant JSON recovery in
utils.llm_json and are re-validated in services.personas.

Errors: ConfigurationError (no/invalid credential), RateLimitError,
ParseError, ServiceError. Nothing fails silently into an empty result.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional, Sequence

from ..errors import ConfigurationError
from ..interfaces import LLMClient, PromptFactory
from ..models import LLMSettings, Message, Persona
from ..prompts import DefaultPromptFactory
from ..prompts.summary import FALLBACK_SUMMARY
from .chat_session import PersonaChatSession
from .llm_openai import OpenAILLMClient
from .personas import parse_persona_list, parse_single_persona

logger = logging.getLogger(__name__)

LLMFactory = Callable[[str], LLMClient]

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIGenerationGateway:
    def __init__(
        self,
        *,
        llm_factory: LLMFactory = OpenAILLMClient,
        prompts: Optional[PromptFactory] = None,
        settings: Optional[LLMSettings] = None,
    ):
        self._llm_factory = llm_factory
        self.prompts: PromptFactory = prompts or DefaultPromptFactory()
        self.settings = settings or LLMSettings(model=DEFAULT_MODEL)

    def _client(self, credential: str) -> LLMClient:
        if not (credential or "").strip():
            raise ConfigurationError(
                "API key is not set. Enter your API key in the sidebar settings."
            )
        return self._llm_factory(credential)

    def _json_settings(self, *, object_mode: bool) -> LLMSettings:
        return LLMSettings(
            model=self.settings.model,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            max_tokens=max(self.settings.max_tokens, 2000),
            response_format={"type": "json_object"} if object_mode else None,
        )

    async def generate_persona_list(self, idea: str, *, credential: str) -> list[Persona]:
        llm = self._client(credential)
        messages = [
            {"role": "system", "content": self.prompts.build_persona_list_system()},
            {"role": "user", "content": self.prompts.persona_list_instruction(idea=idea)},
        ]
        text, meta = await llm.chat(messages, self._json_settings(object_mode=False))
        personas = parse_persona_list(text)
        logger.info(
            "Generated %d personas (%s tokens out)", len(personas), meta.get("tokens_out", 0)
        )
        return personas

    async def derive_persona_from_text(self, raw_text: str, *, credential: str) -> Persona:
        llm = self._client(credential)
        messages = [
            {"role": "system", "content": self.prompts.build_persona_analysis_system()},
            {"role": "user", "content": self.prompts.persona_analysis_instruction(text=raw_text)},
        ]
        text, _ = await llm.chat(messages, self._json_settings(object_mode=True))
        return parse_single_persona(text)

    async def summarize(
        self,
        transcript: Sequence[Message],
        idea: str,
        persona: Persona,
        *,
        credential: str,
    ) -> str:
        llm = self._client(credential)
        messages = [
            {
                "role": "user",
                "content": self.prompts.summary_instruction(
                    transcript=transcript, idea=idea, persona=persona
                ),
            }
        ]
        text, _ = await llm.chat(messages, self.settings)
        text = (text or "").strip()
        if not text:
            logger.warning("Empty summary response; using fallback text")
            return FALLBACK_SUMMARY
        return text

    def create_chat_session(
        self, persona: Persona, idea: str, *, credential: str
    ) -> PersonaChatSession:
        return PersonaChatSession(
            persona,
            idea,
            llm=self._client(credential),
            prompts=self.prompts,
            settings=self.settings,
        )
