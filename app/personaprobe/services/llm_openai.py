"""
Purpose: Thin async client wrapper around OpenAI.
One place for auth, model options, response/usage normalization and
mapping SDK errors onto the project's error taxonomy.

No retries here: the SDK's own retry loop is disabled and every retry is a
fresh user-triggered call.

Testing: Mock SDK calls; assert it maps usage and errors correctly.
"""

from __future__ import annotations
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from ..errors import ConfigurationError, RateLimitError, ServiceError
from ..models import LLMSettings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


class OpenAILLMClient:
    def __init__(self, api_key: str, *, timeout: Optional[float] = None):
        if not (api_key or "").strip():
            raise ConfigurationError(
                "API key is not set. Enter your OpenAI API key in the sidebar."
            )
        self.api_key = api_key.strip()
        try:
            self.client = AsyncOpenAI(
                api_key=self.api_key,
                max_retries=0,
                timeout=timeout or DEFAULT_TIMEOUT_S,
            )
        except openai.OpenAIError as e:
            raise ConfigurationError(f"Failed to initialize OpenAI client: {e}") from e

    async def chat(
        self,
        messages: list[dict[str, str]],
        settings: LLMSettings,
    ) -> tuple[str, dict]:
        kwargs = dict(
            model=settings.model,
            messages=messages,
            temperature=settings.temperature,
            top_p=settings.top_p,
            max_tokens=settings.max_tokens,
        )
        if settings.response_format:
            kwargs["response_format"] = settings.response_format

        try:
            cc = await self.client.chat.completions.create(**kwargs)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise ConfigurationError(
                "The API key is invalid or lacks access. Check it in the sidebar."
            ) from e
        except openai.RateLimitError as e:
            raise RateLimitError(
                "Too many requests. Please wait a moment and try again."
            ) from e
        except openai.APIError as e:
            logger.warning("OpenAI request failed: %s", e)
            raise ServiceError(f"Generation service error: {e}") from e

        text = (cc.choices[0].message.content or "") if cc.choices else ""
        usage = getattr(cc, "usage", None)
        tokens_in = getattr(usage, "prompt_tokens", 0) if usage else 0
        tokens_out = getattr(usage, "completion_tokens", 0) if usage else 0
        return text, {
            "model": cc.model,
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
        }
