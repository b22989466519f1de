from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from personaprobe.errors import ConfigurationError, RateLimitError, ServiceError
from personaprobe.models import LLMSettings
from personaprobe.services.llm_openai import OpenAILLMClient

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, status: int):
    return cls("error", response=httpx.Response(status, request=_REQUEST), body=None)


def _completion(text):
    return SimpleNamespace(
        model="gpt-4o-mini",
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=34),
    )


@pytest.fixture
def client():
    return OpenAILLMClient("sk-test")


def _patch_create(client, **kwargs):
    mock = AsyncMock(**kwargs)
    client.client.chat.completions.create = mock
    return mock


def test_blank_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        OpenAILLMClient("  ")


def test_sdk_retries_are_disabled(client):
    assert client.client.max_retries == 0


@pytest.mark.asyncio
async def test_chat_normalizes_text_and_usage(client):
    create = _patch_create(client, return_value=_completion("Hello"))
    settings = LLMSettings(model="gpt-4o-mini", response_format={"type": "json_object"})

    text, meta = await client.chat([{"role": "user", "content": "hi"}], settings)

    assert text == "Hello"
    assert meta == {"model": "gpt-4o-mini", "tokens_in": 12, "tokens_out": 34}
    assert create.call_args.kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_null_content_becomes_empty_text(client):
    _patch_create(client, return_value=_completion(None))
    text, _ = await client.chat([], LLMSettings(model="m"))
    assert text == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "sdk_error, expected",
    [
        (_status_error(openai.AuthenticationError, 401), ConfigurationError),
        (_status_error(openai.PermissionDeniedError, 403), ConfigurationError),
        (_status_error(openai.RateLimitError, 429), RateLimitError),
        (_status_error(openai.InternalServerError, 500), ServiceError),
        (openai.APIConnectionError(request=_REQUEST), ServiceError),
    ],
)
async def test_sdk_errors_map_onto_taxonomy(client, sdk_error, expected):
    _patch_create(client, side_effect=sdk_error)
    with pytest.raises(expected):
        await client.chat([{"role": "user", "content": "hi"}], LLMSettings(model="m"))
