"""Shared fakes: a scripted LLMClient behind the real gateway, in-memory storage."""

from __future__ import annotations

import json
from typing import Any, Callable, Union

import pytest

from personaprobe.controller import SessionController
from personaprobe.models import LLMSettings
from personaprobe.persistence.credentials import CredentialStore
from personaprobe.persistence.history_store import HistoryStore
from personaprobe.persistence.kv_store import InMemoryKeyValueStore
from personaprobe.services.gateway import OpenAIGenerationGateway

Reply = Union[str, Exception, Callable[[list[dict[str, str]]], str]]

TEST_KEY = "sk-test"


class FakeLLM:
    """Pops one scripted reply per call; an Exception reply is raised."""

    def __init__(self, replies: list[Reply] | None = None):
        self.replies: list[Reply] = list(replies or [])
        self.calls: list[tuple[list[dict[str, str]], LLMSettings]] = []

    def queue(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    async def chat(self, messages, settings):
        self.calls.append((messages, settings))
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(messages)
        return reply, {"model": settings.model, "tokens_in": 10, "tokens_out": 20}


def persona_payload(name: str = "Ana Lima", **overrides: Any) -> dict[str, Any]:
    data = {
        "name": name,
        "age": 34,
        "job": "Dog walker",
        "personality": "Practical and direct",
        "background": "Runs a small walking business",
        "interests": ["dogs", "running"],
        "painPoints": ["no-show clients", "late payments"],
        "avatar": "🐕",
    }
    data.update(overrides)
    return data


def persona_list_json(prefix: str = "P", count: int = 5) -> str:
    return json.dumps(
        [persona_payload(f"{prefix}{i}") for i in range(count)], ensure_ascii=False
    )


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def factory_calls() -> list[str]:
    return []


@pytest.fixture
def gateway(llm, factory_calls) -> OpenAIGenerationGateway:
    def factory(key: str) -> FakeLLM:
        factory_calls.append(key)
        return llm

    return OpenAIGenerationGateway(
        llm_factory=factory, settings=LLMSettings(model="test-model")
    )


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def history(kv) -> HistoryStore:
    return HistoryStore(kv)


@pytest.fixture
def credentials() -> CredentialStore:
    store = CredentialStore(InMemoryKeyValueStore())
    store.set(TEST_KEY)
    return store


@pytest.fixture
def controller(gateway, history, credentials) -> SessionController:
    counter = iter(range(1, 10_000))
    return SessionController(
        gateway,
        history,
        credentials,
        id_factory=lambda: f"id-{next(counter)}",
        clock=lambda: 1_700_000_000_000,
    )
