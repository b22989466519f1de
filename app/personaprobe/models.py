"""
Canonical data shapes, shared truth for typing/validation between layers.

Typical contents:
- Persona, Message, SavedInterview (the records that get persisted).
- SessionState (the immutable snapshot the UI renders from).
- LLMSettings (model, temperature, top_p, max_tokens).

Serialized layout follows the stored record format: camelCase `painPoints`,
integer millisecond timestamps, role values "user" / "model".
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import time


class AppStep(str, Enum):
    INPUT = "input"
    SELECTION = "selection"
    INTERVIEW = "interview"


class MessageRole(str, Enum):
    USER = "user"
    MODEL = "model"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Persona:
    name: str
    age: int
    job: str
    personality: str
    background: str
    interests: tuple[str, ...] = ()
    pain_points: tuple[str, ...] = ()
    avatar: str = "🤔"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "age": self.age,
            "job": self.job,
            "personality": self.personality,
            "background": self.background,
            "interests": list(self.interests),
            "painPoints": list(self.pain_points),
            "avatar": self.avatar,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Persona":
        """Strict load of a stored record; tolerant parsing lives in services.personas."""
        return cls(
            name=data["name"],
            age=int(data["age"]),
            job=data["job"],
            personality=data.get("personality", ""),
            background=data.get("background", ""),
            interests=tuple(data.get("interests") or ()),
            pain_points=tuple(data.get("painPoints") or ()),
            avatar=data.get("avatar") or "🤔",
        )


@dataclass(frozen=True)
class Message:
    id: str
    role: MessageRole
    content: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            id=str(data["id"]),
            role=MessageRole(data["role"]),
            content=data["content"],
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class SavedInterview:
    id: str
    timestamp: int
    idea: str
    persona: Persona
    messages: tuple[Message, ...]
    summary: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "idea": self.idea,
            "persona": self.persona.to_dict(),
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.summary is not None:
            data["summary"] = self.summary
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedInterview":
        return cls(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            idea=data["idea"],
            persona=Persona.from_dict(data["persona"]),
            messages=tuple(Message.from_dict(m) for m in data.get("messages", [])),
            summary=data.get("summary"),
        )


@dataclass(frozen=True)
class SessionState:
    step: AppStep = AppStep.INPUT
    idea: str = ""
    personas: tuple[Persona, ...] = ()
    selected_persona: Optional[Persona] = None
    messages: tuple[Message, ...] = ()
    summary: Optional[str] = None

    # busy flags
    generating: bool = False
    sending: bool = False
    summarizing: bool = False
    analyzing: bool = False
    saving: bool = False

    has_credential: bool = False
    chat_ready: bool = False
    # the current summary is already in the history
    saved: bool = False
    draft_persona: Optional[Persona] = None
    saved_interviews: tuple[SavedInterview, ...] = ()
    error: Optional[Exception] = field(default=None, compare=False)
    epoch: int = 0


@dataclass
class LLMSettings:
    model: str
    temperature: float = 0.8
    top_p: float = 1.0
    max_tokens: int = 1500
    response_format: Optional[dict] = None
