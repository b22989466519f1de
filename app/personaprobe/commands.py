"""
Commands the presentation layer sends to SessionController, and what
dispatching one returns: a new state snapshot plus at most one pending
async operation for the caller to resolve.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from .errors import PersonaProbeError
from .models import Persona, SessionState


class OperationKind(str, Enum):
    GENERATE_LIST = "generate_list"
    DERIVE_PERSONA = "derive_persona"
    SEND_MESSAGE = "send_message"
    SUMMARIZE = "summarize"
    SAVE_INTERVIEW = "save_interview"
    LOAD_INTERVIEW = "load_interview"
    DELETE_INTERVIEW = "delete_interview"
    REFRESH_HISTORY = "refresh_history"


@dataclass(frozen=True)
class GenerateList:
    idea: str


@dataclass(frozen=True)
class DerivePersona:
    raw_text: str


@dataclass(frozen=True)
class SelectPersona:
    persona: Persona


@dataclass(frozen=True)
class SendMessage:
    text: str


@dataclass(frozen=True)
class Summarize:
    pass


@dataclass(frozen=True)
class DismissSummary:
    pass


@dataclass(frozen=True)
class SaveInterview:
    pass


@dataclass(frozen=True)
class LoadInterview:
    interview_id: str


@dataclass(frozen=True)
class DeleteInterview:
    interview_id: str


@dataclass(frozen=True)
class RefreshHistory:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class SetCredential:
    value: str

    def __repr__(self) -> str:
        return "SetCredential(value=***)"


@dataclass(frozen=True)
class ClearCredential:
    pass


@dataclass(frozen=True)
class DismissError:
    pass


@dataclass(frozen=True)
class Reset:
    pass


Command = Union[
    GenerateList,
    DerivePersona,
    SelectPersona,
    SendMessage,
    Summarize,
    DismissSummary,
    SaveInterview,
    LoadInterview,
    DeleteInterview,
    RefreshHistory,
    Back,
    SetCredential,
    ClearCredential,
    DismissError,
    Reset,
]


@dataclass(frozen=True)
class PendingOperation:
    """
    An in-flight call captured at dispatch time. `epoch` is the controller
    epoch the call belongs to; a guarded operation whose epoch is no longer
    current is discarded on completion instead of applied.
    """

    kind: OperationKind
    epoch: int
    run: Callable[[], Awaitable[Any]]
    apply: Callable[[Any], None]
    fail: Callable[[PersonaProbeError], None]
    guarded: bool = True


@dataclass(frozen=True)
class Transition:
    state: SessionState
    pending: Optional[PendingOperation] = None
    rejected: Optional[PersonaProbeError] = None
