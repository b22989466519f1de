"""
Purpose: The single orchestration point for an interview session.
Owns the phase state machine (input -> selection -> interview), the live
chat session, the busy flags and the stale-response guard. The UI only
reads `state` and sends commands; it never talks to the gateway or store.

Key responsibilities:
- dispatch(command): check guards, update state, return a Transition with
  at most one PendingOperation. Guard failures are reported in
  `state.error`, never raised.
- resolve(op): await the operation and apply its result, unless the state
  has navigated on since (epoch changed), in which case it is dropped.
- execute(command): dispatch + resolve, for callers that just want the
  final state.

Every navigation (back, select, list generated, interview loaded, reset)
bumps the epoch and clears all busy flags.

Testing: Pure unit tests with fakes: fake LLMClient behind the real gateway,
in-memory key-value store behind the real HistoryStore.
"""

from __future__ import annotations
import logging
import uuid
from dataclasses import replace
from typing import Any, Callable, Optional

from .commands import (
    Back,
    ClearCredential,
    Command,
    DeleteInterview,
    DerivePersona,
    DismissError,
    DismissSummary,
    GenerateList,
    LoadInterview,
    OperationKind,
    PendingOperation,
    RefreshHistory,
    Reset,
    SaveInterview,
    SelectPersona,
    SendMessage,
    SetCredential,
    Summarize,
    Transition,
)
from .errors import BusyError, PersonaProbeError, ValidationError
from .interfaces import ChatSession, GenerationGateway, PromptFactory
from .models import (
    AppStep,
    Message,
    MessageRole,
    SavedInterview,
    SessionState,
    now_ms,
)
from .persistence.credentials import CredentialStore
from .persistence.history_store import HistoryStore
from .prompts import DefaultPromptFactory
from .services.security import DefaultSecurity

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(
        self,
        gateway: GenerationGateway,
        history: HistoryStore,
        credentials: CredentialStore,
        *,
        prompts: Optional[PromptFactory] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.gateway = gateway
        self.history = history
        self.credentials = credentials
        self.prompts: PromptFactory = prompts or DefaultPromptFactory()
        self.security = DefaultSecurity()
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._clock = clock or now_ms
        self._chat: Optional[ChatSession] = None
        self._state = SessionState(has_credential=credentials.get() is not None)
        self._handlers: dict[type, Callable[[Any], Transition]] = {
            GenerateList: self._generate_list,
            DerivePersona: self._derive_persona,
            SelectPersona: self._select_persona,
            SendMessage: self._send_message,
            Summarize: self._summarize,
            DismissSummary: self._dismiss_summary,
            SaveInterview: self._save_interview,
            LoadInterview: self._load_interview,
            DeleteInterview: self._delete_interview,
            RefreshHistory: self._refresh_history,
            Back: self._back,
            SetCredential: self._set_credential,
            ClearCredential: self._clear_credential,
            DismissError: self._dismiss_error,
            Reset: self._reset,
        }

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def chat_session(self) -> Optional[ChatSession]:
        return self._chat

    # ---------------------------
    # Entry points
    # ---------------------------
    def dispatch(self, command: Command) -> Transition:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command: {command!r}")
        try:
            return handler(command)
        except PersonaProbeError as e:
            logger.info("Rejected %s: %s", type(command).__name__, e)
            return Transition(self._update(error=e), rejected=e)

    async def resolve(self, op: PendingOperation) -> SessionState:
        try:
            result = await op.run()
        except PersonaProbeError as e:
            if self._is_stale(op):
                logger.debug("Dropped stale failure of %s: %s", op.kind.value, e)
                return self._state
            logger.warning("%s failed: %s", op.kind.value, e)
            op.fail(e)
            return self._state

        if self._is_stale(op):
            logger.debug(
                "Dropped stale %s result (epoch %d, now %d)",
                op.kind.value,
                op.epoch,
                self._state.epoch,
            )
            return self._state
        op.apply(result)
        return self._state

    async def execute(self, command: Command) -> SessionState:
        transition = self.dispatch(command)
        if transition.pending is None:
            return transition.state
        return await self.resolve(transition.pending)

    # ---------------------------
    # State helpers
    # ---------------------------
    def _update(self, **changes: Any) -> SessionState:
        self._state = replace(self._state, **changes)
        return self._state

    def _navigate(self, **changes: Any) -> SessionState:
        """Move to a new context: bump epoch, clear every busy flag and error."""
        return self._update(
            epoch=self._state.epoch + 1,
            generating=False,
            sending=False,
            summarizing=False,
            analyzing=False,
            saving=False,
            error=None,
            **changes,
        )

    def _is_stale(self, op: PendingOperation) -> bool:
        return op.guarded and op.epoch != self._state.epoch

    def _pending(
        self,
        kind: OperationKind,
        run: Callable[[], Any],
        apply: Callable[[Any], None],
        fail: Callable[[PersonaProbeError], None],
        *,
        guarded: bool = True,
    ) -> Transition:
        op = PendingOperation(
            kind=kind,
            epoch=self._state.epoch,
            run=run,
            apply=apply,
            fail=fail,
            guarded=guarded,
        )
        return Transition(self._state, op)

    def _failer(self, flag: Optional[str] = None) -> Callable[[PersonaProbeError], None]:
        def fail(e: PersonaProbeError) -> None:
            if flag:
                self._update(**{flag: False}, error=e)
            else:
                self._update(error=e)

        return fail

    def _message(self, role: MessageRole, content: str) -> Message:
        return Message(id=self._new_id(), role=role, content=content, timestamp=self._clock())

    # ---------------------------
    # INPUT
    # ---------------------------
    def _generate_list(self, cmd: GenerateList) -> Transition:
        if self._state.step != AppStep.INPUT:
            raise ValidationError("Personas can only be generated from the idea step.")
        if self._state.generating:
            raise BusyError("Personas are already being generated.")
        idea = self.security.sanitize_for_prompt(cmd.idea)
        self.security.validate_idea(idea)
        credential = self.credentials.require()

        self._update(idea=idea, generating=True, error=None)

        def apply(personas) -> None:
            self._navigate(step=AppStep.SELECTION, personas=tuple(personas))

        return self._pending(
            OperationKind.GENERATE_LIST,
            lambda: self.gateway.generate_persona_list(idea, credential=credential),
            apply,
            self._failer("generating"),
        )

    # ---------------------------
    # SELECTION
    # ---------------------------
    def _derive_persona(self, cmd: DerivePersona) -> Transition:
        if self._state.step != AppStep.SELECTION:
            raise ValidationError("Personas can only be analyzed from the persona list.")
        if self._state.analyzing:
            raise BusyError("The text is already being analyzed.")
        self.security.validate_source_text(cmd.raw_text)
        credential = self.credentials.require()
        text = self.security.clip_source_text(self.security.sanitize_for_prompt(cmd.raw_text))

        self._update(analyzing=True, error=None)

        def apply(persona) -> None:
            self._update(draft_persona=persona, analyzing=False)

        return self._pending(
            OperationKind.DERIVE_PERSONA,
            lambda: self.gateway.derive_persona_from_text(text, credential=credential),
            apply,
            self._failer("analyzing"),
        )

    def _select_persona(self, cmd: SelectPersona) -> Transition:
        if self._state.step != AppStep.SELECTION:
            raise ValidationError("A persona can only be selected from the persona list.")
        credential = self.credentials.require()
        persona = cmd.persona
        # on failure the error propagates to dispatch and the step stays SELECTION
        chat = self.gateway.create_chat_session(persona, self._state.idea, credential=credential)

        self._chat = chat
        greeting = self._message(MessageRole.MODEL, self.prompts.greeting(persona=persona))
        state = self._navigate(
            step=AppStep.INTERVIEW,
            selected_persona=persona,
            messages=(greeting,),
            summary=None,
            chat_ready=True,
            saved=False,
            draft_persona=None,
        )
        logger.info("Interview started with %s", persona.name)
        return Transition(state)

    # ---------------------------
    # INTERVIEW
    # ---------------------------
    def _send_message(self, cmd: SendMessage) -> Transition:
        if self._state.sending:
            raise BusyError("Wait for the current reply before sending again.")
        self.security.validate_user_input(cmd.text)
        chat = self._chat
        if chat is None or self._state.step != AppStep.INTERVIEW:
            raise ValidationError("No active chat session; sending is disabled.")
        text = self.security.sanitize_for_prompt(cmd.text)

        user_msg = self._message(MessageRole.USER, text)
        self._update(messages=self._state.messages + (user_msg,), sending=True, error=None)

        def apply(reply: str) -> None:
            model_msg = self._message(MessageRole.MODEL, reply)
            self._update(messages=self._state.messages + (model_msg,), sending=False)

        # the user message stays in the transcript if the send fails
        return self._pending(
            OperationKind.SEND_MESSAGE,
            lambda: chat.send(text),
            apply,
            self._failer("sending"),
        )

    def _summarize(self, cmd: Summarize) -> Transition:
        if self._state.summarizing:
            raise BusyError("A summary is already being generated.")
        persona = self._state.selected_persona
        if persona is None:
            raise ValidationError("No persona is being interviewed.")
        if len(self._state.messages) < 2:
            raise ValidationError("Have at least one exchange before summarizing.")
        credential = self.credentials.require()
        messages, idea = self._state.messages, self._state.idea

        self._update(summarizing=True, error=None)

        def apply(summary: str) -> None:
            self._update(summary=summary, summarizing=False, saved=False)

        return self._pending(
            OperationKind.SUMMARIZE,
            lambda: self.gateway.summarize(messages, idea, persona, credential=credential),
            apply,
            self._failer("summarizing"),
        )

    def _dismiss_summary(self, cmd: DismissSummary) -> Transition:
        return Transition(self._update(summary=None))

    # ---------------------------
    # HISTORY
    # ---------------------------
    def _apply_saved(self, records) -> None:
        self._update(saved_interviews=tuple(records))

    def _save_interview(self, cmd: SaveInterview) -> Transition:
        if self._state.saving:
            raise BusyError("The interview is already being saved.")
        persona, summary = self._state.selected_persona, self._state.summary
        if persona is None or not summary:
            raise ValidationError("Summarize the interview before saving it.")
        if self._state.saved:
            raise ValidationError("This summary is already saved to the history.")
        record = SavedInterview(
            id=self._new_id(),
            timestamp=self._clock(),
            idea=self._state.idea,
            persona=persona,
            messages=self._state.messages,
            summary=summary,
        )

        async def run():
            await self.history.save(record)
            return await self.history.list()

        epoch = self._state.epoch
        self._update(saving=True, error=None)

        # the list is always refreshed; the flags belong to the interview that saved
        def apply(records) -> None:
            self._apply_saved(records)
            if self._state.epoch == epoch:
                self._update(saving=False, saved=True)

        def fail(e: PersonaProbeError) -> None:
            if self._state.epoch == epoch:
                self._update(saving=False, error=e)
            else:
                self._update(error=e)

        return self._pending(OperationKind.SAVE_INTERVIEW, run, apply, fail, guarded=False)

    def _delete_interview(self, cmd: DeleteInterview) -> Transition:
        async def run():
            await self.history.delete(cmd.interview_id)
            return await self.history.list()

        return self._pending(
            OperationKind.DELETE_INTERVIEW, run, self._apply_saved, self._failer(), guarded=False
        )

    def _refresh_history(self, cmd: RefreshHistory) -> Transition:
        return self._pending(
            OperationKind.REFRESH_HISTORY,
            self.history.list,
            self._apply_saved,
            self._failer(),
            guarded=False,
        )

    def _load_interview(self, cmd: LoadInterview) -> Transition:
        interview_id = cmd.interview_id

        async def run() -> SavedInterview:
            record = await self.history.get(interview_id)
            if record is None:
                raise ValidationError(f"Saved interview {interview_id!r} was not found.")
            return record

        return self._pending(
            OperationKind.LOAD_INTERVIEW, run, self._hydrate, self._failer()
        )

    def _hydrate(self, record: SavedInterview) -> None:
        """
        Show the record exactly as saved, then try to open a fresh chat session.
        The new session gets only persona + idea framing; the restored transcript
        is displayed but not replayed into it.
        """
        self._chat = None
        self._navigate(
            step=AppStep.INTERVIEW,
            idea=record.idea,
            selected_persona=record.persona,
            messages=record.messages,
            summary=record.summary,
            chat_ready=False,
            saved=True,
            draft_persona=None,
        )
        try:
            credential = self.credentials.require()
            self._chat = self.gateway.create_chat_session(
                record.persona, record.idea, credential=credential
            )
        except PersonaProbeError as e:
            logger.warning("Could not restore chat session for %s: %s", record.id, e)
            self._update(error=e)
        else:
            self._update(chat_ready=True)

    # ---------------------------
    # NAVIGATION & SETTINGS
    # ---------------------------
    def _back(self, cmd: Back) -> Transition:
        step = self._state.step
        if step == AppStep.INTERVIEW:
            self._chat = None
            self._navigate(
                step=AppStep.SELECTION,
                selected_persona=None,
                messages=(),
                summary=None,
                chat_ready=False,
                saved=False,
                draft_persona=None,
            )
        elif step == AppStep.SELECTION:
            self._navigate(step=AppStep.INPUT, personas=(), draft_persona=None)
        return Transition(self._state)

    def _set_credential(self, cmd: SetCredential) -> Transition:
        self.credentials.set(cmd.value)
        return Transition(self._update(has_credential=True, error=None))

    def _clear_credential(self, cmd: ClearCredential) -> Transition:
        self.credentials.clear()
        return Transition(self._update(has_credential=False))

    def _dismiss_error(self, cmd: DismissError) -> Transition:
        return Transition(self._update(error=None))

    def _reset(self, cmd: Reset) -> Transition:
        self._chat = None
        state = self._navigate(
            step=AppStep.INPUT,
            idea="",
            personas=(),
            selected_persona=None,
            messages=(),
            summary=None,
            chat_ready=False,
            saved=False,
            draft_persona=None,
        )
        return Transition(state)
