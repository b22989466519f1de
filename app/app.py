"""
UI layer
Purpose: Streamlit-only glue. Renders the current SessionState and turns
widget events into controller commands. No business logic lives here, so
the controller can be unit tested without Streamlit.
"""

import asyncio
import os
from datetime import datetime

import streamlit as st

from personaprobe.commands import (
    Back,
    ClearCredential,
    DeleteInterview,
    DerivePersona,
    DismissError,
    DismissSummary,
    GenerateList,
    LoadInterview,
    RefreshHistory,
    Reset,
    SaveInterview,
    SelectPersona,
    SendMessage,
    SetCredential,
    Summarize,
)
from personaprobe.config import AppSettings, configure_logging
from personaprobe.controller import SessionController
from personaprobe.errors import ValidationError
from personaprobe.models import AppStep, MessageRole, Persona
from personaprobe.persistence.credentials import CredentialStore
from personaprobe.persistence.history_store import HistoryStore
from personaprobe.persistence.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore
from personaprobe.prompts import DefaultPromptFactory
from personaprobe.services.export import summary_document, summary_filename
from personaprobe.services.gateway import OpenAIGenerationGateway
from personaprobe.services.llm_openai import OpenAILLMClient
from personaprobe.services.personas import build_custom_persona

# ---------------------------
# Page config
# ---------------------------
st.set_page_config(
    page_title="PersonaProbe",
    page_icon="👥",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------
# Process-wide resources
# ---------------------------
@st.cache_resource
def get_settings() -> AppSettings:
    settings = AppSettings.from_env()
    configure_logging(settings.log_level)
    return settings


@st.cache_resource
def get_history_store() -> HistoryStore:
    return HistoryStore(JsonFileKeyValueStore(get_settings().data_dir))


def build_controller() -> SessionController:
    settings = get_settings()
    prompts = DefaultPromptFactory(language=settings.language)
    gateway = OpenAIGenerationGateway(
        llm_factory=lambda key: OpenAILLMClient(key, timeout=settings.timeout_s),
        prompts=prompts,
        settings=settings.llm_settings(),
    )
    # the credential lives only in this browser session
    credentials = CredentialStore(InMemoryKeyValueStore())
    env_key = os.getenv("OPENAI_API_KEY", "").strip()
    if env_key:
        credentials.set(env_key)
    return SessionController(gateway, get_history_store(), credentials, prompts=prompts)


# ---------------------------
# Session state init
# ---------------------------
st_session = st.session_state
if "controller" not in st_session:
    st_session.controller = build_controller()
    # one loop per browser session: the chat session's HTTP client is bound to it
    st_session.loop = asyncio.new_event_loop()
    st_session.history_loaded = False

controller: SessionController = st_session.controller


def run(command) -> None:
    """Dispatch a command and wait for its pending operation, if any."""
    st_session.loop.run_until_complete(controller.execute(command))


if not st_session.history_loaded:
    run(RefreshHistory())
    st_session.history_loaded = True


# ---------------------------
# Helpers
# ---------------------------
def format_ts(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%Y-%m-%d %H:%M")


def render_persona_card(persona: Persona, key: str) -> None:
    with st.container(border=True):
        st.markdown(f"<div style='font-size:48px'>{persona.avatar}</div>", unsafe_allow_html=True)
        st.markdown(f"### {persona.name}")
        st.caption(f"{persona.job} · {persona.age}")
        st.markdown(f"_\"{persona.personality}\"_")
        if persona.interests:
            st.markdown("**Interests:** " + ", ".join(persona.interests[:3]))
        if persona.pain_points:
            st.markdown("**Pain points:** " + ", ".join(persona.pain_points[:2]))
        if st.button("Start interview", key=key, use_container_width=True):
            run(SelectPersona(persona))
            st.rerun()


def render_custom_persona_form() -> None:
    state = controller.state
    draft = state.draft_persona
    tab_manual, tab_analyze = st.tabs(["Manual entry", "Analyze user data"])

    with tab_analyze:
        raw = st.text_area(
            "Paste interview notes, chat logs or feedback",
            height=200,
            key="analyze_text",
        )
        if st.button("Analyze", disabled=state.analyzing):
            with st.spinner("Analyzing..."):
                run(DerivePersona(raw))
            if controller.state.draft_persona is not None:
                st.toast("Persona extracted. Review it in the manual entry tab.", icon="✨")
            st.rerun()

    with tab_manual:
        with st.form("custom_persona"):
            c1, c2, c3 = st.columns([3, 1, 1])
            name = c1.text_input("Name", value=draft.name if draft else "")
            age = c2.number_input(
                "Age", min_value=1, max_value=120, value=draft.age if draft else 30
            )
            avatar = c3.text_input("Avatar", value=draft.avatar if draft else "😊")
            job = st.text_input("Job", value=draft.job if draft else "")
            personality = st.text_input(
                "Personality", value=draft.personality if draft else ""
            )
            background = st.text_area(
                "Background", value=draft.background if draft else ""
            )
            interests = st.text_input(
                "Interests (comma-separated)",
                value=", ".join(draft.interests) if draft else "",
            )
            pain_points = st.text_input(
                "Pain points (comma-separated)",
                value=", ".join(draft.pain_points) if draft else "",
            )
            submitted = st.form_submit_button("Create and interview", type="primary")

        if submitted:
            try:
                persona = build_custom_persona(
                    name=name,
                    job=job,
                    age=int(age),
                    personality=personality,
                    background=background,
                    interests=interests,
                    pain_points=pain_points,
                    avatar=avatar,
                )
            except ValidationError as e:
                st.error(str(e))
            else:
                run(SelectPersona(persona))
                st.rerun()


# ---------------------------
# SIDEBAR: settings & history
# ---------------------------
with st.sidebar:
    st.markdown("# Settings")

    st.markdown("## API Key")
    key_input = st.text_input(
        "OpenAI API key",
        type="password",
        help="The key stays in this browser session only and is never saved with interviews.",
    )
    k1, k2 = st.columns(2)
    if k1.button("Save key", type="primary", disabled=not key_input):
        run(SetCredential(key_input))
        st.toast("API key saved for this session.", icon="🔑")
    if k2.button("Delete key", disabled=not controller.state.has_credential):
        run(ClearCredential())
        st.toast("API key removed.")
    if controller.state.has_credential:
        st.caption("✅ API key configured")
    else:
        st.warning("Please enter your API key to continue.")
    st.divider()

    st.markdown("## Interview History")
    saved = controller.state.saved_interviews
    if not saved:
        st.caption("No saved interviews yet.")
    for record in saved:
        with st.container(border=True):
            st.markdown(f"{record.persona.avatar} **{record.persona.name}**")
            st.caption(f"{format_ts(record.timestamp)} · {record.idea[:60]}")
            h1, h2 = st.columns(2)
            if h1.button("Open", key=f"load_{record.id}"):
                run(LoadInterview(record.id))
                st.rerun()
            if h2.button("Delete", key=f"delete_{record.id}"):
                run(DeleteInterview(record.id))
                st.rerun()
    st.divider()

    st.markdown("## Session Controls")
    if st.button("Reset session"):
        run(Reset())
        st.rerun()


# ---------------------------
# Header & errors
# ---------------------------
st.title("👥 PersonaProbe")
state = controller.state
if state.step != AppStep.INPUT:
    st.caption("AI user research")

if state.error is not None:
    c1, c2 = st.columns([6, 1])
    c1.error(str(state.error))
    if c2.button("Dismiss"):
        run(DismissError())
        st.rerun()


# ---------------------------
# Main steps
# ---------------------------
if state.step == AppStep.INPUT:
    st.subheader("Describe your product idea")
    idea = st.text_area(
        "Product idea",
        value=state.idea,
        height=160,
        placeholder="e.g. An app that matches dog owners with nearby walkers...",
    )
    if st.button(
        "Generate personas",
        type="primary",
        disabled=state.generating or not idea.strip(),
    ):
        with st.spinner("Generating personas..."):
            run(GenerateList(idea))
        st.rerun()

elif state.step == AppStep.SELECTION:
    top1, top2 = st.columns([1, 5])
    if top1.button("← Edit idea"):
        run(Back())
        st.rerun()
    top2.subheader("Choose a persona to interview")

    cols = st.columns(3)
    for i, persona in enumerate(state.personas):
        with cols[i % 3]:
            render_persona_card(persona, key=f"select_{state.epoch}_{i}")

    with st.expander("➕ Create your own persona", expanded=state.draft_persona is not None):
        render_custom_persona_form()

elif state.step == AppStep.INTERVIEW and state.selected_persona:
    persona = state.selected_persona
    top1, top2 = st.columns([1, 5])
    if top1.button("← Personas"):
        run(Back())
        st.rerun()
    top2.subheader(f"{persona.avatar} Interview with {persona.name}")
    st.caption(f"{persona.job} · Idea: {state.idea}")

    for m in state.messages:
        role = "user" if m.role == MessageRole.USER else "assistant"
        avatar = None if role == "user" else persona.avatar
        with st.chat_message(role, avatar=avatar):
            st.markdown(m.content)

    if not state.chat_ready:
        st.info("Chat is unavailable until an API key is configured and the session is restored.")

    user_text = st.chat_input(
        "Ask a question...", disabled=state.sending or not state.chat_ready
    )
    if user_text:
        with st.spinner(f"{persona.name} is typing..."):
            run(SendMessage(user_text))
        st.rerun()

    s1, s2, s3 = st.columns(3)
    if s1.button(
        "Summarize interview",
        disabled=state.summarizing or len(state.messages) < 2,
    ):
        with st.spinner("Summarizing..."):
            run(Summarize())
        st.rerun()

    if state.summary:
        with st.container(border=True):
            st.markdown("### Interview Summary")
            st.markdown(state.summary)
            st.download_button(
                "Download",
                summary_document(state.summary, persona, state.idea),
                file_name=summary_filename(persona),
                mime="text/markdown",
            )
            with st.expander("Copy as text"):
                st.code(state.summary, language="markdown")
        if s2.button(
            "Saved" if state.saved else "Save to history",
            type="primary",
            disabled=state.saving or state.saved,
        ):
            run(SaveInterview())
            if controller.state.saved:
                st.toast("Interview saved.", icon="💾")
            st.rerun()
        if s3.button("Close summary"):
            run(DismissSummary())
            st.rerun()
