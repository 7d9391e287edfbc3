# src/ui/tutor_chat.py
import streamlit as st

from src.agents.tutor_agent.agent import QUICK_PROMPTS, TutorChatSession
from src.errors import ChatBusyError, GatewayError
from src.logging_setup import get_logger
from src.tools.export import build_transcript_pdf, transcript_markdown
from src.ui.solution_editor import bump_revision

logger = get_logger("streamlit_app", "streamlit_app.log")


def get_chat_session(doc, gateway, store) -> TutorChatSession:
    """Return the chat session for the current document, building it on first use."""
    session = st.session_state.get("chat_session")
    if session is None or session.document is not doc:
        session = TutorChatSession(doc, gateway, store=store)
        st.session_state.chat_session = session
    return session


def _render_message(msg) -> None:
    if msg.is_system:
        st.info(msg.text)
        return
    with st.chat_message("user" if msg.role == "user" else "assistant"):
        st.markdown(msg.text)


def _queue_prompt(text: str) -> None:
    st.session_state.chat_prefill = text


def render_tutor_chat(session: TutorChatSession) -> None:
    st.subheader("AI Tutor")

    try:
        session.open()
    except GatewayError as e:
        st.error(f"Could not start the tutor: {e}")
        return

    for msg in session.messages:
        _render_message(msg)

    pill_cols = st.columns(len(QUICK_PROMPTS))
    for col, pill in zip(pill_cols, QUICK_PROMPTS):
        with col:
            st.button(pill, key=f"pill_{pill}", on_click=_queue_prompt, args=(pill,), disabled=session.is_busy)

    prompt = st.chat_input("Ask me anything about this...", disabled=session.is_busy)
    prompt = prompt or st.session_state.pop("chat_prefill", None)

    if prompt:
        with st.chat_message("user"):
            st.markdown(prompt)
        before = len(session.messages)
        try:
            with st.chat_message("assistant"):
                st.write_stream(session.stream_turn(prompt))
        except ChatBusyError as e:
            st.warning(str(e))
            return
        # a tool call may have edited the document; refresh editor widgets
        if any(m.is_system for m in session.messages[before:]):
            bump_revision()
        st.rerun()

    with st.expander("Chat options", expanded=False):
        if st.button("Clear history", key="chat_clear"):
            session.clear_history()
            st.rerun()
        transcript = transcript_markdown(session.messages)
        st.download_button(
            "Download transcript (Markdown)",
            data=transcript,
            file_name="tutor_transcript.md",
            mime="text/markdown",
        )
        cached = st.session_state.get("transcript_pdf")
        if cached is not None and cached[0] == transcript:
            st.download_button(
                "Download transcript (PDF)",
                data=cached[1],
                file_name="tutor_transcript.pdf",
                mime="application/pdf",
            )
        elif st.button("Prepare transcript PDF", key="chat_transcript_pdf"):
            try:
                pdf_bytes = build_transcript_pdf(session.messages)
            except Exception:
                logger.exception("Transcript PDF export failed")
                st.error("PDF rendering is unavailable on this host.")
            else:
                st.session_state.transcript_pdf = (transcript, pdf_bytes)
                st.rerun()
