# streamlit_app.py

import streamlit as st

from src.agents.gateway.gateway import GeminiGateway
from src.config import load_config
from src.errors import GatewayError, UploadReadError
from src.logging_setup import get_logger
from src.pipeline.processor import AssignmentProcessor, ProcessingStep
from src.tools.chat_history import ChatHistoryStore
from src.tools.document_editor import CopyIndicator, DeleteConfirmation
from src.tools.upload_adapter import ACCEPTED_EXTENSIONS, build_preview, encode_uploaded_file
from src.ui.processing_view import render_progress
from src.ui.solution_editor import render_solution_editor, wait_for_copy_reset
from src.ui.tutor_chat import get_chat_session, render_tutor_chat

# Obtain module-level logger
# Use a dedicated logger for the Streamlit UI so logs are easy to separate from gateway/chat logs.
logger = get_logger("streamlit_app", "streamlit_app.log")

# Page config and titles
st.set_page_config(page_title="AceAssign AI", layout="wide")

# -------------------------
# Initialize session state
# -------------------------
if "config" not in st.session_state:
    st.session_state.config = load_config()
config = st.session_state.config

if "gateway" not in st.session_state:
    try:
        st.session_state.gateway = GeminiGateway(config)
    except GatewayError as e:
        logger.exception("Gateway initialization failed")
        st.error(f"{e}\n\nSet GOOGLE_API_KEY in your environment or .env file and reload.")
        st.stop()
if "processor" not in st.session_state:
    st.session_state.processor = AssignmentProcessor(st.session_state.gateway, config)
if "chat_store" not in st.session_state:
    st.session_state.chat_store = ChatHistoryStore(config.chat_history_dir)
if "document" not in st.session_state:
    st.session_state.document = None
if "copy_indicator" not in st.session_state:
    st.session_state.copy_indicator = CopyIndicator(config.copy_ack_seconds)
if "delete_confirmation" not in st.session_state:
    st.session_state.delete_confirmation = DeleteConfirmation()
if "theme" not in st.session_state:
    st.session_state.theme = "standard"
if "doc_rev" not in st.session_state:
    st.session_state.doc_rev = 0
if "chat_open" not in st.session_state:
    st.session_state.chat_open = False

processor: AssignmentProcessor = st.session_state.processor


def reset_app() -> None:
    """Back to idle: drop the document, its chat panel and any error."""
    processor.reset()
    st.session_state.document = None
    st.session_state.chat_session = None
    st.session_state.chat_open = False
    st.session_state.delete_confirmation.cancel()
    st.session_state.doc_rev += 1
    logger.info("App reset")


st.title("🎓 AceAssign AI")

# -------------------------
# Idle: upload and preview
# -------------------------
if processor.step == ProcessingStep.IDLE:
    st.markdown(
        "### Your Assignments, Perfectly Solved.\n"
        "Upload your PDFs, images, or documents. The AI extracts, classifies, and solves them "
        "with step-by-step explanations."
    )
    uploaded = st.file_uploader(
        "Upload Assignment",
        type=ACCEPTED_EXTENSIONS,
        accept_multiple_files=False,
        help=f"PDF, DOC/DOCX, TXT or image. Max {config.max_upload_bytes // (1024 * 1024)} MB.",
    )

    file_data = None
    if uploaded is not None:
        try:
            uploaded.seek(0)
            file_data = encode_uploaded_file(uploaded, config.max_upload_bytes)
            preview = build_preview(file_data)
        except UploadReadError as e:
            # blocked preview: no processing for a file we cannot read
            st.error(str(e))
            file_data = None
        else:
            with st.expander(f"Preview: {file_data.name}", expanded=True):
                if preview.kind == "image":
                    st.image(file_data.raw_bytes(), caption=file_data.name)
                elif preview.kind == "pdf":
                    st.caption(f"{preview.page_count} page(s)")
                    if preview.thumbnail_png:
                        st.image(preview.thumbnail_png, width=260)
                    if preview.text:
                        st.text(preview.text)
                elif preview.kind == "text":
                    st.text(preview.text)
                else:
                    st.caption(f"{file_data.mime_type} document ready to send.")

    if file_data is not None and st.button("Solve assignment", type="primary"):
        st.subheader("Analyzing Assignment...")
        progress = st.empty()
        processor.on_step = lambda step: render_progress(progress, step, processor.failed_at, processor.error)
        result = processor.process(file_data)
        if result is not None:
            st.session_state.document = result
            st.session_state.chat_session = None
            st.session_state.doc_rev += 1
        st.rerun()

# -------------------------
# Error: show where it failed, offer a retry
# -------------------------
elif processor.step == ProcessingStep.ERROR:
    st.subheader("Analyzing Assignment...")
    render_progress(st.empty(), processor.step, processor.failed_at, processor.error)
    if st.button("Try Again"):
        reset_app()
        st.rerun()

# -------------------------
# Completed: editor + tutor
# -------------------------
elif processor.step == ProcessingStep.COMPLETED and st.session_state.document is not None:
    doc = st.session_state.document

    with st.sidebar:
        st.session_state.chat_open = st.toggle("💬 Ask AI Tutor", value=st.session_state.chat_open)
        if st.session_state.chat_open:
            session = get_chat_session(doc, st.session_state.gateway, st.session_state.chat_store)
            render_tutor_chat(session)

    render_solution_editor(doc)

    st.markdown("---")
    if st.button("↻ Solve another assignment"):
        reset_app()
        st.rerun()

else:
    # working steps only exist inside a single run of process(); anything else is stale
    logger.info("Unexpected processor step %s on rerun; resetting", processor.step.value)
    reset_app()
    st.rerun()

st.caption("For educational assistance only. Direct use in examinations is prohibited.")

wait_for_copy_reset()
