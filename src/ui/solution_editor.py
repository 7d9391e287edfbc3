# src/ui/solution_editor.py
"""
Streamlit rendering of the solution document.

Every editable field writes back through the document model helpers in an
on_change callback. Widget keys carry the document revision so that edits
made elsewhere (tutor tool calls, deletes) show up on the next rerun.
"""

import json
import time

import streamlit as st
import streamlit.components.v1 as components

from src.logging_setup import get_logger
from src.models.assignment import (
    AssignmentResult,
    add_asset,
    remove_asset,
    update_question_field,
    update_title,
)
from src.errors import UploadReadError
from src.tools.assets import asset_from_upload
from src.tools.document_editor import THEMES, get_theme
from src.tools.export import (
    EXECUTION_NOTE,
    build_pdf,
    build_word_document,
    export_cache_key,
    export_filename,
)

logger = get_logger("streamlit_app", "streamlit_app.log")


def bump_revision() -> None:
    st.session_state.doc_rev = st.session_state.get("doc_rev", 0) + 1


def _key(*parts) -> str:
    return "_".join(str(p) for p in parts) + f"_r{st.session_state.get('doc_rev', 0)}"


def _on_field_change(doc: AssignmentResult, question_id: str, field: str, widget_key: str) -> None:
    update_question_field(doc, question_id, field, st.session_state[widget_key])


def _on_title_change(doc: AssignmentResult, widget_key: str) -> None:
    update_title(doc, st.session_state[widget_key])


def _on_copy(text: str, question_id: str) -> None:
    st.session_state.copy_indicator.mark(question_id)
    st.session_state.pending_clipboard = text


def _flush_clipboard() -> None:
    text = st.session_state.pop("pending_clipboard", None)
    if text is None:
        return
    # clipboard writes need the browser; run a tiny script in the component iframe
    components.html(
        f"<script>navigator.clipboard.writeText({json.dumps(text)});</script>",
        height=0,
    )


def wait_for_copy_reset() -> None:
    """Rerun once the transient "copied" label has expired. Call at the end of the script."""
    remaining = st.session_state.copy_indicator.remaining()
    if remaining > 0:
        time.sleep(remaining)
        st.rerun()


def _editable(label: str, value: str, key: str, on_change, args, height: int = None, **kwargs) -> None:
    st.text_area(
        label,
        value=value or "",
        key=key,
        on_change=on_change,
        args=args,
        height=height,
        label_visibility="collapsed",
        **kwargs,
    )


def render_toolbar(doc: AssignmentResult) -> None:
    theme_col, pdf_col, doc_col, print_col = st.columns([3, 2, 2, 1])
    with theme_col:
        keys = list(THEMES.keys())
        current = st.session_state.get("theme", "standard")
        st.session_state.theme = st.selectbox(
            "Theme",
            keys,
            index=keys.index(current) if current in keys else 0,
            format_func=lambda k: THEMES[k].label,
            label_visibility="collapsed",
        )
    with pdf_col:
        # rendering is slow; only on request, and reused until the document or theme changes
        cache_key = export_cache_key(doc, st.session_state.theme)
        cached = st.session_state.get("pdf_export")
        if cached is not None and cached[0] == cache_key:
            st.download_button(
                "Download PDF",
                data=cached[1],
                file_name=export_filename(doc.title, "pdf"),
                mime="application/pdf",
                use_container_width=True,
            )
        elif st.button("Prepare PDF", use_container_width=True):
            try:
                pdf_bytes = build_pdf(doc, st.session_state.theme)
            except Exception:
                logger.exception("PDF export failed")
                st.error("PDF rendering is unavailable on this host.")
            else:
                st.session_state.pdf_export = (cache_key, pdf_bytes)
                st.rerun()
    with doc_col:
        st.download_button(
            "Download Word",
            data=build_word_document(doc, st.session_state.theme),
            file_name=export_filename(doc.title, "doc"),
            mime="application/msword",
            use_container_width=True,
        )
    with print_col:
        if st.button("🖨", help="Print this page", use_container_width=True):
            components.html("<script>window.parent.print();</script>", height=0)


def render_question(doc: AssignmentResult, index: int, question) -> None:
    qid = question.id
    confirm = st.session_state.delete_confirmation

    head_col, del_col = st.columns([12, 1])
    with head_col:
        st.markdown(f"**Q{index}.**")
        key = _key("q", qid, "question_text")
        _editable("Question", question.question_text, key, _on_field_change,
                  (doc, qid, "question_text", key))
    with del_col:
        if st.button("🗑", key=_key("del", qid), help="Delete question"):
            confirm.request(qid)

    if confirm.is_pending(qid):
        st.warning("Delete this question and its images? This cannot be undone.")
        yes_col, no_col, _ = st.columns([2, 2, 8])
        with yes_col:
            if st.button("Delete", key=_key("del_yes", qid), type="primary"):
                confirm.confirm(doc)
                bump_revision()
                st.rerun()
        with no_col:
            if st.button("Cancel", key=_key("del_no", qid)):
                confirm.cancel()
                st.rerun()

    st.caption("STEP-BY-STEP ANALYSIS")
    key = _key("q", qid, "explanation")
    _editable("Explanation", question.explanation, key, _on_field_change, (doc, qid, "explanation", key))

    if question.has_code_block:
        lang_col, copy_col = st.columns([8, 2])
        with lang_col:
            key = _key("q", qid, "language")
            st.text_input("Language", value=question.language or "", key=key, placeholder="Language",
                          on_change=_on_field_change, args=(doc, qid, "language", key))
        with copy_col:
            copied = st.session_state.copy_indicator.is_copied(qid)
            st.button("✓ COPIED" if copied else "COPY", key=_key("copy", qid),
                      on_click=_on_copy, args=(question.code or "", qid))
        key = _key("q", qid, "code")
        _editable("Code", question.code, key, _on_field_change, (doc, qid, "code", key), height=220,
                  placeholder="// Type or paste code here...")

    if question.shows_solution_block:
        st.caption("CONCLUSIVE RESULT")
        key = _key("q", qid, "solution")
        _editable("Solution", question.solution, key, _on_field_change, (doc, qid, "solution", key))

    if question.execution_output:
        st.caption("RUNTIME VERIFICATION OUTPUT")
        st.code(question.execution_output, language="text")
        st.caption(f"_{EXECUTION_NOTE}_")

    for asset in list(question.assets):
        img_col, rm_col = st.columns([10, 1])
        with img_col:
            st.image(asset.url, caption=asset.caption or None)
        with rm_col:
            if st.button("✕", key=_key("rm_asset", qid, asset.id), help="Remove image"):
                remove_asset(doc, qid, asset.id)
                st.rerun()

    with st.expander("Attach image", expanded=False):
        upload = st.file_uploader(
            "Image",
            type=["png", "jpg", "jpeg", "gif", "webp"],
            key=_key("asset_upload", qid),
            label_visibility="collapsed",
        )
        caption = st.text_input("Caption", key=_key("asset_caption", qid))
        if upload is not None and st.button("Insert image", key=_key("asset_insert", qid)):
            try:
                add_asset(doc, qid, asset_from_upload(upload.getvalue(), upload.type, caption))
                bump_revision()
                st.rerun()
            except UploadReadError as e:
                st.error(str(e))


def render_solution_editor(doc: AssignmentResult) -> None:
    theme = get_theme(st.session_state.get("theme"))
    render_toolbar(doc)

    key = _key("doc_title")
    st.text_input("Title", value=doc.title, key=key, on_change=_on_title_change, args=(doc, key),
                  label_visibility="collapsed")
    st.caption(f"{doc.type.value.upper()} ASSIGNMENT • {theme.label} • {time.strftime('%Y-%m-%d')}")

    if not doc.questions:
        st.info("This document has no questions.")
    for i, q in enumerate(doc.questions, start=1):
        with st.container(border=True):
            render_question(doc, i, q)

    _flush_clipboard()
