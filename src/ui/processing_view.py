# src/ui/processing_view.py
import streamlit as st

from src.pipeline.processor import ProcessingStep, step_statuses

STATUS_ICONS = {
    "done": "✅",
    "active": "⏳",
    "pending": "⚪",
    "failed": "🔴",
}


def render_progress(placeholder, step: ProcessingStep, failed_at=None, error: str = None) -> None:
    """Render the pipeline progress panel into a reusable placeholder."""
    if step == ProcessingStep.IDLE and not error:
        placeholder.empty()
        return
    with placeholder.container():
        st.markdown("#### Processing Pipeline")
        for label, status in step_statuses(step, failed_at):
            weight = "**" if status in ("active", "failed") else ""
            st.markdown(f"{STATUS_ICONS[status]} {weight}{label}{weight}")
        if error:
            st.error(f"**Error:** {error}")
