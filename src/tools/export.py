# src/tools/export.py
"""
Serialize the solution document for download.

- build_document_html(): themed, self-contained HTML (also the PDF source)
- build_word_document(): the same markup wrapped in a minimal Word-compatible
  header, saved with a .doc extension
- render_pdf(): WeasyPrint rendering of the HTML
- transcript_markdown(): chat transcript as Markdown for the transcript PDF
"""

import hashlib
import html
import re
from datetime import datetime
from typing import List, Tuple

import markdown as md

from src.logging_setup import get_logger
from src.models.assignment import AssignmentResult, Question
from src.models.chat import ChatMessage
from src.tools.document_editor import Theme, get_theme

logger = get_logger("export", "export.log")

MD_EXTENSIONS = ["extra", "sane_lists", "nl2br"]

WORD_HEADER = (
    "<html xmlns:o='urn:schemas-microsoft-com:office:office' "
    "xmlns:w='urn:schemas-microsoft-com:office:word' "
    "xmlns='http://www.w3.org/TR/REC-html40'>"
)

EXECUTION_NOTE = "Simulated by AI. This output is an approximation, not a real program run."


def markdown_to_html(md_text: str) -> str:
    return md.markdown(md_text or "", extensions=MD_EXTENSIONS)


def document_css(theme: Theme) -> str:
    return f"""
    @page {{ size: A4; margin: 2.5cm; }}
    body {{ font-family: {theme.font_family}; font-size: {theme.base_font_size}; color: {theme.text_color};
           line-height: {theme.line_height}; }}
    h1 {{ text-align: center; text-transform: uppercase; letter-spacing: 0.1em; }}
    .generated {{ text-align: center; font-size: 8pt; color: #94a3b8; text-transform: uppercase; letter-spacing: 0.2em; }}
    .question {{ margin-bottom: 2em; page-break-inside: avoid; }}
    .question h3 {{ margin-bottom: 0.5em; }}
    .label {{ font-size: 8pt; font-weight: bold; text-transform: uppercase; letter-spacing: 0.1em;
             color: {theme.accent_color}; margin: 1em 0 0.3em 0; }}
    .solution {{ border-left: 3px solid {theme.accent_color}; padding: 0.5em 1em; font-weight: 600; font-style: italic; }}
    pre.code {{ background: {theme.code_background}; color: {theme.code_color}; padding: 1em; border-radius: 4px;
               font-family: 'Courier New', Courier, monospace; font-size: 9pt; white-space: pre-wrap; }}
    pre.output {{ background: #f1f5f9; color: #475569; padding: 0.8em; border: 1px solid #e2e8f0;
                 font-family: 'Courier New', Courier, monospace; font-size: 9pt; white-space: pre-wrap; }}
    .note {{ font-size: 7pt; color: #94a3b8; }}
    figure {{ margin: 1em 0; }}
    figure img {{ max-width: 100%; }}
    figcaption {{ font-size: 8pt; color: #64748b; }}
    code {{ background: #f4f4f4; padding: 1px 3px; border-radius: 3px; }}
    """


def _question_html(index: int, q: Question) -> str:
    parts = [f"<div class='question' id='q-{html.escape(q.id)}'>"]
    parts.append(f"<h3>Question {index}: {html.escape(q.question_text)}</h3>")

    parts.append("<div class='label'>Step-by-Step Analysis</div>")
    parts.append(f"<div class='explanation'>{markdown_to_html(q.explanation)}</div>")

    if q.has_code_block:
        lang = html.escape(q.language or "")
        parts.append(f"<div class='label'>Code{(' (' + lang + ')') if lang else ''}</div>")
        parts.append(f"<pre class='code'>{html.escape(q.code or '')}</pre>")

    if q.shows_solution_block:
        parts.append("<div class='label'>Conclusive Result</div>")
        parts.append(f"<div class='solution'>{markdown_to_html(q.solution)}</div>")

    if q.execution_output:
        parts.append("<div class='label'>Runtime Verification Output</div>")
        parts.append(f"<pre class='output'>{html.escape(q.execution_output)}</pre>")
        parts.append(f"<div class='note'>{EXECUTION_NOTE}</div>")

    for asset in q.assets:
        caption = f"<figcaption>{html.escape(asset.caption)}</figcaption>" if asset.caption else ""
        parts.append(f"<figure><img src='{html.escape(asset.url, quote=True)}' alt='{html.escape(asset.caption or asset.id)}'/>{caption}</figure>")

    parts.append("</div>")
    return "\n".join(parts)


def build_document_body(doc: AssignmentResult, generated_on: str = None) -> str:
    generated_on = generated_on or datetime.now().strftime("%Y-%m-%d")
    body = [
        f"<h1>{html.escape(doc.title)}</h1>",
        f"<div class='generated'>Generated by AceAssign Intelligent Engine &bull; {html.escape(generated_on)}</div>",
    ]
    for i, q in enumerate(doc.questions, start=1):
        body.append(_question_html(i, q))
    return "\n".join(body)


def build_document_html(doc: AssignmentResult, theme_key: str = None, generated_on: str = None) -> Tuple[str, str]:
    """Return (html, css) for the document in the given theme."""
    theme = get_theme(theme_key)
    css = document_css(theme)
    full = (
        "<html><head><meta charset='utf-8'>"
        f"<title>{html.escape(doc.title)}</title></head>"
        f"<body>{build_document_body(doc, generated_on)}</body></html>"
    )
    return full, css


def build_word_document(doc: AssignmentResult, theme_key: str = None, generated_on: str = None) -> bytes:
    theme = get_theme(theme_key)
    markup = (
        f"{WORD_HEADER}<head><meta charset='utf-8'><title>{html.escape(doc.title)}</title>"
        f"<style>{document_css(theme)}</style></head>"
        f"<body>{build_document_body(doc, generated_on)}</body></html>"
    )
    logger.info("Built .doc export for %r (%d question(s))", doc.title, len(doc.questions))
    return markup.encode("utf-8")


def export_filename(title: str, extension: str) -> str:
    stem = re.sub(r"[^\w\- ]+", "", title or "").strip() or "assignment"
    return f"{stem}.{extension}"


def export_cache_key(doc: AssignmentResult, theme_key: str = None) -> str:
    """Fingerprint of the document content and theme; a rendered PDF stays valid while it matches."""
    payload = f"{get_theme(theme_key).key}\n{doc.model_dump_json()}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def render_pdf(html_text: str, css_text: str) -> bytes:
    # WeasyPrint pulls in native Pango/Cairo libraries; load it only when a PDF is requested
    from weasyprint import CSS, HTML

    css = CSS(string=css_text)
    return HTML(string=html_text).write_pdf(stylesheets=[css])


def build_pdf(doc: AssignmentResult, theme_key: str = None) -> bytes:
    html_text, css_text = build_document_html(doc, theme_key)
    pdf = render_pdf(html_text, css_text)
    logger.info("Rendered PDF for %r (%d bytes)", doc.title, len(pdf))
    return pdf


def transcript_markdown(messages: List[ChatMessage]) -> str:
    parts = []
    for m in messages:
        ts = datetime.fromtimestamp(m.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        role = "System" if m.is_system else ("Student" if m.role == "user" else "Tutor")
        parts.append(f"### [{ts}] {role}\n\n{m.text}\n\n")
    return "\n".join(parts)


TRANSCRIPT_CSS = """
body { font-family: 'Helvetica', Arial, sans-serif; margin: 30px; font-size: 12pt; color: #111; }
h1, h2, h3 { color: #0b4f6c; }
pre { background: #f4f4f4; padding: 8px; border-radius: 4px;}
code { background: #f4f4f4; padding: 2px 4px; border-radius: 3px; }
ul { margin-left: 20px; }
ol { margin-left: 20px; }
"""


def build_transcript_pdf(messages: List[ChatMessage]) -> bytes:
    body = markdown_to_html(transcript_markdown(messages))
    full = f"<html><head><meta charset='utf-8'></head><body>{body}</body></html>"
    return render_pdf(full, TRANSCRIPT_CSS)
