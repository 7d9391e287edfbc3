from datetime import datetime
from unittest.mock import patch

from src.models.chat import ChatMessage
from src.tools.export import (
    EXECUTION_NOTE,
    WORD_HEADER,
    build_document_html,
    build_pdf,
    build_word_document,
    export_filename,
    markdown_to_html,
    transcript_markdown,
)
from tests.helpers import algebra_doc, three_question_doc


def test_word_export_wraps_document_in_office_header():
    data = build_word_document(algebra_doc(), "academic", generated_on="2026-03-01")

    assert isinstance(data, bytes)
    text = data.decode("utf-8")
    assert text.startswith(WORD_HEADER)
    assert "<h1>Algebra Set</h1>" in text
    assert "Question 1: Solve x+2=5" in text
    assert "Step-by-Step Analysis" in text
    assert "Conclusive Result" in text
    assert "2026-03-01" in text
    assert "Times New Roman" in text


def test_code_questions_show_code_instead_of_solution():
    doc = three_question_doc()
    doc.questions[2].execution_output = "3"
    html_text, _ = build_document_html(doc, "standard", generated_on="2026-03-01")

    q3 = html_text.split("id='q-q3'")[1]
    assert "<pre class='code'>print(3)</pre>" in q3
    assert "Conclusive Result" not in q3
    assert "Runtime Verification Output" in q3
    assert EXECUTION_NOTE in q3


def test_assets_render_as_figures():
    html_text, _ = build_document_html(three_question_doc())
    assert "<img src='https://example.com/x.png'" in html_text
    assert "<figcaption>diagram</figcaption>" in html_text


def test_user_text_is_escaped_and_markdown_rendered():
    doc = algebra_doc()
    doc.questions[0].question_text = "Is a < b?"
    doc.questions[0].explanation = "Use `x - 2`"
    html_text, _ = build_document_html(doc)

    assert "Is a &lt; b?" in html_text
    assert "<code>x - 2</code>" in html_text


def test_theme_changes_css():
    _, standard = build_document_html(algebra_doc(), "standard")
    _, manuscript = build_document_html(algebra_doc(), "manuscript")
    assert "Arial" in standard
    assert "Courier New" in manuscript.split("body")[1].split("}")[0]


def test_export_filename():
    assert export_filename("Algebra: Set 1/2", "pdf") == "Algebra Set 12.pdf"
    assert export_filename("???", "doc") == "assignment.doc"


def test_build_pdf_renders_themed_html():
    with patch("src.tools.export.render_pdf", return_value=b"%PDF-1.7") as render:
        assert build_pdf(algebra_doc(), "modern") == b"%PDF-1.7"

    html_text, css_text = render.call_args.args
    assert "Algebra Set" in html_text
    assert "Inter" in css_text


def test_transcript_markdown_labels_roles():
    ts = datetime(2026, 3, 1, 9, 30).timestamp()
    messages = [
        ChatMessage(role="user", text="Explain Q1", timestamp=ts),
        ChatMessage(role="model", text="✓ Updated 1 question in the document.", is_system=True, timestamp=ts),
        ChatMessage(role="model", text="**x = 3**", timestamp=ts),
    ]
    text = transcript_markdown(messages)

    assert "### [2026-03-01 09:30:00] Student\n\nExplain Q1" in text
    assert "] System\n\n✓ Updated 1 question" in text
    assert "] Tutor\n\n**x = 3**" in text
    assert "<strong>x = 3</strong>" in markdown_to_html(text)
