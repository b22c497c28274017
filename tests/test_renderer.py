"""Tests for synthesizer/renderer.py — Markdown, diagram fences and HTML pages."""

import pytest

from synthesizer.assets import MERMAID_SCRIPT_URL
from synthesizer.models import DiagramRenderError, RenderedResult
from synthesizer.renderer import (
    MermaidDiagramRenderer,
    ResultRenderer,
    render_html_page,
    strip_diagram_fences,
)

TABLE_MD = """\
| Criterion | a.pdf | b.docx |
|---|---|---|
| Objectives | X | Y |
"""


# ---------------------------------------------------------------------------
# strip_diagram_fences
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("```mermaid\ngraph TD\nA-->B\n```", "graph TD\nA-->B"),
        ("```\npie\n\"a\": 1\n```", 'pie\n"a": 1'),
        ("graph LR\nA-->B", "graph LR\nA-->B"),
        ("Here:\n```mermaid\nmindmap\n  root\n```\n", "Here:\n\nmindmap\n  root"),
    ],
)
def test_strip_diagram_fences(raw, expected):
    assert strip_diagram_fences(raw) == expected


# ---------------------------------------------------------------------------
# MermaidDiagramRenderer
# ---------------------------------------------------------------------------


def test_mermaid_renderer_escapes_source():
    html = MermaidDiagramRenderer().render('flowchart TD\nA["x < y"] --> B')
    assert html.startswith('<pre class="mermaid">')
    assert "x &lt; y" in html


def test_mermaid_renderer_skips_comments_and_front_matter():
    source = "---\ntitle: Study flow\n---\n%% generated\n\nsequenceDiagram\nA->>B: hi"
    assert "sequenceDiagram" in MermaidDiagramRenderer().render(source)


@pytest.mark.parametrize("source", ["", "   \n", "%% only a comment"])
def test_mermaid_renderer_rejects_empty_markup(source):
    with pytest.raises(DiagramRenderError, match="empty"):
        MermaidDiagramRenderer().render(source)


def test_mermaid_renderer_rejects_unknown_diagram_type():
    with pytest.raises(DiagramRenderError, match="Unknown diagram type"):
        MermaidDiagramRenderer().render("Here is your diagram:\ngraph TD")


# ---------------------------------------------------------------------------
# ResultRenderer
# ---------------------------------------------------------------------------


def test_render_analysis_markdown():
    rendered = ResultRenderer().render("### 1. Overview\n\n**Bold** text", "analysis")
    assert rendered.error is None
    assert "<h3>1. Overview</h3>" in rendered.html
    assert "<strong>Bold</strong>" in rendered.html


def test_render_table_uses_table_extension():
    rendered = ResultRenderer().render(TABLE_MD, "table")
    assert "<table>" in rendered.html
    assert "<th>a.pdf</th>" in rendered.html
    assert rendered.raw_text == TABLE_MD


def test_render_diagram_strips_fences_before_rendering():
    calls = []

    class RecordingRenderer:
        def render(self, source):
            calls.append(source)
            return "<svg/>"

    raw = "```mermaid\ntimeline\n  2020 : start\n```"
    rendered = ResultRenderer(RecordingRenderer()).render(raw, "diagram")

    assert calls == ["timeline\n  2020 : start"]
    assert rendered.html == "<svg/>"
    assert rendered.diagram_source == "timeline\n  2020 : start"


def test_render_diagram_failure_keeps_raw_text():
    raw = "```mermaid\nnot a diagram\n```"
    rendered = ResultRenderer().render(raw, "diagram")

    assert rendered.html is None
    assert rendered.error.startswith("Could not render the diagram")
    assert rendered.raw_text == raw


# ---------------------------------------------------------------------------
# render_html_page
# ---------------------------------------------------------------------------


def test_html_page_for_analysis_has_no_mermaid_script():
    rendered = ResultRenderer().render("# Title", "analysis")
    page = render_html_page(rendered, title="Report")
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>Report</title>" in page
    assert "mermaid" not in page


def test_html_page_for_diagram_uses_cdn_without_cached_script():
    rendered = ResultRenderer().render("```mermaid\ngraph TD\nA-->B\n```", "diagram")
    page = render_html_page(rendered)
    assert f'<script src="{MERMAID_SCRIPT_URL}"></script>' in page
    assert "mermaid.initialize" in page


def test_html_page_for_diagram_inlines_cached_script():
    rendered = ResultRenderer().render("graph TD\nA-->B", "diagram")
    page = render_html_page(rendered, mermaid_script=b"window.mermaid = {};")
    assert "window.mermaid = {};" in page
    assert MERMAID_SCRIPT_URL not in page


def test_html_page_shows_error_and_escaped_raw_text():
    rendered = RenderedResult(
        output_format="diagram",
        raw_text="<bad> diagram",
        error="Could not render the diagram: Unknown diagram type",
    )
    page = render_html_page(rendered)
    assert 'class="error-message"' in page
    assert "&lt;bad&gt; diagram" in page
    assert "mermaid.initialize" not in page
