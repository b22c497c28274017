"""Render a model response for display.

Analysis and table responses are Markdown and go through markdown-it-py with
the table extension.  Diagram responses have their code fences stripped and
are handed to a ``DiagramRenderingService``; a rendering failure is reported
on the result without discarding the raw text.

No file I/O is performed here; the caller (``cli.py``) decides where the
output goes.
"""

import html
import logging
import re
from typing import Protocol

from markdown_it import MarkdownIt

from synthesizer.assets import MERMAID_SCRIPT_URL
from synthesizer.models import DiagramRenderError, OutputFormat, RenderedResult

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")

#: First keyword of every Mermaid diagram type.
MERMAID_DIAGRAM_TYPES: frozenset[str] = frozenset(
    {
        "graph",
        "flowchart",
        "sequenceDiagram",
        "classDiagram",
        "stateDiagram",
        "stateDiagram-v2",
        "erDiagram",
        "journey",
        "gantt",
        "pie",
        "quadrantChart",
        "requirementDiagram",
        "gitGraph",
        "C4Context",
        "C4Container",
        "C4Component",
        "C4Dynamic",
        "C4Deployment",
        "mindmap",
        "timeline",
        "sankey-beta",
        "xychart-beta",
        "block-beta",
    }
)


class DiagramRenderingService(Protocol):
    def render(self, source: str) -> str: ...


def strip_diagram_fences(raw_text: str) -> str:
    """Remove every literal ``` marker (and its language tag, if any)."""
    return _FENCE_RE.sub("", raw_text).strip()


class MermaidDiagramRenderer:
    """Checks the diagram header and emits a ``<pre class="mermaid">`` block.

    The browser-side Mermaid script turns the block into SVG when the page is
    opened.
    """

    def render(self, source: str) -> str:
        header = _diagram_header(source)
        if header is None:
            raise DiagramRenderError("Diagram markup is empty")
        keyword = header.split()[0].rstrip(":;")
        if keyword not in MERMAID_DIAGRAM_TYPES:
            raise DiagramRenderError(f"Unknown diagram type: {keyword!r}")
        return f'<pre class="mermaid">\n{html.escape(source)}\n</pre>'


def _diagram_header(source: str) -> str | None:
    """First line that is not blank, a ``%%`` comment or YAML front matter."""
    lines = iter(source.splitlines())
    for line in lines:
        stripped = line.strip()
        if stripped == "---":
            # Skip the front-matter block up to its closing marker.
            for inner in lines:
                if inner.strip() == "---":
                    break
            continue
        if not stripped or stripped.startswith("%%"):
            continue
        return stripped
    return None


class ResultRenderer:
    """Turns ``(raw_text, output_format)`` into a ``RenderedResult``.

    Args:
        diagram_renderer: Service used for the ``diagram`` format.
    """

    def __init__(self, diagram_renderer: DiagramRenderingService | None = None) -> None:
        self.diagram_renderer = diagram_renderer or MermaidDiagramRenderer()
        self._markdown = MarkdownIt("commonmark").enable("table")

    def render(self, raw_text: str, output_format: OutputFormat) -> RenderedResult:
        if output_format == "diagram":
            return self._render_diagram(raw_text)
        return RenderedResult(
            output_format=output_format,
            raw_text=raw_text,
            html=self._markdown.render(raw_text),
        )

    def _render_diagram(self, raw_text: str) -> RenderedResult:
        source = strip_diagram_fences(raw_text)
        try:
            rendered = self.diagram_renderer.render(source)
        except DiagramRenderError as exc:
            logger.warning("Diagram rendering failed: %s", exc)
            return RenderedResult(
                output_format="diagram",
                raw_text=raw_text,
                diagram_source=source,
                error=f"Could not render the diagram: {exc}",
            )
        return RenderedResult(
            output_format="diagram",
            raw_text=raw_text,
            html=rendered,
            diagram_source=source,
        )


# ---------------------------------------------------------------------------
# Standalone page
# ---------------------------------------------------------------------------

_PAGE_STYLE = """\
body { font-family: system-ui, sans-serif; max-width: 60rem; margin: 2rem auto; padding: 0 1rem; }
table { border-collapse: collapse; }
th, td { border: 1px solid #ccc; padding: 0.4rem 0.6rem; vertical-align: top; }
.error-message { color: #b00020; }
pre.raw { white-space: pre-wrap; background: #f6f6f6; padding: 1rem; }"""


def render_html_page(
    rendered: RenderedResult,
    title: str = "Document analysis",
    mermaid_script: bytes | None = None,
) -> str:
    """Wrap a rendered result into a self-contained HTML document.

    For diagrams the Mermaid script is inlined when ``mermaid_script`` is
    given (e.g. from the offline asset cache), otherwise loaded from its CDN
    URL.  When rendering failed, the error and the raw model text are shown.
    """
    if rendered.html is not None:
        body = rendered.html
    else:
        body = (
            f'<p class="error-message">{html.escape(rendered.error or "")}</p>\n'
            f'<pre class="raw">{html.escape(rendered.raw_text)}</pre>'
        )

    scripts = ""
    if rendered.output_format == "diagram" and rendered.html is not None:
        if mermaid_script is not None:
            loader = f"<script>\n{mermaid_script.decode('utf-8')}\n</script>"
        else:
            loader = f'<script src="{MERMAID_SCRIPT_URL}"></script>'
        scripts = f"{loader}\n<script>mermaid.initialize({{ startOnLoad: true }});</script>\n"

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        f"<style>\n{_PAGE_STYLE}\n</style>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{html.escape(title)}</h1>\n"
        f"{body}\n"
        f"{scripts}"
        "</body>\n"
        "</html>\n"
    )
