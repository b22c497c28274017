"""Prompt builders for the three output formats.

``compose_prompt`` wraps every document's text in named delimiters, picks the
template for the requested ``OutputFormat`` and interpolates the user's
instruction and the document block.  Composition is pure string formatting:
same input, byte-identical prompt.  Nothing is truncated; very large inputs are
sent as-is.
"""

from typing import Sequence

from synthesizer.models import DocumentText, OutputFormat

#: Language the narrative report is written in.
REPORT_LANGUAGE = "Vietnamese"

TABLE_CRITERIA: tuple[str, ...] = (
    "Objectives",
    "Methodology",
    "Sample",
    "Key findings",
    "Conclusion",
    "Limitations",
)

_OVERVIEW_FALLBACK = (
    "The user gave no specific request. Produce a comprehensive overview "
    "of the documents."
)


# ---------------------------------------------------------------------------
# Document block
# ---------------------------------------------------------------------------


def page_range_label(start_page: str, end_page: str) -> str | None:
    """Human-readable annotation for a user-specified page range.

    Returns ``None`` when neither bound was given.
    """
    if not start_page and not end_page:
        return None
    return f"pages {start_page or '1'}-{end_page or 'end'}"


def wrap_document(document: DocumentText) -> str:
    """Surround one document's text with start/end markers carrying its name."""
    label = f" ({document.page_range_label})" if document.page_range_label else ""
    return (
        f"--- DOCUMENT: {document.name}{label} ---\n"
        f"{document.text}\n"
        f"--- END OF DOCUMENT: {document.name} ---"
    )


def build_document_block(documents: Sequence[DocumentText]) -> str:
    """Wrap every document and join them with blank lines, in list order."""
    return "\n\n".join(wrap_document(d) for d in documents)


def instruction_clause(instruction: str) -> str:
    """The user's request as the primary lens, or the overview fallback."""
    if not instruction.strip():
        return _OVERVIEW_FALLBACK
    return (
        "The user has given a specific analysis request. It is your top "
        "priority: build the whole response to answer and clarify this "
        f'request, and use it as the main lens for the synthesis: "{instruction}"'
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def build_analysis_prompt(document_block: str, instruction: str) -> str:
    """Narrative report: five fixed Markdown sections for a clinical audience."""
    return f"""\
**ROLE AND GOAL:**
You are an AI medical research analyst. Your task is to synthesize information
from several documents into one in-depth analytical report for physicians and
clinical experts. The report must be tightly structured, coherent and academic.

**USER REQUEST (MOST IMPORTANT):**
{instruction_clause(instruction)}

**ANALYSIS TASKS:**
Based on the documents provided:
1. **Comprehensive synthesis:** Extract and combine the key findings,
   quantitative and qualitative data, research methods and conclusions from
   ALL documents.
2. **Comparative analysis:** Identify and discuss the similarities
   (consensus), differences (contradictions) and unique or complementary
   aspects across the documents. Do not just list them; explain why they
   matter.
3. **One single analysis:** Never summarize each document separately.
   Weave the information into one synthesized analysis with a logical flow.

**REPORT STRUCTURE AND FORMAT:**
Write the entire analysis in **{REPORT_LANGUAGE}**.
Present the result as a structured report in Markdown with these sections:

### 1. Overview summary
(A short paragraph with the most important conclusions of the synthesis,
especially those related to the user's request.)

### 2. Consolidated key findings
(The core results of the studies. Group similar findings together and cite
sources, e.g. [Document A, B], where needed.)

### 3. Comparative analysis: similarities and contradictions
- **Similarities:** conclusions or data reinforced across several sources.
- **Contradictions/differences:** where the documents disagree, and the
  possible reasons.

### 4. Methodology discussion
(Briefly summarize the methods used and comment on strengths or
limitations that may affect the results.)

### 5. Conclusion and clinical implications
(The final conclusion from all the evidence and, most importantly, what the
findings mean in practice for clinicians.)

**INPUT DATA:**
Extracted content of the documents:
{document_block}
"""


def build_diagram_prompt(document_block: str, instruction: str) -> str:
    """Diagram: exactly one fenced Mermaid block and nothing else."""
    return f"""\
**ROLE AND GOAL:**
You are an expert at visualizing research findings. Turn the synthesized
content of the documents below into a single Mermaid diagram.

**USER REQUEST (MOST IMPORTANT):**
{instruction_clause(instruction)}

**OUTPUT RULES:**
- Return ONLY one fenced code block starting with ```mermaid and ending with ```.
- No prose, explanation or headings before or after the block.
- Choose the diagram type that best fits the content (flowchart, mindmap,
  timeline, sequenceDiagram, classDiagram, ...).
- Keep node labels short and write them in {REPORT_LANGUAGE}.
- The markup must be valid Mermaid syntax.

**INPUT DATA:**
Extracted content of the documents:
{document_block}
"""


def build_table_prompt(document_block: str, instruction: str) -> str:
    """Comparison table: one column per document, fixed criteria as rows."""
    rows = "\n".join(f"- {criterion}" for criterion in TABLE_CRITERIA)
    return f"""\
**ROLE AND GOAL:**
You are an AI medical research analyst. Compare the documents below side by
side in one comparison table.

**USER REQUEST (MOST IMPORTANT):**
{instruction_clause(instruction)}

**OUTPUT RULES:**
- Return ONLY a Markdown table, with no prose before or after it.
- The first column is "Criterion"; every other column is one input document,
  headed by its file name, in the order the documents appear below.
- Use exactly these rows, in this order:
{rows}
- Keep every cell concise and write the cell contents in {REPORT_LANGUAGE}.
- Write "not reported" when a document does not address a criterion.

**INPUT DATA:**
Extracted content of the documents:
{document_block}
"""


_TEMPLATES = {
    "analysis": build_analysis_prompt,
    "diagram": build_diagram_prompt,
    "table": build_table_prompt,
}


def compose_prompt(
    documents: Sequence[DocumentText],
    instruction: str,
    output_format: OutputFormat,
) -> str:
    """Build the final prompt for one invocation.

    Args:
        documents:     Extracted texts in file-list order.
        instruction:   Free-text user request; blank means "general overview".
        output_format: ``analysis``, ``diagram`` or ``table``.

    Raises:
        ValueError: for an unknown output format.
    """
    try:
        template = _TEMPLATES[output_format]
    except KeyError:
        raise ValueError(f"Unknown output format: {output_format!r}") from None
    return template(build_document_block(documents), instruction)
