"""Pydantic models, dataclass Config, and exceptions for the synthesis pipeline.

The prompt wording lives in ``prompts.py``. This module only defines the
*shape* of the data that flows through the pipeline: the uploaded file list,
the per-file extracted text, the rendered result, and runtime configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, get_args

from pydantic import BaseModel

# ---------------------------------------------------------------------------
# MIME types / output formats
# ---------------------------------------------------------------------------

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ACCEPTED_MIME_TYPES: frozenset[str] = frozenset({PDF_MIME, DOCX_MIME})
"""The only declared types allowed into the file list."""

OutputFormat = Literal["analysis", "diagram", "table"]
"""Narrative analysis report, diagram markup, or comparison table."""

OUTPUT_FORMATS: tuple[str, ...] = get_args(OutputFormat)

PageField = Literal["start", "end"]

# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


class UploadedFile(BaseModel):
    """One file in the session's file list.

    ``start_page`` / ``end_page`` hold the raw digit text typed by the user
    (empty string when unset). They are only parsed to integers by the
    extractor, and only matter for PDFs.
    """

    path: Path
    mime_type: str
    name: str
    start_page: str = ""
    end_page: str = ""

    @property
    def has_page_range(self) -> bool:
        return bool(self.start_page or self.end_page)


class DocumentText(BaseModel):
    """Extracted text of one file, ready to be wrapped by the prompt composer."""

    name: str
    page_range_label: str | None = None
    text: str


class AnalysisRequest(BaseModel):
    """Snapshot of one invocation: files, free-text instruction, output format."""

    files: list[UploadedFile]
    instruction: str = ""
    output_format: OutputFormat = "analysis"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderedResult(BaseModel):
    """The model response converted for display.

    ``raw_text`` is always the untouched model output. ``html`` is ``None``
    when rendering failed, in which case ``error`` carries the message shown
    to the user.
    """

    output_format: OutputFormat
    raw_text: str
    html: str | None = None
    diagram_source: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Config (dataclass, not pydantic; holds runtime settings)
# ---------------------------------------------------------------------------

#: Gemini exposes an OpenAI-compatible endpoint, so the openai SDK is used as-is.
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass
class Config:
    """Runtime configuration for the synthesis pipeline.

    All fields correspond to CLI flags.

    Attributes:
        base_url:          OpenAI-compatible API base URL.
        model:             Model identifier sent with every completion request.
        timeout_s:         Seconds before a completion call is abandoned.
                           ``None`` (default) leaves the SDK default in place;
                           nothing is configured locally.
        max_output_tokens: Upper bound on generated tokens, ``None`` for no cap.
        docx_extractor:    DOCX strategy: ``auto`` (docling with python-docx
                           fallback), ``docling`` or ``python-docx``.
        credential_file:   JSON file holding the saved API key.
        asset_cache_dir:   Root directory of the offline asset cache.
        verbose:           DEBUG-level logging when True.
    """

    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout_s: float | None = None
    max_output_tokens: int | None = None
    docx_extractor: Literal["auto", "docling", "python-docx"] = "auto"
    credential_file: Path = field(
        default_factory=lambda: Path.home() / ".config" / "doc-synthesizer" / "credentials.json"
    )
    asset_cache_dir: Path = field(
        default_factory=lambda: Path.home() / ".cache" / "doc-synthesizer"
    )
    verbose: bool = False


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnsupportedFileType(Exception):
    """Raised when extraction is asked to handle a type outside the accepted set."""


class ExtractionError(Exception):
    """Raised when a PDF/DOCX library fails to read a file (corrupt, encrypted, etc.)."""


class AuthError(Exception):
    """Raised when the remote service rejects the credential."""


class RequestError(Exception):
    """Raised for any other completion failure, including network errors."""


class DiagramRenderError(Exception):
    """Raised when the model returned diagram markup that cannot be rendered."""
