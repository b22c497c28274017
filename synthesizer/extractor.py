"""PDF/DOCX to plain text: pypdf for PDFs, docling (with python-docx fallback) for DOCX.

Dispatch is by the file's *declared* MIME type only; the content is never
sniffed.  The blocking library calls run in a worker thread so that several
files can be extracted concurrently from the event loop.
"""

import asyncio
import logging
import threading
from typing import Protocol

import docx
from docling.document_converter import DocumentConverter
from pypdf import PdfReader

from synthesizer.models import (
    DOCX_MIME,
    PDF_MIME,
    ExtractionError,
    UnsupportedFileType,
    UploadedFile,
)

logger = logging.getLogger(__name__)

_DOCLING_LOCK = threading.Lock()


class TextExtractionService(Protocol):
    async def extract(
        self,
        file: UploadedFile,
        start_page: int | None = None,
        end_page: int | None = None,
    ) -> str: ...


def parse_page(value: str) -> int | None:
    """Turn a stored page field into an int; empty means unset."""
    return int(value) if value else None


def resolve_page_span(
    page_count: int, start_page: int | None, end_page: int | None
) -> tuple[int, int]:
    """Clamp an optional 1-based inclusive range to ``[1, page_count]``.

    The returned ``(first, last)`` may have ``first > last``; callers treat
    that as an empty selection.
    """
    first = max(1, start_page or 1)
    last = min(page_count, end_page or page_count)
    return first, last


class DocumentTextExtractor:
    """Default ``TextExtractionService``.

    Args:
        docx_extractor: ``auto`` (docling, python-docx on failure),
                        ``docling`` or ``python-docx``.
    """

    def __init__(self, docx_extractor: str = "auto") -> None:
        self.docx_extractor = docx_extractor

    async def extract(
        self,
        file: UploadedFile,
        start_page: int | None = None,
        end_page: int | None = None,
    ) -> str:
        """Return the plain text of ``file``.

        Page bounds apply to PDFs only and are clamped, never rejected.

        Raises:
            UnsupportedFileType: if the declared type is neither PDF nor DOCX.
            ExtractionError: if the underlying library cannot read the file.
        """
        if file.mime_type == PDF_MIME:
            return await asyncio.to_thread(extract_pdf_text, file, start_page, end_page)
        if file.mime_type == DOCX_MIME:
            return await asyncio.to_thread(extract_docx_text, file, self.docx_extractor)
        raise UnsupportedFileType(f"Unsupported file type: {file.mime_type} ({file.name})")


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


def extract_pdf_text(
    file: UploadedFile, start_page: int | None = None, end_page: int | None = None
) -> str:
    """Extract pages ``start_page..end_page`` (1-based, inclusive) of a PDF.

    Within a page, text fragments are joined with single spaces; pages are
    concatenated with no separator.  An inverted range yields ``""``.
    """
    try:
        reader = PdfReader(str(file.path))
        page_count = len(reader.pages)
        first, last = resolve_page_span(page_count, start_page, end_page)
        if first > last:
            logger.info(
                "Empty page selection for %s (%d-%d of %d pages)",
                file.name,
                first,
                last,
                page_count,
            )
            return ""

        logger.info("Extracting %s pages %d-%d of %d", file.name, first, last, page_count)
        parts: list[str] = []
        for number in range(first, last + 1):
            tokens = _page_tokens(reader.pages[number - 1])
            parts.append(" ".join(tokens))
        text = "".join(parts)
    except Exception as e:
        raise ExtractionError(f"Failed to read {file.name}: {e}") from e

    logger.info("PDF extraction complete: %s (%s chars)", file.name, f"{len(text):,}")
    return text


def _page_tokens(page) -> list[str]:
    """Collect the text-show fragments of one page in content-stream order."""
    tokens: list[str] = []

    def visitor(text, cm, tm, font_dict, font_size):
        fragment = text.strip("\r\n")
        if fragment.strip():
            tokens.append(fragment)

    page.extract_text(visitor_text=visitor)
    return tokens


# ---------------------------------------------------------------------------
# DOCX
# ---------------------------------------------------------------------------


def extract_docx_text(file: UploadedFile, strategy: str = "auto") -> str:
    """Extract the raw text of a whole DOCX document."""
    if strategy == "docling":
        return _run_docling(file)
    if strategy == "python-docx":
        return _run_python_docx(file)
    return _run_docling_with_fallback(file)


def _run_docling_with_fallback(file: UploadedFile) -> str:
    """Run docling, then fall back to python-docx on failure."""
    try:
        return _run_docling(file)
    except ExtractionError as docling_exc:
        logger.warning(
            "Docling failed for %s; attempting python-docx fallback: %s",
            file.name,
            docling_exc,
        )
        try:
            return _run_python_docx(file)
        except ExtractionError as fallback_exc:
            root_cause = docling_exc.__cause__ or docling_exc
            raise ExtractionError(
                f"Failed to read {file.name}: docling and python-docx fallback failed ({fallback_exc})"
            ) from root_cause


def _run_docling(file: UploadedFile) -> str:
    """Convert with docling and export plain text.

    Raises:
        ExtractionError: wrapping any exception raised by docling.
    """
    try:
        # Docling conversions are not reliably thread-safe; serialize them.
        with _DOCLING_LOCK:
            converter = DocumentConverter()
            result = converter.convert(str(file.path))
            text = result.document.export_to_text()
    except Exception as e:
        raise ExtractionError(f"Failed to read {file.name}: {e}") from e
    logger.info("DOCX extraction complete: %s (%s chars)", file.name, f"{len(text):,}")
    return text


def _run_python_docx(file: UploadedFile) -> str:
    try:
        document = docx.Document(str(file.path))
        text = "\n".join(paragraph.text for paragraph in document.paragraphs)
    except Exception as e:
        raise ExtractionError(f"Failed to read {file.name}: python-docx error: {e}") from e
    logger.info("DOCX extraction complete: %s (%s chars)", file.name, f"{len(text):,}")
    return text
