"""Shared pytest fixtures for the synthesizer test suite."""

import logging
from pathlib import Path

import pytest

from synthesizer.models import DOCX_MIME, PDF_MIME, UnsupportedFileType, UploadedFile


# ---------------------------------------------------------------------------
# Logger isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_synthesizer_logger():
    """Clear the synthesizer logger between tests.

    Tests that call ``main()`` trigger ``setup_logging()``, which attaches
    handlers and sets ``propagate=False``.  Without this fixture the state
    leaks into subsequent tests and breaks ``caplog`` capture.
    """
    logger = logging.getLogger("synthesizer")
    for h in logger.handlers[:]:
        try:
            h.close()
        except Exception:
            pass
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    yield
    for h in logger.handlers[:]:
        try:
            h.close()
        except Exception:
            pass
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def make_file(name: str, mime_type: str | None = None, **fields) -> UploadedFile:
    """Build an UploadedFile without touching the filesystem."""
    if mime_type is None:
        mime_type = DOCX_MIME if name.endswith(".docx") else PDF_MIME
    return UploadedFile(path=Path("/docs") / name, mime_type=mime_type, name=name, **fields)


@pytest.fixture
def pdf_file() -> UploadedFile:
    return make_file("report.pdf")


@pytest.fixture
def docx_file() -> UploadedFile:
    return make_file("summary.docx")


# ---------------------------------------------------------------------------
# Fake services
# ---------------------------------------------------------------------------


class FakeExtractor:
    """TextExtractionService returning canned text per file name.

    Records every call as ``(name, start_page, end_page)``.
    """

    def __init__(self, texts: dict[str, str] | None = None, error: Exception | None = None):
        self.texts = texts or {}
        self.error = error
        self.calls: list[tuple[str, int | None, int | None]] = []

    async def extract(self, file, start_page=None, end_page=None) -> str:
        self.calls.append((file.name, start_page, end_page))
        if self.error is not None:
            raise self.error
        if file.mime_type not in (PDF_MIME, DOCX_MIME):
            raise UnsupportedFileType(file.mime_type)
        return self.texts.get(file.name, f"text of {file.name}")


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()
