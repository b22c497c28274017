"""File intake: the ordered, type-filtered list of files for one session.

Only the two accepted declared types (PDF, DOCX) ever enter the list.  Other
candidates are dropped without an error; the rejection is visible only in the
DEBUG log.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Iterable, Iterator

from synthesizer.models import ACCEPTED_MIME_TYPES, DOCX_MIME, PageField, UploadedFile

logger = logging.getLogger(__name__)

# Not every platform's mime.types knows about .docx.
mimetypes.add_type(DOCX_MIME, ".docx")


def uploaded_file_from_path(path: Path) -> UploadedFile:
    """Wrap a filesystem path, declaring its MIME type from the extension.

    Unknown extensions get ``application/octet-stream`` so that intake
    filtering rejects them.
    """
    mime_type, _ = mimetypes.guess_type(path.name)
    return UploadedFile(
        path=path,
        mime_type=mime_type or "application/octet-stream",
        name=path.name,
    )


class FileIntake:
    """Ordered list of accepted files.

    Insertion order is preserved and duplicates are allowed; the same path can
    be added twice and will then be sent to the model twice.
    """

    def __init__(self) -> None:
        self._files: list[UploadedFile] = []

    @property
    def files(self) -> list[UploadedFile]:
        """A copy of the current list, in insertion order."""
        return list(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[UploadedFile]:
        return iter(list(self._files))

    def add_files(self, candidates: Iterable[UploadedFile | Path | str]) -> list[UploadedFile]:
        """Append every candidate whose declared type is accepted.

        Paths (or path strings) are converted with ``uploaded_file_from_path``.
        Accepted files start with empty page-range fields, whatever the
        candidate carried.

        Returns:
            The files that were actually appended.
        """
        accepted: list[UploadedFile] = []
        for candidate in candidates:
            if isinstance(candidate, UploadedFile):
                uploaded = candidate
            else:
                uploaded = uploaded_file_from_path(Path(candidate))

            if uploaded.mime_type not in ACCEPTED_MIME_TYPES:
                logger.debug(
                    "Ignoring %s: declared type %s is not accepted",
                    uploaded.name,
                    uploaded.mime_type,
                )
                continue

            accepted.append(uploaded.model_copy(update={"start_page": "", "end_page": ""}))

        self._files.extend(accepted)
        if accepted:
            logger.info(
                "Added %d file(s); %d in list", len(accepted), len(self._files)
            )
        return accepted

    def remove_file(self, index: int) -> UploadedFile:
        """Remove and return the file at ``index``; later files shift down by one.

        Raises:
            IndexError: if ``index`` is out of range.
        """
        if not 0 <= index < len(self._files):
            raise IndexError(f"No file at index {index} (list has {len(self._files)})")
        removed = self._files.pop(index)
        logger.debug("Removed %s (index %d)", removed.name, index)
        return removed

    def set_page_range(self, index: int, field: PageField, value: str) -> bool:
        """Store ``value`` as the start or end page of the file at ``index``.

        The value is kept as text.  Anything other than digits (or the empty
        string, which clears the field) is ignored.

        Returns:
            True if the value was stored, False if it was rejected.
        """
        if field not in ("start", "end"):
            raise ValueError(f"Unknown page-range field: {field!r}")
        if value and not (value.isascii() and value.isdigit()):
            logger.debug("Rejected page value %r for index %d", value, index)
            return False

        uploaded = self._files[index]
        if field == "start":
            uploaded.start_page = value
        else:
            uploaded.end_page = value
        return True

    def clear(self) -> None:
        """Drop every file (application reset)."""
        self._files.clear()
