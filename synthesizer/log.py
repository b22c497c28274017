"""Logging setup for the synthesizer CLI.

Call ``setup_logging`` once from ``cli.main()``.  It configures the
``"synthesizer"`` package logger (all modules use
``logging.getLogger(__name__)`` and propagate here) and turns down the
chattier libraries the pipeline drives.
"""

import logging
import sys
from pathlib import Path

_FMT = "%(asctime)s  %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
_DATE = "%H:%M:%S"

#: Third-party loggers that flood INFO with per-page / per-request noise.
NOISY_LOGGERS: tuple[str, ...] = ("docling", "pypdf", "httpx", "openai")


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure logging for a CLI session.

    Args:
        verbose:  DEBUG level for ``synthesizer`` (prompt sizes, discarded
                  files, cache hits) and INFO for the noisy libraries.
                  Default is INFO for ``synthesizer`` and WARNING for them.
        log_file: Optional extra destination; parent directories are created.

    Existing handlers are cleared first, so repeated calls are safe.
    """
    logger = logging.getLogger("synthesizer")
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    fmt = logging.Formatter(_FMT, datefmt=_DATE)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    library_level = logging.INFO if verbose else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
