"""Tests for synthesizer/log.py — logging setup."""

import logging
import re

from synthesizer.log import NOISY_LOGGERS, setup_logging


# ---------------------------------------------------------------------------
# setup_logging  (logger state reset handled by conftest._reset_synthesizer_logger)
# ---------------------------------------------------------------------------


def test_setup_logging_single_stderr_handler_even_when_called_twice():
    setup_logging()
    setup_logging()
    logger = logging.getLogger("synthesizer")
    stream_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1
    assert logger.propagate is False


def test_setup_logging_levels_follow_verbose():
    setup_logging()
    assert logging.getLogger("synthesizer").level == logging.INFO
    setup_logging(verbose=True)
    assert logging.getLogger("synthesizer").level == logging.DEBUG


def test_setup_logging_quiets_library_loggers():
    """Library loggers sit at WARNING normally and INFO in verbose mode."""
    setup_logging()
    assert all(logging.getLogger(n).level == logging.WARNING for n in NOISY_LOGGERS)
    setup_logging(verbose=True)
    assert all(logging.getLogger(n).level == logging.INFO for n in NOISY_LOGGERS)


def test_setup_logging_writes_records_to_log_file(tmp_path):
    log_file = tmp_path / "nested" / "logs" / "run.log"
    setup_logging(log_file=log_file)
    logging.getLogger("synthesizer.pipeline").info("extracted 3 files")
    for h in logging.getLogger("synthesizer").handlers:
        h.flush()
    content = log_file.read_text(encoding="utf-8")
    assert "extracted 3 files" in content
    assert "synthesizer.pipeline" in content


def test_setup_logging_without_log_file_has_no_file_handler():
    setup_logging()
    logger = logging.getLogger("synthesizer")
    assert not [h for h in logger.handlers if isinstance(h, logging.FileHandler)]


def test_setup_logging_output_format(capsys):
    setup_logging()
    logging.getLogger("synthesizer.llm").info("sentinel-message")
    err = capsys.readouterr().err
    assert re.search(r"\d{2}:\d{2}:\d{2}", err), f"No timestamp found in: {err!r}"
    assert "MainThread" in err
    assert "synthesizer.llm: sentinel-message" in err
