"""Command-line interface for the document synthesizer.

Entry point: ``synthesize-docs`` (configured in ``pyproject.toml``).

Usage:
    synthesize-docs FILE [FILE ...] [options]

Key options:
    --pages, --instruction, --format, --output,
    --api-key, --save-key, --credential-file,
    --model, --base-url, --timeout, --max-output-tokens,
    --docx-extractor, --prefetch-assets, --asset-cache-dir,
    --verbose/--no-verbose, --log-file.

Only PDF and DOCX files are kept; other files are skipped silently (they show
up in the DEBUG log).  The model reply is printed to stdout unless
``--output`` is given; an ``.html`` output file gets a full rendered page.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from synthesizer.assets import MERMAID_SCRIPT_URL, AssetCache
from synthesizer.credentials import (
    CredentialStore,
    EnvCredentialBackend,
    JsonFileCredentialBackend,
)
from synthesizer.intake import FileIntake
from synthesizer.log import setup_logging
from synthesizer.models import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    OUTPUT_FORMATS,
    Config,
)
from synthesizer.renderer import render_html_page
from synthesizer.session import AnalysisSession

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return parsed


def _page_spec(value: str) -> tuple[int, str, str]:
    """Parse ``N=START-END`` (either bound may be empty) into its parts."""
    position, sep, span = value.partition("=")
    start, dash, end = span.partition("-")
    if not sep or not dash or not position.isdigit() or int(position) < 1:
        raise argparse.ArgumentTypeError(
            f"expected N=START-END (e.g. 1=2-5 or 2=3-), got {value!r}"
        )
    return int(position), start.strip(), end.strip()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, run one analysis and write the result."""
    load_dotenv()

    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        verbose=args.verbose,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    config = Config(
        base_url=args.base_url,
        model=args.model,
        timeout_s=args.timeout,
        max_output_tokens=args.max_output_tokens,
        docx_extractor=args.docx_extractor,
        credential_file=Path(args.credential_file),
        asset_cache_dir=Path(args.asset_cache_dir),
        verbose=args.verbose,
    )

    credentials = _load_credentials(args, config)

    cache = AssetCache(config.asset_cache_dir)
    if args.prefetch_assets:
        try:
            cache.install()
        except OSError as exc:
            logger.warning("Could not cache assets for offline use: %s", exc)
        cache.activate()

    intake = _build_intake(args.files, args.pages)
    if len(intake) == 0:
        logger.error("No PDF or DOCX files to analyse")
        sys.exit(1)

    session = AnalysisSession(intake, credentials, config)
    asyncio.run(session.analyze(args.instruction, args.format))

    if session.error:
        logger.error("%s", session.error)
        sys.exit(1)

    _write_result(session, args.output, cache)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_credentials(args: argparse.Namespace, config: Config) -> CredentialStore:
    """Resolve the API key: --api-key, then the saved file, then $GEMINI_API_KEY."""
    store = CredentialStore(JsonFileCredentialBackend(config.credential_file))
    store.load()
    if args.api_key:
        store.set(args.api_key)
        if args.save_key:
            store.save()
        return store
    if args.save_key:
        logger.warning("--save-key has no effect without --api-key; nothing saved")
    if not store.credential:
        store.set(EnvCredentialBackend().read() or "")
    return store


def _build_intake(paths: list[str], page_specs: list[tuple[int, str, str]]) -> FileIntake:
    """Add files one by one so that ``--pages N=`` refers to the N-th argument."""
    intake = FileIntake()
    positions: dict[int, int] = {}
    for position, path in enumerate(paths, start=1):
        if intake.add_files([Path(path)]):
            positions[position] = len(intake) - 1

    for position, start, end in page_specs:
        index = positions.get(position)
        if index is None:
            logger.warning("--pages %d: no accepted file at that position", position)
            continue
        for field, value in (("start", start), ("end", end)):
            if not intake.set_page_range(index, field, value):
                logger.warning("--pages %d: ignoring non-numeric %s page %r", position, field, value)
    return intake


def _write_result(session: AnalysisSession, output: str | None, cache: AssetCache) -> None:
    rendered = session.rendered
    if rendered is None:
        logger.error("No result to write")
        sys.exit(1)

    if rendered.error:
        logger.warning("%s", rendered.error)

    if output is None:
        sys.stdout.write(session.result)
        if not session.result.endswith("\n"):
            sys.stdout.write("\n")
        return

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() in {".html", ".htm"}:
        content = render_html_page(
            rendered,
            title="Document analysis",
            mermaid_script=cache.get(MERMAID_SCRIPT_URL),
        )
    else:
        content = session.result
    output_path.write_text(content, encoding="utf-8")
    logger.info("Written: %s", output_path)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synthesize-docs",
        description=(
            "Synthesize several PDF/DOCX documents into one report, diagram or "
            "comparison table using a hosted LLM."
        ),
    )

    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="PDF or DOCX files, in the order they are sent to the model.",
    )
    parser.add_argument(
        "--pages",
        metavar="N=START-END",
        type=_page_spec,
        action="append",
        default=[],
        help="Page range for the N-th FILE (1-based, PDFs only); either bound may be empty.",
    )
    parser.add_argument(
        "--instruction",
        metavar="TEXT",
        default="",
        help="Specific analysis request; empty means a general overview.",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="analysis",
        help="Output shape: narrative analysis, Mermaid diagram or comparison table (default: analysis).",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        default=None,
        help="Write the result to FILE (.html gets a rendered page). Default: stdout.",
    )
    parser.add_argument(
        "--api-key",
        metavar="KEY",
        default=None,
        help="API key for this run (default: saved key, then GEMINI_API_KEY).",
    )
    parser.add_argument(
        "--save-key",
        action="store_true",
        default=False,
        help="Persist --api-key to the credential file.",
    )
    parser.add_argument(
        "--credential-file",
        metavar="FILE",
        default=str(Config().credential_file),
        help="JSON file holding the saved API key.",
    )
    _default_model = os.environ.get("LLM_MODEL", DEFAULT_MODEL)
    parser.add_argument(
        "--model",
        metavar="MODEL",
        default=_default_model,
        help=f"LLM model identifier (default: LLM_MODEL env var, currently {_default_model!r}).",
    )
    _default_base_url = os.environ.get("LLM_BASE_URL", DEFAULT_BASE_URL)
    parser.add_argument(
        "--base-url",
        metavar="URL",
        default=_default_base_url,
        help=f"OpenAI-compatible API base URL (default: {_default_base_url}).",
    )
    parser.add_argument(
        "--timeout",
        metavar="S",
        type=float,
        default=None,
        help="LLM call timeout in seconds (default: none configured).",
    )
    parser.add_argument(
        "--max-output-tokens",
        metavar="N",
        type=_positive_int,
        default=None,
        help="Maximum tokens the LLM may generate (default: no limit).",
    )
    parser.add_argument(
        "--docx-extractor",
        choices=["auto", "docling", "python-docx"],
        default="auto",
        help="DOCX extraction backend strategy (default: auto).",
    )
    parser.add_argument(
        "--prefetch-assets",
        action="store_true",
        default=False,
        help="Download the Mermaid script into the offline asset cache before running.",
    )
    parser.add_argument(
        "--asset-cache-dir",
        metavar="DIR",
        default=str(Config().asset_cache_dir),
        help="Root directory of the offline asset cache.",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable DEBUG-level logging.",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        default=None,
        help="Also write log output to FILE.",
    )

    return parser


if __name__ == "__main__":
    main()
