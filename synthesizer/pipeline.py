"""Per-invocation orchestration: files in, model response text out.

Steps
-----
1. Extract every file concurrently (fire all, await all).
2. Wrap the texts in file-list order and compose the prompt for the format.
3. Send the prompt once and return the raw response text.
"""

import asyncio
import logging
from typing import Sequence

from synthesizer.extractor import TextExtractionService, parse_page
from synthesizer.llm import CompletionClient, request_completion
from synthesizer.models import PDF_MIME, AnalysisRequest, DocumentText, UploadedFile
from synthesizer.prompts import compose_prompt, page_range_label

logger = logging.getLogger(__name__)


async def extract_all(
    files: Sequence[UploadedFile], extractor: TextExtractionService
) -> list[DocumentText]:
    """Extract all files concurrently; the result follows ``files`` order.

    The first extraction failure propagates immediately; extractions already
    running in worker threads are not interrupted and their results are
    dropped.
    """
    texts = await asyncio.gather(
        *(
            extractor.extract(f, parse_page(f.start_page), parse_page(f.end_page))
            for f in files
        )
    )
    return [
        DocumentText(name=f.name, page_range_label=_label_for(f), text=text)
        for f, text in zip(files, texts)
    ]


def _label_for(file: UploadedFile) -> str | None:
    # Page ranges are ignored for non-PDF files, so they get no annotation.
    if file.mime_type != PDF_MIME:
        return None
    return page_range_label(file.start_page, file.end_page)


async def run_analysis(
    request: AnalysisRequest,
    client: CompletionClient,
    extractor: TextExtractionService,
) -> str:
    """Run one invocation end-to-end and return the model's raw text.

    Raises:
        UnsupportedFileType, ExtractionError: from text extraction.
        AuthError, RequestError: from the completion call.
    """
    logger.info(
        "Extracting %d file(s) for a %s request", len(request.files), request.output_format
    )
    documents = await extract_all(request.files, extractor)

    prompt = compose_prompt(documents, request.instruction, request.output_format)
    logger.info(
        "Built prompt (%s chars, ~%s tokens)",
        f"{len(prompt):,}",
        f"{len(prompt) // 4:,}",
    )

    return await asyncio.to_thread(request_completion, client, prompt)
