"""Session state for repeated invocations over one file list.

``AnalysisSession`` owns the state a front end reads (``is_loading``,
``result``, ``rendered``, ``error``).  Each ``analyze()`` call takes a new
generation token and resets that state; when it finishes it commits only if
its token is still the latest, so an older invocation that completes late can
never overwrite a newer one.
"""

import asyncio
import logging
from typing import Callable

from synthesizer.credentials import CredentialStore
from synthesizer.extractor import DocumentTextExtractor, TextExtractionService
from synthesizer.intake import FileIntake
from synthesizer.llm import CompletionClient, create_client
from synthesizer.models import (
    AnalysisRequest,
    AuthError,
    Config,
    OutputFormat,
    RenderedResult,
)
from synthesizer.pipeline import run_analysis
from synthesizer.renderer import ResultRenderer

logger = logging.getLogger(__name__)

MISSING_CREDENTIAL_MESSAGE = "Error: enter and save your Google AI API key to continue."
INVALID_CREDENTIAL_MESSAGE = (
    "Error: the API key is invalid or has expired. Check the key you entered."
)


def failure_message(exc: Exception) -> str:
    """Map any pipeline failure to the single message shown to the user."""
    if isinstance(exc, AuthError):
        return INVALID_CREDENTIAL_MESSAGE
    return f"An error occurred during the analysis: {str(exc) or 'please try again.'}"


class AnalysisSession:
    """File list, credential and last result for one interactive session.

    Args:
        intake:         The session's file list.
        credentials:    Store holding the API key (read on every invocation).
        config:         Model / backend settings.
        extractor:      Text extraction service; defaults to
                        ``DocumentTextExtractor``.
        renderer:       Result renderer; defaults to ``ResultRenderer``.
        client_factory: Builds the completion client from config + credential.
    """

    def __init__(
        self,
        intake: FileIntake,
        credentials: CredentialStore,
        config: Config,
        extractor: TextExtractionService | None = None,
        renderer: ResultRenderer | None = None,
        client_factory: Callable[[Config, str], CompletionClient] = create_client,
    ) -> None:
        self.intake = intake
        self.credentials = credentials
        self.config = config
        self.extractor = extractor or DocumentTextExtractor(config.docx_extractor)
        self.renderer = renderer or ResultRenderer()
        self._client_factory = client_factory

        self.is_loading = False
        self.result = ""
        self.rendered: RenderedResult | None = None
        self.error = ""
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    async def analyze(
        self, instruction: str = "", output_format: OutputFormat = "analysis"
    ) -> bool:
        """Run one invocation over a snapshot of the current file list.

        Does nothing when the file list is empty.  With no credential the
        error is set immediately and no request is made.

        Returns:
            True if this invocation committed its outcome (success or error),
            False if it was skipped or superseded by a newer one.
        """
        if len(self.intake) == 0:
            return False

        self._generation += 1
        token = self._generation

        credential = self.credentials.credential
        if not credential:
            self.is_loading = False
            self.result = ""
            self.rendered = None
            self.error = MISSING_CREDENTIAL_MESSAGE
            return True

        self.is_loading = True
        self.error = ""
        self.result = ""
        self.rendered = None

        try:
            request = AnalysisRequest(
                files=self.intake.files,
                instruction=instruction,
                output_format=output_format,
            )
            client = self._client_factory(self.config, credential)
            text = await run_analysis(request, client, self.extractor)
        except Exception as exc:
            if not self._is_current(token):
                logger.info("Discarding failure of superseded invocation %d: %s", token, exc)
                return False
            logger.error("Analysis failed: %s", exc, exc_info=True)
            self.error = failure_message(exc)
            return True
        finally:
            if self._is_current(token):
                self.is_loading = False

        if not self._is_current(token):
            logger.info("Discarding result of superseded invocation %d", token)
            return False

        self.result = text
        self.rendered = self.renderer.render(text, output_format)
        return True

    def submit(
        self, instruction: str = "", output_format: OutputFormat = "analysis"
    ) -> asyncio.Task:
        """Start ``analyze`` as a task, cancelling any invocation still running.

        Must be called from inside a running event loop.
        """
        if self._task is not None and not self._task.done():
            logger.info("Cancelling in-flight invocation %d", self._generation)
            self._task.cancel()
        self._task = asyncio.create_task(self.analyze(instruction, output_format))
        return self._task

    def reset(self) -> None:
        """Forget files and results (application reset); the credential stays."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._generation += 1
        self.intake.clear()
        self.is_loading = False
        self.result = ""
        self.rendered = None
        self.error = ""
