"""Completion client wrapping the openai SDK.

Works with any OpenAI-compatible backend; the default is Gemini's
OpenAI-compatible endpoint.  The public interface is
``CompletionClient.complete(prompt)`` returning an object with a ``.text``
attribute, so call sites and mocks stay simple.

One request per invocation: no streaming, no retries.  Failures are mapped to
``AuthError`` (credential rejected) or ``RequestError`` (everything else) and
raised straight to the caller.
"""

import logging
import time

import openai as _openai

from synthesizer.models import AuthError, Config, RequestError

logger = logging.getLogger(__name__)

#: Error-message fragments the remote service uses for a rejected key.
_AUTH_ERROR_MARKERS = ("API key not valid", "API_KEY_INVALID")


# ---------------------------------------------------------------------------
# Client wrapper
# ---------------------------------------------------------------------------


class _CompletionResponse:
    """Thin wrapper presenting an openai chat response as ``response.text``."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text


class CompletionClient:
    """OpenAI-compatible chat client bound to one model and one credential.

    Attributes:
        model:    The model identifier passed to every completion request.
        base_url: API base URL, kept for log messages.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str,
        timeout_s: float | None = None,
        max_output_tokens: int | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.max_output_tokens = max_output_tokens
        self._client = _openai.OpenAI(
            base_url=base_url,
            api_key=api_key,
            max_retries=0,
        )

    def complete(self, prompt: str) -> _CompletionResponse:
        """Send one chat completion request and return the model's reply."""
        kwargs: dict = dict(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
        )
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s
        if self.max_output_tokens is not None:
            kwargs["max_tokens"] = self.max_output_tokens
        response = self._client.chat.completions.create(**kwargs)
        return _CompletionResponse(text=response.choices[0].message.content or "")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def create_client(config: Config, credential: str) -> CompletionClient:
    """Create a client from configuration and the user's saved credential."""
    return CompletionClient(
        model=config.model,
        base_url=config.base_url,
        api_key=credential,
        timeout_s=config.timeout_s,
        max_output_tokens=config.max_output_tokens,
    )


def request_completion(client: CompletionClient, prompt: str) -> str:
    """Send ``prompt`` once and return the response text.

    Raises:
        AuthError:    if the service rejected the credential.
        RequestError: for any other failure, carrying the underlying message.
    """
    logger.info("Calling LLM  model=%s  backend=%s", client.model, client.base_url)
    logger.debug("Prompt size: %s chars (~%s tokens)", f"{len(prompt):,}", f"{len(prompt) // 4:,}")
    t0 = time.monotonic()
    try:
        response = client.complete(prompt)
    except Exception as exc:
        if is_auth_error(exc):
            raise AuthError(str(exc)) from exc
        raise RequestError(str(exc)) from exc

    text = response.text
    elapsed = time.monotonic() - t0
    logger.info("Response received (%.1fs, %s chars)", elapsed, f"{len(text):,}")
    return text


def is_auth_error(exc: Exception) -> bool:
    """Return True when ``exc`` means the credential was rejected."""
    if isinstance(exc, _openai.AuthenticationError):
        return True
    message = str(exc)
    return any(marker in message for marker in _AUTH_ERROR_MARKERS)
