"""
Remote semantic scorer backed by the Anthropic Messages API.
"""

from __future__ import annotations

from typing import Any, Optional

from anthropic import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    AuthenticationError,
    InternalServerError,
    PermissionDeniedError,
    RateLimitError,
)
import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from docscore.config import SemanticConfig
from docscore.errors import (
    SemanticAuthError,
    SemanticEvaluationError,
    SemanticNetworkError,
    SemanticRateLimitError,
    SemanticResponseError,
)
from docscore.observability import increment
from docscore.protocols import Metrics, NormalizedContent
from docscore.semantic.base import SemanticResult, parse_semantic_payload, transform_scores
from docscore.semantic.prompts import SYSTEM_PROMPT, VERIFY_KEY_PROMPT, build_user_prompt

logger = structlog.get_logger(__name__)

_INITIAL_DELAY = 1.0
_TRANSIENT_ERRORS = (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError)


class RemoteSemanticEvaluator:
    """
    Scores the semantic criteria with one Messages API call per page.

    Transient failures (connection, timeout, 5xx, 429) are retried with
    exponential backoff up to ``config.max_retries`` times; every failure that
    survives is re-raised as a ``SemanticEvaluationError`` subclass.
    """

    estimated = False

    def __init__(
        self,
        config: SemanticConfig,
        client: Optional[Any] = None,
        retry_delay: float = _INITIAL_DELAY,
    ) -> None:
        self.config = config
        self.retry_delay = retry_delay
        if client is None:
            if not config.has_credentials:
                raise SemanticAuthError("API key is required for semantic scoring")
            client = AsyncAnthropic(
                api_key=config.api_key.get_secret_value(),
                timeout=config.timeout_seconds,
                max_retries=0,
            )
        self.client = client

    async def evaluate(self, content: NormalizedContent, metrics: Metrics, analysis_text: str) -> SemanticResult:
        prompt = build_user_prompt(content, analysis_text)
        text = await self._request(prompt, system=SYSTEM_PROMPT)
        try:
            payload = parse_semantic_payload(text)
        except SemanticResponseError:
            logger.error("Failed to parse semantic response", url=content.meta.url, response=text[:500])
            raise
        result = transform_scores(payload)
        logger.info(
            "Semantic scoring complete",
            url=content.meta.url,
            criteria=sorted(result.scores),
        )
        return result

    async def verify_api_key(self) -> bool:
        """Send a trivial prompt; False when the key is rejected, other errors propagate."""
        try:
            await self._request(VERIFY_KEY_PROMPT, max_tokens=32)
        except SemanticAuthError:
            return False
        return True

    async def _request(self, prompt: str, system: Optional[str] = None, max_tokens: Optional[int] = None) -> str:
        kwargs = {
            "model": self.config.model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_delay, min=0),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.client.messages.create(**kwargs)
        except (APIConnectionError, APIStatusError) as e:
            increment("semantic_requests", labels={"outcome": "error"})
            raise _translate_error(e) from e

        increment("semantic_requests", labels={"outcome": "success"})
        for block in getattr(response, "content", None) or []:
            if getattr(block, "type", None) == "text" and getattr(block, "text", None):
                return block.text
        raise SemanticResponseError("No text response from the semantic model")

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Semantic request failed, retrying",
            attempt=retry_state.attempt_number,
            max_attempts=self.config.max_retries + 1,
            error_type=type(retry_state.outcome.exception()).__name__,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
        )


def _translate_error(error: Exception) -> SemanticEvaluationError:
    status = getattr(error, "status_code", None)
    if isinstance(error, (AuthenticationError, PermissionDeniedError)):
        return SemanticAuthError("Invalid API key. Please check your Anthropic API key.", status)
    if isinstance(error, RateLimitError):
        return SemanticRateLimitError("Rate limit exceeded. Please wait and try again.", status)
    if isinstance(error, APIConnectionError):
        return SemanticNetworkError("Network error. Please check your internet connection.")
    message = getattr(error, "message", None) or str(error)
    if status == 400:
        return SemanticEvaluationError(f"Bad request: {message}", status)
    return SemanticEvaluationError(f"API error ({status}): {message}", status)
