"""Streaming completion client.

Turns one prompt into a lazy sequence of ``CommandEnvelope`` objects:

1. **Token budget**: the prompt is estimated when ``send_prompt`` is called,
   before anything is awaited.  Over budget raises ``TokenBudgetExceeded``
   and no request is made.
2. **Retry**: opening the provider stream is retried as a whole, up to
   ``settings.retries`` attempts with a fixed ``settings.retry_delay_ms``
   sleep in between.  A stream that already started is never resumed or
   merged with another attempt; after the last attempt the final error
   propagates unchanged.
3. **Decoding**: chunks are fed to a ``StreamDecoder`` and envelopes are
   yielded as soon as they are complete.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import anyio
from loguru import logger

from cedit.errors import MissingCredentialsError, TokenBudgetExceeded
from cedit.llm.constants import TEXT_EDITOR_TOOL, TOOL_DEFINITION_OVERHEAD
from cedit.llm.decoder import StreamDecoder
from cedit.llm.provider import AnthropicProvider, CompletionRequest
from cedit.llm.tokens import HeuristicTokenEstimator, prompt_text

if TYPE_CHECKING:
    from cedit.llm.provider import StreamProvider
    from cedit.llm.tokens import TokenEstimator
    from cedit.models.commands import CommandEnvelope
    from cedit.models.prompt import Prompt
    from cedit.settings import CeditSettings


def estimate_prompt_tokens(
    prompt: Prompt,
    *,
    estimator: TokenEstimator | None = None,
    tool_overhead: int = TOOL_DEFINITION_OVERHEAD,
) -> int:
    """Estimated input size of *prompt*, tool descriptor included."""
    estimator = estimator or HeuristicTokenEstimator()
    return estimator.count(prompt_text(prompt.system, prompt.user)) + tool_overhead


class CompletionClient:
    """Issues prompts to a ``StreamProvider`` under a token budget and retry policy."""

    def __init__(
        self,
        settings: CeditSettings,
        provider: StreamProvider,
        *,
        estimator: TokenEstimator | None = None,
        tool_overhead: int = TOOL_DEFINITION_OVERHEAD,
        tools: Sequence[Mapping[str, Any]] = (TEXT_EDITOR_TOOL,),
    ) -> None:
        self._settings = settings
        self._provider = provider
        self._estimator = estimator or HeuristicTokenEstimator()
        self._tool_overhead = tool_overhead
        self._tools = tuple(tools)

    # -- Budget ----------------------------------------------------------------

    def estimate_tokens(self, prompt: Prompt) -> int:
        return estimate_prompt_tokens(prompt, estimator=self._estimator, tool_overhead=self._tool_overhead)

    def check_budget(self, prompt: Prompt) -> int:
        """Return the estimate, or raise ``TokenBudgetExceeded``."""
        estimated = self.estimate_tokens(prompt)
        limit = self._settings.token_budget
        logger.info("Estimated token count for prompt: {} (limit {})", estimated, limit)
        if estimated > limit:
            raise TokenBudgetExceeded(estimated, limit)
        return estimated

    # -- Public API ------------------------------------------------------------

    def send_prompt(self, prompt: Prompt) -> AsyncIterator[CommandEnvelope]:
        """Return the envelope stream for *prompt*.

        The budget check runs here, synchronously; the returned iterator does
        the network work when first advanced.  It can be consumed only once.
        """
        self.check_budget(prompt)
        request = CompletionRequest(
            model=self._settings.model,
            system=prompt.system,
            user=prompt.user,
            max_output_tokens=self._settings.max_output_tokens,
            tools=self._tools,
        )
        return self._stream(request)

    # -- Internals -------------------------------------------------------------

    async def _stream(self, request: CompletionRequest) -> AsyncIterator[CommandEnvelope]:
        chunks = await self._open_with_retry(request)
        decoder = StreamDecoder()
        async for chunk in chunks:
            for envelope in decoder.feed(chunk):
                yield envelope
        if decoder.envelope_count == 0:
            logger.warning("LLM response finished without yielding any tool uses")

    async def _open_with_retry(self, request: CompletionRequest) -> AsyncIterator[Mapping[str, Any]]:
        attempts = max(1, self._settings.retries)
        delay = self._settings.retry_delay_ms / 1000
        attempt = 1
        while True:
            try:
                return await self._provider.open_stream(request)
            except Exception as exc:
                logger.warning("Provider request failed (attempt {}/{}): {}", attempt, attempts, exc)
                if attempt >= attempts:
                    raise
                if delay > 0:
                    logger.info("Sleeping for {}ms before retry", self._settings.retry_delay_ms)
                    await anyio.sleep(delay)
                attempt += 1


def create_completion_client(settings: CeditSettings, **kwargs: Any) -> CompletionClient:
    """Build a client backed by the Anthropic provider."""
    api_key = settings.api_key_value()
    if not api_key:
        raise MissingCredentialsError
    return CompletionClient(settings, AnthropicProvider(api_key), **kwargs)
