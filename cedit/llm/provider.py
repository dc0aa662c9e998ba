"""Provider adapters -- open a streaming completion and expose its chunks.

The completion client only knows the ``StreamProvider`` protocol: an awaitable
that opens the stream (the unit of retry) and returns an async iterator of
mapping-shaped chunks.  ``AnthropicProvider`` is the production adapter.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

if TYPE_CHECKING:
    from anthropic import AsyncAnthropic


@dataclass(frozen=True)
class CompletionRequest:
    """Everything needed for one provider call."""

    model: str
    system: str
    user: str
    max_output_tokens: int
    tools: Sequence[Mapping[str, Any]] = field(default_factory=tuple)


class StreamProvider(Protocol):
    async def open_stream(self, request: CompletionRequest) -> AsyncIterator[Mapping[str, Any]]: ...


def _to_mapping(event: Any) -> Mapping[str, Any]:
    if isinstance(event, Mapping):
        return event
    return event.model_dump()


class AnthropicProvider:
    """Streams from the Anthropic Messages API.

    The SDK's own retries are disabled (``max_retries=0``): the completion
    client's retry policy is the only one.
    """

    def __init__(self, api_key: str, *, client: AsyncAnthropic | None = None) -> None:
        if client is None:
            from anthropic import AsyncAnthropic

            client = AsyncAnthropic(api_key=api_key, max_retries=0)
        self._client = client

    async def open_stream(self, request: CompletionRequest) -> AsyncIterator[Mapping[str, Any]]:
        logger.info("Sending request to Anthropic API (model={})", request.model)
        stream = await self._client.messages.create(
            model=request.model,
            max_tokens=request.max_output_tokens,
            system=request.system,
            messages=[{"role": "user", "content": request.user}],
            tools=list(request.tools),
            stream=True,
        )
        return _iter_chunks(stream)


async def _iter_chunks(stream: Any) -> AsyncIterator[Mapping[str, Any]]:
    async with stream:
        async for event in stream:
            yield _to_mapping(event)
