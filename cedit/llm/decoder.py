"""Stream decoding -- provider chunks in, command envelopes out.

Chunks are plain mappings shaped like the Anthropic Messages streaming
events.  Tool-use blocks can arrive in two ways:

- complete, inside a content list (``message_start.message.content`` or
  ``message_delta.delta.content``);
- incrementally, as ``content_block_start`` followed by ``input_json_delta``
  fragments and a closing ``content_block_stop``.

Either way an envelope is produced as soon as its block is complete, so the
consumer can start on command N while command N+1 is still on the wire.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from cedit.errors import ProviderRequestFailure
from cedit.models.commands import CommandEnvelope

TOOL_USE = "tool_use"


@dataclass
class _PendingToolUse:
    block_id: str
    name: str | None
    initial_input: Any = None
    json_parts: list[str] = field(default_factory=list)

    def tool_input(self) -> Any:
        if not self.json_parts:
            return self.initial_input
        raw = "".join(self.json_parts)
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Tool use {}: input is not valid JSON, using empty input", self.block_id)
            return {}


class StreamDecoder:
    """Stateful decoder for one provider stream."""

    def __init__(self) -> None:
        self._pending: dict[int, _PendingToolUse] = {}
        self._seen_ids: set[str] = set()
        self.envelope_count = 0

    def feed(self, chunk: Mapping[str, Any]) -> list[CommandEnvelope]:
        """Consume one chunk and return the envelopes it completes."""
        chunk_type = chunk.get("type")
        match chunk_type:
            case "message_start":
                message = chunk.get("message") or {}
                return self._from_blocks(message.get("content"))
            case "message_delta":
                delta = chunk.get("delta") or {}
                if delta.get("stop_reason") == TOOL_USE:
                    logger.info("Message stream ended with tool_use stop reason")
                return self._from_blocks(delta.get("content"))
            case "content_block_start":
                self._start_block(chunk)
            case "content_block_delta":
                self._extend_block(chunk)
            case "content_block_stop":
                return self._finish_block(chunk.get("index"))
            case "message_stop":
                logger.info("Message stream stopped")
            case "error":
                error = chunk.get("error") or {}
                raise ProviderRequestFailure(error.get("message") or "Provider reported a stream error")
        return []

    # -- Complete blocks -------------------------------------------------------

    def _from_blocks(self, blocks: Iterable[Any] | None) -> list[CommandEnvelope]:
        if not isinstance(blocks, list):
            return []
        envelopes = []
        for block in blocks:
            if not isinstance(block, Mapping) or block.get("type") != TOOL_USE:
                continue
            envelope = self._emit(str(block.get("id", "")), block.get("name"), block.get("input"))
            if envelope is not None:
                envelopes.append(envelope)
        return envelopes

    # -- Incremental blocks ----------------------------------------------------

    def _start_block(self, chunk: Mapping[str, Any]) -> None:
        block = chunk.get("content_block") or {}
        if block.get("type") != TOOL_USE:
            return
        self._pending[chunk.get("index", 0)] = _PendingToolUse(
            block_id=str(block.get("id", "")),
            name=block.get("name"),
            initial_input=block.get("input"),
        )

    def _extend_block(self, chunk: Mapping[str, Any]) -> None:
        pending = self._pending.get(chunk.get("index", 0))
        delta = chunk.get("delta") or {}
        if pending is not None and delta.get("type") == "input_json_delta":
            pending.json_parts.append(delta.get("partial_json") or "")

    def _finish_block(self, index: int | None) -> list[CommandEnvelope]:
        pending = self._pending.pop(index if index is not None else 0, None)
        if pending is None:
            return []
        envelope = self._emit(pending.block_id, pending.name, pending.tool_input())
        return [envelope] if envelope is not None else []

    # -- Output ----------------------------------------------------------------

    def _emit(self, block_id: str, name: str | None, tool_input: Any) -> CommandEnvelope | None:
        if block_id:
            if block_id in self._seen_ids:
                return None
            self._seen_ids.add(block_id)
        logger.info("Tool use block received: id={}, name={}, input={}", block_id, name, tool_input)
        self.envelope_count += 1
        return CommandEnvelope.from_tool_input(block_id, tool_input)
