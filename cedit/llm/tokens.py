"""Prompt size estimation.

The budget check only needs an estimate that grows with the input; it is not
meant to match the provider's own count.  Any object with a ``count(text)``
method can be plugged into the completion client.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

PROMPT_SEPARATOR = "\n\n---\n\n"


class TokenEstimator(Protocol):
    def count(self, text: str) -> int: ...


@dataclass(frozen=True)
class HeuristicTokenEstimator:
    """Character-based estimate (about four characters per token for English text and code)."""

    chars_per_token: float = 4.0

    def count(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / self.chars_per_token)


def prompt_text(system: str, user: str) -> str:
    return f"{system}{PROMPT_SEPARATOR}{user}"
