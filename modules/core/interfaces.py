from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LLMProvider(ABC):
    @abstractmethod
    def chat(self, messages: list[dict[str, str]], max_tokens: int, temperature: float) -> str:
        """Return the assistant text of one chat completion. Raise LLMError on failure."""


class TTSProvider(ABC):
    @abstractmethod
    def synthesize_to_file(self, text: str, path: str) -> None:
        """Write synthesized speech for `text` to `path`. Raise TTSError on failure."""

    @abstractmethod
    def list_voices(self) -> Any:
        """Return the provider's voice list payload. Raise TTSError on failure."""
