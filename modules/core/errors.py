from __future__ import annotations


class AvatarChatError(Exception):
    """Base error for the avatar chat backend."""


class LLMError(AvatarChatError):
    """Raised when a chat-completion call fails (transport, HTTP status or body)."""


class TTSError(AvatarChatError):
    """Raised when a text-to-speech call fails."""


class SynthesisTimeoutError(TTSError):
    """Raised when speech synthesis does not finish within its time limit."""
