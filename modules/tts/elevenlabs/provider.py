from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import requests

from modules.core.errors import TTSError
from modules.core.interfaces import TTSProvider

logger = logging.getLogger(__name__)


class ElevenLabsProvider(TTSProvider):
    def __init__(
        self,
        api_key: str,
        voice_id: str,
        base_url: str = "https://api.elevenlabs.io/v1",
        model_id: str = "eleven_monolingual_v1",
        timeout_s: int = 30,
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self.timeout_s = timeout_s

    def synthesize_to_file(self, text: str, path: str) -> None:
        url = f"{self.base_url}/text-to-speech/{self.voice_id}"
        try:
            response = requests.post(
                url,
                headers={
                    "xi-api-key": self.api_key,
                    "Content-Type": "application/json",
                    "Accept": "audio/mpeg",
                },
                json={"text": text, "model_id": self.model_id},
                timeout=self.timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("TTS request failed: voice_id=%s error=%s", self.voice_id, exc)
            raise TTSError(f"ElevenLabs synthesis failed: {exc}") from exc

        try:
            Path(path).write_bytes(response.content)
        except OSError as exc:
            raise TTSError(f"Could not write synthesized audio to {path}: {exc}") from exc
        logger.info("TTS audio written: path=%s bytes=%s", path, len(response.content))

    def list_voices(self) -> Any:
        try:
            response = requests.get(
                f"{self.base_url}/voices",
                headers={"xi-api-key": self.api_key, "accept": "application/json"},
                timeout=self.timeout_s,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("TTS voice listing failed: %s", exc)
            raise TTSError(f"ElevenLabs voice listing failed: {exc}") from exc
