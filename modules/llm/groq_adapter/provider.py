from __future__ import annotations

import logging

import requests

from modules.core.errors import LLMError
from modules.core.interfaces import LLMProvider

logger = logging.getLogger(__name__)


class GroqChatProvider(LLMProvider):
    def __init__(self, api_key: str, endpoint: str, model: str, timeout_s: int = 60):
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.timeout_s = timeout_s

    def _build_payload(self, messages: list[dict[str, str]], max_tokens: int, temperature: float) -> dict:
        return {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    @staticmethod
    def _extract_text(data: dict) -> str:
        if not isinstance(data, dict):
            raise LLMError(f"LLM response body has unexpected type {type(data).__name__}")
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            first = choices[0] or {}
            if not isinstance(first, dict):
                raise LLMError("LLM response choice is not an object")
            message = first.get("message") or {}
            if not isinstance(message, dict):
                raise LLMError("LLM response message is not an object")
            if isinstance(message.get("content"), str):
                return message["content"]
            if isinstance(first.get("text"), str):
                return first["text"]
        return ""

    def chat(self, messages: list[dict[str, str]], max_tokens: int, temperature: float) -> str:
        payload = self._build_payload(messages, max_tokens=max_tokens, temperature=temperature)
        logger.info(
            "LLM request: endpoint=%s model=%s messages=%s max_tokens=%s temperature=%s",
            self.endpoint,
            self.model,
            len(messages),
            max_tokens,
            temperature,
        )

        try:
            response = requests.post(
                self.endpoint,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            logger.exception("LLM HTTP request failed: endpoint=%s", self.endpoint)
            raise LLMError(f"LLM request failed: {exc}") from exc

        if not response.ok:
            logger.error(
                "LLM HTTP status error: status=%s body=%s",
                response.status_code,
                (response.text or "")[:500],
            )
            raise LLMError(f"LLM returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            logger.exception("LLM JSON decode failed: body=%s", (response.text or "")[:500])
            raise LLMError("LLM response body is not JSON") from exc

        text = self._extract_text(data).strip()
        logger.info("LLM response parsed: text_len=%s", len(text))
        if not text:
            logger.warning("LLM response has no usable text: keys=%s", list(data.keys()))
        return text
