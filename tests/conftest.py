from __future__ import annotations

import json
import time
from pathlib import Path

import pytest

from apps.server.pipeline import ChatPipeline
from modules.core.config import Credentials
from modules.core.errors import LLMError, TTSError
from modules.core.interfaces import LLMProvider, TTSProvider
from modules.core.knowledge import KnowledgeBase

AUDIO_BYTES = b"ID3\x03\x00fake-mp3-frame\xff\xfb\x90"


class FakeLLM(LLMProvider):
    """Returns queued replies in order; an LLMError instance in the queue is raised."""

    def __init__(self, replies: list):
        self.replies = list(replies)
        self.calls: list[dict] = []

    def chat(self, messages, max_tokens, temperature):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeTTS(TTSProvider):
    def __init__(self, fail_on: tuple[str, ...] = (), slow_on: tuple[str, ...] = (), delay_s: float = 0.0):
        self.fail_on = fail_on
        self.slow_on = slow_on
        self.delay_s = delay_s
        self.paths: list[str] = []
        self.voices_error: Exception | None = None

    def synthesize_to_file(self, text, path):
        self.paths.append(path)
        if text in self.fail_on:
            Path(path).write_bytes(b"partial")
            raise TTSError("synthesis refused")
        if text in self.slow_on:
            time.sleep(self.delay_s)
        Path(path).write_bytes(AUDIO_BYTES)

    def list_voices(self):
        if self.voices_error is not None:
            raise self.voices_error
        return {"voices": [{"voice_id": "v1", "name": "Rachel"}]}


def reply_json(*texts: str) -> str:
    return json.dumps(
        {"messages": [{"text": t, "facialExpression": "smile", "animation": "Talking_2"} for t in texts]}
    )


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(groq_api_key="gsk-test", elevenlabs_api_key="el-test", voice_id="voice-1")


@pytest.fixture
def knowledge() -> KnowledgeBase:
    return KnowledgeBase(text="IDMS has Sales, Purchase and GST modules.", source="memory")


@pytest.fixture
def make_pipeline(tmp_path, credentials, knowledge):
    def _make(llm=None, tts=None, creds=None, kb=None, **kwargs) -> ChatPipeline:
        return ChatPipeline(
            llm=llm or FakeLLM([]),
            tts=tts or FakeTTS(),
            knowledge=knowledge if kb is None else kb,
            credentials=credentials if creds is None else creds,
            audio_dir=tmp_path / "audios",
            **kwargs,
        )

    return _make


@pytest.fixture
def llm_error() -> LLMError:
    return LLMError("LLM returned HTTP 401")
