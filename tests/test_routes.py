import base64

import pytest
from conftest import FakeLLM, FakeTTS, reply_json
from fastapi.testclient import TestClient

from apps.server.main import create_app
from modules.core import events
from modules.core.config import load_config
from modules.core.errors import TTSError
from modules.llm.groq_adapter import provider as groq_module
from modules.llm.groq_adapter.provider import GroqChatProvider


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    return load_config(tmp_path / "configs" / "config.yaml", env_file=tmp_path / "missing.env")


def client_for(config, pipeline):
    return TestClient(create_app(config=config, pipeline=pipeline))


def test_root_is_plain_text(config, make_pipeline):
    response = client_for(config, make_pipeline()).get("/")
    assert response.status_code == 200
    assert response.text == "Hello World!"


def test_voices_proxy(config, make_pipeline):
    response = client_for(config, make_pipeline()).get("/voices")
    assert response.status_code == 200
    assert response.json()["voices"][0]["voice_id"] == "v1"


def test_voices_failure(config, make_pipeline):
    tts = FakeTTS()
    tts.voices_error = TTSError("401")
    response = client_for(config, make_pipeline(tts=tts)).get("/voices")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch voices"}


def test_health_flags_are_stable(config, make_pipeline):
    client = client_for(config, make_pipeline())
    first = client.get("/health").json()
    second = client.get("/health").json()
    for key in ("server", "groqApi", "elevenLabsApi", "knowledgeBase"):
        assert first[key] == second[key]
    assert first["server"] == "running"
    assert first["groqApi"] is True
    assert first["elevenLabsApi"] is True
    assert first["knowledgeBase"] is True
    assert first["elevenLabsConnected"] is True
    assert "T" in first["timestamp"]


def test_health_reports_failed_probe(config, make_pipeline):
    tts = FakeTTS()
    tts.voices_error = TTSError("unreachable")
    body = client_for(config, make_pipeline(tts=tts)).get("/health").json()
    assert body["elevenLabsConnected"] is False


def test_chat_without_message(config, make_pipeline):
    client = client_for(config, make_pipeline())
    for payload in ({}, {"message": ""}):
        response = client.post("/chat", json=payload)
        assert response.status_code == 200
        messages = response.json()["messages"]
        assert len(messages) == 1
        assert messages[0]["animation"] == "Talking_1"
        assert messages[0]["audio"] is not None
        assert messages[0]["lipsync"]["metadata"]["soundFile"] == "default.wav"


def test_chat_full_turn(config, make_pipeline):
    llm = FakeLLM(["RELEVANT", reply_json("Purchase orders live in the Purchase module.", "Anything else?")])
    response = client_for(config, make_pipeline(llm=llm)).post("/chat", json={"message": "Where are POs?"})
    assert response.status_code == 200
    messages = response.json()["messages"]
    assert len(messages) == 2
    for msg in messages:
        assert set(msg) == {"text", "facialExpression", "animation", "audio", "lipsync"}
        base64.b64decode(msg["audio"], validate=True)
        assert len(msg["lipsync"]["mouthCues"]) == 10


def test_chat_llm_failure_is_500(config, make_pipeline, llm_error):
    response = client_for(config, make_pipeline(llm=FakeLLM([llm_error]))).post(
        "/chat", json={"message": "hello"}
    )
    assert response.status_code == 500
    messages = response.json()["messages"]
    assert [m["text"] for m in messages] == [events.TEXT_LLM_FAILED]
    assert messages[0]["audio"] == ""


class _UpstreamListResponse:
    status_code = 200
    ok = True
    text = '[{"error": "upstream"}]'

    def json(self):
        return [{"error": "upstream"}]


def test_chat_malformed_llm_body_keeps_envelope(config, make_pipeline, monkeypatch):
    monkeypatch.setattr(groq_module.requests, "post", lambda *a, **k: _UpstreamListResponse())
    llm = GroqChatProvider(api_key="gsk-test", endpoint="https://groq.test/chat", model="llama3-8b-8192")
    response = client_for(config, make_pipeline(llm=llm)).post("/chat", json={"message": "What is IDMS?"})
    assert response.status_code == 500
    messages = response.json()["messages"]
    assert len(messages) == 1
    assert messages[0]["text"] == events.TEXT_LLM_FAILED
    assert messages[0]["animation"] == "Idle"
    assert messages[0]["lipsync"]["metadata"]["soundFile"] == "default.wav"


def test_health_survives_unexpected_probe_error(config, make_pipeline):
    tts = FakeTTS()
    tts.voices_error = RuntimeError("unexpected payload")
    response = client_for(config, make_pipeline(tts=tts)).get("/health")
    assert response.status_code == 200
    assert response.json()["elevenLabsConnected"] is False
