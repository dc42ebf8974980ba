from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class LLMConfig:
    endpoint: str = "https://api.groq.com/openai/v1/chat/completions"
    model: str = "llama3-8b-8192"
    timeout_s: int = 60
    relevance_max_tokens: int = 10
    relevance_temperature: float = 0.1
    reply_max_tokens: int = 1000
    reply_temperature: float = 0.6
    max_messages: int = 3


@dataclass
class TTSConfig:
    base_url: str = "https://api.elevenlabs.io/v1"
    model_id: str = "eleven_monolingual_v1"
    timeout_s: int = 30
    synthesis_timeout_s: float = 10.0
    probe_timeout_s: float = 5.0


@dataclass
class AssistantConfig:
    name: str = "Kom AI"
    domain: str = "IDMS ERP system"
    topics: list[str] = field(
        default_factory=lambda: [
            "IDMS ERP system",
            "ERP modules like Sales, Purchase, Inventory, Production, etc.",
            "GST Integration",
            "Business software systems",
            "Enterprise software",
        ]
    )


@dataclass
class RuntimeConfig:
    knowledge_base_path: str = "idms_knowledge_base.js"
    audio_dir: str = "audios"


@dataclass
class Credentials:
    groq_api_key: str = ""
    elevenlabs_api_key: str = ""
    voice_id: str = ""


@dataclass
class AppConfig:
    server: ServerConfig
    llm: LLMConfig
    tts: TTSConfig
    assistant: AssistantConfig
    runtime: RuntimeConfig
    credentials: Credentials
    project_root: Path


_DEFAULTS: dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 3000, "cors_origins": ["*"]},
    "llm": {
        "endpoint": "https://api.groq.com/openai/v1/chat/completions",
        "model": "llama3-8b-8192",
        "timeout_s": 60,
        "relevance_max_tokens": 10,
        "relevance_temperature": 0.1,
        "reply_max_tokens": 1000,
        "reply_temperature": 0.6,
        "max_messages": 3,
    },
    "tts": {
        "base_url": "https://api.elevenlabs.io/v1",
        "model_id": "eleven_monolingual_v1",
        "timeout_s": 30,
        "synthesis_timeout_s": 10.0,
        "probe_timeout_s": 5.0,
    },
    "assistant": {},
    "runtime": {
        "knowledge_base_path": "idms_knowledge_base.js",
        "audio_dir": "audios",
    },
}


def _merge_dict(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dict(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_credentials(env_file: str | Path | None = None) -> Credentials:
    # Shell/deploy variables win over .env entries.
    if env_file is not None:
        if Path(env_file).exists():
            load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    return Credentials(
        groq_api_key=os.getenv("GROQ_API_KEY", ""),
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY", ""),
        voice_id=os.getenv("VOICE_ID", ""),
    )


def load_config(path: str | Path = "configs/config.yaml", env_file: str | Path | None = None) -> AppConfig:
    path_obj = Path(path).resolve()
    project_root = path_obj.parent.parent

    loaded: dict[str, Any] = {}
    if path_obj.exists():
        loaded = yaml.safe_load(path_obj.read_text(encoding="utf-8")) or {}

    merged = _merge_dict(_DEFAULTS, loaded)

    server = ServerConfig(**merged["server"])
    port_env = os.getenv("PORT", "").strip()
    if port_env.isdigit():
        server.port = int(port_env)

    return AppConfig(
        server=server,
        llm=LLMConfig(**merged["llm"]),
        tts=TTSConfig(**merged["tts"]),
        assistant=AssistantConfig(**merged["assistant"]),
        runtime=RuntimeConfig(**merged["runtime"]),
        credentials=load_credentials(env_file),
        project_root=project_root,
    )


def resolve_project_path(config: AppConfig, maybe_relative_path: str) -> str:
    path = Path(maybe_relative_path)
    if path.is_absolute():
        return str(path)
    return str((config.project_root / path).resolve())


def ensure_project_dir(config: AppConfig, maybe_relative_dir: str) -> str:
    path = Path(resolve_project_path(config, maybe_relative_dir))
    path.mkdir(parents=True, exist_ok=True)
    return str(path)
