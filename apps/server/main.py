from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apps.server.pipeline import ChatPipeline, build_pipeline, probe_tts_connection  # noqa: E402
from apps.server.routes import ChatApp  # noqa: E402
from modules.core.config import AppConfig, load_config, resolve_project_path  # noqa: E402
from modules.core.knowledge import load_knowledge_base  # noqa: E402
from modules.core.logging_utils import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None, pipeline: ChatPipeline | None = None) -> FastAPI:
    setup_logging()
    config = config or load_config(ROOT / "configs" / "config.yaml")
    logger.info("=== Starting IDMS Knowledge Assistant ===")

    if pipeline is None:
        knowledge = load_knowledge_base(resolve_project_path(config, config.runtime.knowledge_base_path))
        pipeline = build_pipeline(config, knowledge)

    logger.info(
        "Server config loaded: llm_endpoint=%s llm_model=%s audio_dir=%s knowledge_base=%s groq_key=%s elevenlabs_key=%s",
        config.llm.endpoint,
        config.llm.model,
        pipeline.audio_dir,
        pipeline.knowledge.loaded,
        bool(config.credentials.groq_api_key),
        bool(config.credentials.elevenlabs_api_key),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        connected = await probe_tts_connection(
            pipeline.tts,
            pipeline.credentials.elevenlabs_api_key,
            timeout_s=config.tts.probe_timeout_s,
        )
        logger.info("ElevenLabs API Status: %s", "Connected" if connected else "Failed")
        logger.info("Health check available at: http://localhost:%s/health", config.server.port)
        logger.info("=== Server Ready ===")
        yield
        logger.info("Server shutting down")

    app = FastAPI(title="IDMS Avatar Chat", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    chat_app = ChatApp(config=config, pipeline=pipeline)
    app.include_router(chat_app.router)
    return app


def main() -> None:
    config = load_config(ROOT / "configs" / "config.yaml")
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
