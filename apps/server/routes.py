from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse

from apps.server.pipeline import ChatPipeline, probe_tts_connection
from modules.core.config import AppConfig
from modules.core.errors import TTSError
from modules.core.schemas import ChatRequest, ChatResponse, HealthReport

logger = logging.getLogger(__name__)


class ChatApp:
    def __init__(self, config: AppConfig, pipeline: ChatPipeline):
        self.config = config
        self.pipeline = pipeline
        self.router = APIRouter()
        self.router.add_api_route("/", self.root, methods=["GET"], response_class=PlainTextResponse)
        self.router.add_api_route("/voices", self.voices, methods=["GET"])
        self.router.add_api_route("/health", self.health, methods=["GET"], response_model=HealthReport)
        self.router.add_api_route("/chat", self.chat, methods=["POST"], response_model=ChatResponse)

    async def root(self) -> str:
        return "Hello World!"

    async def voices(self):
        try:
            return await asyncio.to_thread(self.pipeline.tts.list_voices)
        except TTSError:
            logger.exception("Error fetching voices")
            return JSONResponse(status_code=500, content={"error": "Failed to fetch voices"})

    async def health(self) -> HealthReport:
        credentials = self.pipeline.credentials
        connected = await probe_tts_connection(
            self.pipeline.tts,
            credentials.elevenlabs_api_key,
            timeout_s=self.config.tts.probe_timeout_s,
        )
        return HealthReport(
            groqApi=bool(credentials.groq_api_key),
            elevenLabsApi=bool(credentials.elevenlabs_api_key),
            knowledgeBase=self.pipeline.knowledge.loaded,
            elevenLabsConnected=connected,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def chat(self, request: ChatRequest | None = None):
        result = await self.pipeline.run_turn(request.message if request else None)
        response = ChatResponse(messages=result.messages)
        if result.status_code != 200:
            return JSONResponse(status_code=result.status_code, content=response.model_dump())
        return response
