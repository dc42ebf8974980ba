from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from apps.server.metrics import Metrics, TurnMetrics
from modules.core import events
from modules.core.config import AppConfig, AssistantConfig, Credentials, ensure_project_dir
from modules.core.errors import LLMError, SynthesisTimeoutError, TTSError
from modules.core.interfaces import LLMProvider, TTSProvider
from modules.core.knowledge import KnowledgeBase
from modules.core.lipsync import audio_file_to_base64, default_lipsync, read_lipsync_transcript
from modules.core.logging_utils import shorten
from modules.core.schemas import ReplyMessage
from modules.llm.groq_adapter.provider import GroqChatProvider
from modules.llm.reply_parser import parse_reply
from modules.tts.elevenlabs.provider import ElevenLabsProvider

logger = logging.getLogger(__name__)

INTRO_AUDIO_FILE = "intro_0.wav"
INTRO_LIPSYNC_FILE = "intro_0.json"


def _relevance_prompt(assistant: AssistantConfig, user_text: str) -> str:
    topics = "\n".join(f"- {topic}" for topic in assistant.topics)
    return (
        "You are a filter that determines if a query is related to the following domain:\n"
        f"You are {assistant.name}, a virtual assistant for the {assistant.domain}.\n"
        "Avoid questions that are not covered by the knowledge base.\n"
        f"{topics}\n\n"
        f'Query: "{user_text}"\n\n'
        f'Respond with ONLY "{events.RELEVANT}" if the query is related to these topics, '
        f'or "{events.IRRELEVANT}" if it\'s completely unrelated.'
    )


def _reply_system_prompt(assistant: AssistantConfig, knowledge: KnowledgeBase, max_messages: int) -> str:
    return (
        f"You are {assistant.name}, a virtual assistant specialized in the {assistant.domain}.\n"
        f"You will always reply with a JSON array of messages. With a maximum of {max_messages} messages.\n"
        "Each message has a text, facialExpression, and animation property.\n"
        f"The different facial expressions are: {', '.join(events.FACIAL_EXPRESSIONS)}.\n"
        f"The different animations are: {', '.join(events.ANIMATIONS)}.\n"
        "Your response must be a valid JSON object with a 'messages' array.\n"
        "Avoid questions that are not covered by the knowledge base.\n"
        "IMPORTANT: You must ONLY answer based on the following knowledge base information. "
        "If the information to answer the query is not contained here, state that you don't "
        "have that specific information in your knowledge base:\n\n"
        f"{knowledge.text}"
    )


def is_relevant(classification: str) -> bool:
    # "IRRELEVANT" contains "RELEVANT", so the negative label is checked first.
    label = (classification or "").upper()
    if events.IRRELEVANT in label:
        return False
    return events.RELEVANT in label


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not clean up file %s: %s", path, exc)


def _fixed_message(text: str, expression: str, animation: str, audio: str = "") -> ReplyMessage:
    return ReplyMessage(
        text=text,
        facialExpression=expression,
        animation=animation,
        audio=audio,
        lipsync=default_lipsync(),
    )


def error_message() -> ReplyMessage:
    return _fixed_message(events.TEXT_LLM_FAILED, events.EXPRESSION_SAD, events.ANIMATION_IDLE)


@dataclass
class TurnResult:
    messages: list[ReplyMessage]
    status_code: int = 200


class ChatPipeline:
    def __init__(
        self,
        llm: LLMProvider,
        tts: TTSProvider,
        knowledge: KnowledgeBase,
        credentials: Credentials,
        audio_dir: str | Path,
        assistant: AssistantConfig | None = None,
        synthesis_timeout_s: float = 10.0,
        max_messages: int = 3,
        relevance_max_tokens: int = 10,
        relevance_temperature: float = 0.1,
        reply_max_tokens: int = 1000,
        reply_temperature: float = 0.6,
    ):
        self.llm = llm
        self.tts = tts
        self.knowledge = knowledge
        self.credentials = credentials
        self.audio_dir = Path(audio_dir)
        self.assistant = assistant or AssistantConfig()
        self.synthesis_timeout_s = synthesis_timeout_s
        self.max_messages = max_messages
        self.relevance_max_tokens = relevance_max_tokens
        self.relevance_temperature = relevance_temperature
        self.reply_max_tokens = reply_max_tokens
        self.reply_temperature = reply_temperature

    def _ensure_audio_dir(self) -> Path:
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        return self.audio_dir

    def _has_credentials(self) -> bool:
        return bool(self.credentials.groq_api_key) and bool(self.credentials.elevenlabs_api_key)

    async def run_turn(self, user_text: str | None) -> TurnResult:
        logger.info("=== Chat request received ===")
        metrics = TurnMetrics()
        audio_dir = self._ensure_audio_dir()
        text = (user_text or "").strip()

        if not text:
            return TurnResult(messages=[self._greeting(audio_dir)])

        if not self._has_credentials():
            logger.warning(
                "API keys not properly configured: groq=%s elevenlabs=%s",
                bool(self.credentials.groq_api_key),
                bool(self.credentials.elevenlabs_api_key),
            )
            return TurnResult(
                messages=[
                    _fixed_message(events.TEXT_MISSING_KEYS, events.EXPRESSION_ANGRY, events.ANIMATION_ANGRY)
                ]
            )

        logger.info("Processing user message: %s", shorten(text, 120))
        try:
            if not await self._check_relevance(text, metrics):
                message = await self._out_of_domain(audio_dir, metrics)
                logger.info("Sending domain restriction response")
                return TurnResult(messages=[message])
            raw_reply = await self._generate_reply(text, metrics)
            return await self._voice_reply(raw_reply, audio_dir, metrics)
        except LLMError:
            logger.exception("LLM call failed, returning error message")
            return TurnResult(messages=[error_message()], status_code=500)
        except Exception:
            logger.exception("Chat turn failed, returning error message")
            return TurnResult(messages=[error_message()], status_code=500)

    async def _voice_reply(self, raw_reply: str, audio_dir: Path, metrics: TurnMetrics) -> TurnResult:
        drafts = parse_reply(raw_reply, max_messages=self.max_messages)
        logger.info("Processing %s messages for audio generation", len(drafts))

        messages: list[ReplyMessage] = []
        for idx, draft in enumerate(drafts):
            audio_path = audio_dir / f"message_{idx}_{uuid.uuid4().hex[:12]}.mp3"
            audio = await self._message_audio(idx, draft["text"], audio_path, metrics)
            messages.append(ReplyMessage(**draft, audio=audio, lipsync=default_lipsync()))

        logger.info(
            "Sending final response: status=%s metrics=%s",
            [
                {
                    "messageIndex": idx,
                    "hasAudio": bool(msg.audio),
                    "audioLength": len(msg.audio),
                    "text": shorten(msg.text, 30),
                }
                for idx, msg in enumerate(messages)
            ],
            metrics.summary(),
        )
        return TurnResult(messages=messages)

    def _greeting(self, audio_dir: Path) -> ReplyMessage:
        audio = audio_file_to_base64(audio_dir / INTRO_AUDIO_FILE)
        lipsync = read_lipsync_transcript(audio_dir / INTRO_LIPSYNC_FILE)
        if not audio:
            logger.info("Using default audio for intro")
        return ReplyMessage(
            text=events.TEXT_GREETING,
            facialExpression=events.EXPRESSION_SMILE,
            animation=events.ANIMATION_TALKING_1,
            audio=audio,
            lipsync=lipsync,
        )

    async def _check_relevance(self, text: str, metrics: TurnMetrics) -> bool:
        if not self.knowledge.loaded:
            logger.info("Knowledge base empty, skipping domain relevance check")
            return True

        start = Metrics.now()
        classification = await asyncio.to_thread(
            self.llm.chat,
            [{"role": "user", "content": _relevance_prompt(self.assistant, text)}],
            self.relevance_max_tokens,
            self.relevance_temperature,
        )
        metrics.relevance_ms = Metrics.elapsed_ms(start)
        relevant = is_relevant(classification)
        logger.info(
            "Domain relevance result: relevant=%s raw=%s ms=%s",
            relevant,
            shorten(classification, 30),
            metrics.relevance_ms,
        )
        return relevant

    async def _generate_reply(self, text: str, metrics: TurnMetrics) -> str:
        start = Metrics.now()
        raw_reply = await asyncio.to_thread(
            self.llm.chat,
            [
                {
                    "role": "system",
                    "content": _reply_system_prompt(self.assistant, self.knowledge, self.max_messages),
                },
                {"role": "user", "content": text},
            ],
            self.reply_max_tokens,
            self.reply_temperature,
        )
        metrics.reply_ms = Metrics.elapsed_ms(start)
        logger.info("Raw reply from LLM: ms=%s text=%s", metrics.reply_ms, shorten(raw_reply, 500))
        return raw_reply

    async def _out_of_domain(self, audio_dir: Path, metrics: TurnMetrics) -> ReplyMessage:
        audio_path = audio_dir / f"message_domain_{uuid.uuid4().hex[:12]}.mp3"
        audio = await self._message_audio(0, events.TEXT_OUT_OF_DOMAIN, audio_path, metrics)
        return _fixed_message(
            events.TEXT_OUT_OF_DOMAIN,
            events.EXPRESSION_SMILE,
            events.ANIMATION_TALKING_0,
            audio=audio,
        )

    async def synthesize_with_timeout(self, text: str, audio_path: Path) -> None:
        task = asyncio.ensure_future(asyncio.to_thread(self.tts.synthesize_to_file, text, str(audio_path)))
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.synthesis_timeout_s)
        except asyncio.TimeoutError:
            # The worker thread cannot be interrupted; drop its file once it finishes.
            task.add_done_callback(lambda done: self._discard_late_result(done, audio_path))
            raise SynthesisTimeoutError(
                f"Audio generation timed out after {self.synthesis_timeout_s}s"
            ) from None

    @staticmethod
    def _discard_late_result(task: asyncio.Future, audio_path: Path) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.info("Late synthesis failed after timeout: %s", task.exception())
        _remove_quietly(audio_path)

    async def _message_audio(self, idx: int, text: str, audio_path: Path, metrics: TurnMetrics) -> str:
        if not text:
            logger.warning("Message %s has no text, skipping audio", idx)
            return ""

        logger.info("Generating audio for message %s: %s", idx, shorten(text))
        start = Metrics.now()
        try:
            await self.synthesize_with_timeout(text, audio_path)
        except SynthesisTimeoutError:
            logger.error("Audio generation timeout: message=%s", idx)
            return ""
        except TTSError as exc:
            logger.error("Audio generation failed: message=%s error=%s", idx, exc)
            _remove_quietly(audio_path)
            return ""
        except Exception:
            logger.exception("Error processing message %s", idx)
            _remove_quietly(audio_path)
            return ""
        finally:
            metrics.tts_ms.append(Metrics.elapsed_ms(start))

        audio = audio_file_to_base64(audio_path)
        _remove_quietly(audio_path)
        logger.info("Message %s processed: audio_len=%s", idx, len(audio))
        return audio


async def probe_tts_connection(tts: TTSProvider, api_key: str, timeout_s: float = 5.0) -> bool:
    if not api_key:
        logger.error("ElevenLabs API key not found")
        return False
    try:
        await asyncio.wait_for(asyncio.to_thread(tts.list_voices), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.error("ElevenLabs API connection failed: timeout after %ss", timeout_s)
        return False
    except TTSError as exc:
        logger.error("ElevenLabs API connection failed: %s", exc)
        return False
    except Exception:
        logger.exception("ElevenLabs API connection check crashed")
        return False
    logger.info("ElevenLabs API connection successful")
    return True


def _build_llm_provider(config: AppConfig) -> LLMProvider:
    return GroqChatProvider(
        api_key=config.credentials.groq_api_key,
        endpoint=config.llm.endpoint,
        model=config.llm.model,
        timeout_s=config.llm.timeout_s,
    )


def _build_tts_provider(config: AppConfig) -> TTSProvider:
    return ElevenLabsProvider(
        api_key=config.credentials.elevenlabs_api_key,
        voice_id=config.credentials.voice_id,
        base_url=config.tts.base_url,
        model_id=config.tts.model_id,
        timeout_s=config.tts.timeout_s,
    )


def build_pipeline(
    config: AppConfig,
    knowledge: KnowledgeBase,
    llm: LLMProvider | None = None,
    tts: TTSProvider | None = None,
) -> ChatPipeline:
    return ChatPipeline(
        llm=llm or _build_llm_provider(config),
        tts=tts or _build_tts_provider(config),
        knowledge=knowledge,
        credentials=config.credentials,
        audio_dir=ensure_project_dir(config, config.runtime.audio_dir),
        assistant=config.assistant,
        synthesis_timeout_s=config.tts.synthesis_timeout_s,
        max_messages=config.llm.max_messages,
        relevance_max_tokens=config.llm.relevance_max_tokens,
        relevance_temperature=config.llm.relevance_temperature,
        reply_max_tokens=config.llm.reply_max_tokens,
        reply_temperature=config.llm.reply_temperature,
    )
