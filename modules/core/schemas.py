from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

FacialExpression = Literal["smile", "sad", "angry", "surprised", "funnyFace", "default"]
Animation = Literal[
    "Talking_0",
    "Talking_1",
    "Talking_2",
    "Crying",
    "Laughing",
    "Rumba",
    "Idle",
    "Terrified",
    "Angry",
]


class ChatRequest(BaseModel):
    message: str | None = None


class MouthCue(BaseModel):
    start: float
    end: float
    value: str


class LipsyncMetadata(BaseModel):
    soundFile: str
    duration: float


class LipsyncTrack(BaseModel):
    metadata: LipsyncMetadata
    mouthCues: list[MouthCue] = Field(default_factory=list)


class ReplyMessage(BaseModel):
    text: str
    facialExpression: FacialExpression = "default"
    animation: Animation = "Idle"
    audio: str = ""
    lipsync: LipsyncTrack


class ChatResponse(BaseModel):
    messages: list[ReplyMessage]


class HealthReport(BaseModel):
    server: str = "running"
    groqApi: bool
    elevenLabsApi: bool
    knowledgeBase: bool
    elevenLabsConnected: bool
    timestamp: str
