from __future__ import annotations

import base64
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from modules.core.schemas import LipsyncTrack

logger = logging.getLogger(__name__)

_DEFAULT_CUE_VALUES = ("X", "A", "E", "O", "U", "A", "E", "O", "X", "X")
_DEFAULT_CUE_STEP_S = 0.2


def default_lipsync() -> LipsyncTrack:
    """Fixed cue track used whenever no viseme analysis exists for the audio."""
    cues = []
    for idx, value in enumerate(_DEFAULT_CUE_VALUES):
        start = round(idx * _DEFAULT_CUE_STEP_S, 1)
        end = round((idx + 1) * _DEFAULT_CUE_STEP_S, 1)
        cues.append({"start": start, "end": end, "value": value})
    return LipsyncTrack.model_validate(
        {
            "metadata": {"soundFile": "default.wav", "duration": 2.0},
            "mouthCues": cues,
        }
    )


def read_lipsync_transcript(path: str | Path) -> LipsyncTrack:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return LipsyncTrack.model_validate(data)
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning("Lipsync transcript unavailable: path=%s error=%s", path, exc)
        return default_lipsync()


def encode_audio(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def audio_file_to_base64(path: str | Path) -> str:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        logger.warning("Audio file unreadable: path=%s error=%s", path, exc)
        return ""
    encoded = encode_audio(data)
    logger.info("Audio file encoded: path=%s base64_len=%s", path, len(encoded))
    return encoded
