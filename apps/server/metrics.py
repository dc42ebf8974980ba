from __future__ import annotations

import time
from dataclasses import dataclass, field


class Metrics:
    @staticmethod
    def now() -> float:
        return time.perf_counter()

    @staticmethod
    def elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)


@dataclass
class TurnMetrics:
    """Latencies collected over one chat turn."""

    started: float = field(default_factory=Metrics.now)
    relevance_ms: int | None = None
    reply_ms: int | None = None
    tts_ms: list[int] = field(default_factory=list)

    def total_ms(self) -> int:
        return Metrics.elapsed_ms(self.started)

    def summary(self) -> dict[str, int | None]:
        return {
            "relevance_ms": self.relevance_ms,
            "reply_ms": self.reply_ms,
            "tts_total_ms": sum(self.tts_ms),
            "tts_count": len(self.tts_ms),
            "e2e_ms": self.total_ms(),
        }
