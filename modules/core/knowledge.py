from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnowledgeBase:
    text: str = ""
    source: str = ""

    @property
    def loaded(self) -> bool:
        return bool(self.text)


def load_knowledge_base(path: str | Path) -> KnowledgeBase:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        logger.exception("Knowledge base load failed: path=%s", path)
        return KnowledgeBase(text="", source=str(path))

    logger.info("Knowledge base loaded: path=%s chars=%s", path, len(text))
    return KnowledgeBase(text=text, source=str(path))
