from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    return Path(value) if value else default


@dataclass(frozen=True)
class Settings:
    DB_PATH: Path = field(default_factory=lambda: _env_path(
        "LINGOCARDS_DB_PATH", Path(__file__).resolve().parent.parent / "lingocards.db"
    ))
    NOTEBOOK_KEY: str = field(default_factory=lambda: os.getenv("LINGOCARDS_NOTEBOOK_KEY", "notebook"))
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LINGOCARDS_LOG_LEVEL", "INFO"))

    # Gemini
    GEMINI_API_KEY: str | None = field(default_factory=lambda: os.getenv("GEMINI_API_KEY"))
    TEXT_MODEL: str = field(default_factory=lambda: os.getenv("LINGOCARDS_TEXT_MODEL", "gemini-2.5-flash"))
    IMAGE_MODEL: str = field(default_factory=lambda: os.getenv("LINGOCARDS_IMAGE_MODEL", "gemini-2.5-flash-image"))
    TTS_MODEL: str = field(default_factory=lambda: os.getenv("LINGOCARDS_TTS_MODEL", "gemini-2.5-flash-preview-tts"))
    TTS_VOICE: str = field(default_factory=lambda: os.getenv("LINGOCARDS_TTS_VOICE", "Kore"))
    CHAT_HISTORY_LIMIT: int = 10

    # TTS output is 24kHz mono 16-bit PCM
    PCM_SAMPLE_RATE: int = 24000
    PCM_CHANNELS: int = 1

    DEFAULT_NATIVE: str = "en"
    DEFAULT_TARGET: str = "es"

settings = Settings()
