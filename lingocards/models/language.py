from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class LanguageOption:
    code: str
    name: str
    flag: str

POPULAR_LANGUAGES: tuple[LanguageOption, ...] = (
    LanguageOption("en", "English", "🇺🇸"),
    LanguageOption("es", "Spanish", "🇪🇸"),
    LanguageOption("fr", "French", "🇫🇷"),
    LanguageOption("de", "German", "🇩🇪"),
    LanguageOption("it", "Italian", "🇮🇹"),
    LanguageOption("pt", "Portuguese", "🇧🇷"),
    LanguageOption("ja", "Japanese", "🇯🇵"),
    LanguageOption("ko", "Korean", "🇰🇷"),
    LanguageOption("zh", "Chinese (Mandarin)", "🇨🇳"),
    LanguageOption("zh-TW", "Chinese (Traditional)", "🇹🇼"),
    LanguageOption("ru", "Russian", "🇷🇺"),
    LanguageOption("ar", "Arabic", "🇸🇦"),
    LanguageOption("hi", "Hindi", "🇮🇳"),
)

def language_name(code: str | None, default: str) -> str:
    """Display name for a language code; unknown codes fall back to `default`."""
    for lang in POPULAR_LANGUAGES:
        if lang.code == code:
            return lang.name
    return default
