from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Literal, Optional


@dataclass(frozen=True)
class ExampleSentence:
    """One example sentence.

    `original` carries the term wrapped in highlight markers; `audio` is the
    base64 PCM payload once it has been synthesized.
    """
    original: str
    translation: str
    audio: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExampleSentence":
        try:
            return cls(
                original=str(data["original"]),
                translation=str(data["translation"]),
                audio=data.get("audio"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid example sentence: {data!r}") from e


@dataclass(frozen=True)
class DictionaryEntry:
    """A saved or in-progress lookup result.

    Identity fields never change after creation. The cached fields
    (pronunciation_audio and example audio) are filled in later through
    NotebookService.update, which builds a new value with `merged`.
    """
    id: str
    term: str
    definition: str
    native_language: str
    target_language: str
    usage_note: str
    timestamp: int
    examples: tuple[ExampleSentence, ...] = ()
    phonetic: str = ""
    image_url: Optional[str] = None
    pronunciation_audio: Optional[str] = None

    IDENTITY_FIELDS = frozenset({"id", "term", "native_language", "target_language", "timestamp"})
    REQUIRED_FIELDS = frozenset({"definition", "usage_note", "phonetic", "examples"})

    def merged(self, changes: dict[str, Any]) -> "DictionaryEntry":
        allowed = {f.name for f in fields(self)} - self.IDENTITY_FIELDS
        bad = set(changes) - allowed
        if bad:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(bad))}")
        missing = sorted(k for k in self.REQUIRED_FIELDS & set(changes) if changes[k] is None)
        if missing:
            raise ValueError(f"Field(s) cannot be empty: {', '.join(missing)}")
        if "examples" in changes:
            changes = {**changes, "examples": tuple(
                ex if isinstance(ex, ExampleSentence) else ExampleSentence.from_dict(ex)
                for ex in changes["examples"]
            )}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["examples"] = [ex.to_dict() for ex in self.examples]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DictionaryEntry":
        try:
            return cls(
                id=str(data["id"]),
                term=str(data["term"]),
                definition=str(data["definition"]),
                native_language=str(data["native_language"]),
                target_language=str(data["target_language"]),
                usage_note=str(data["usage_note"]),
                timestamp=int(data["timestamp"]),
                examples=tuple(ExampleSentence.from_dict(ex) for ex in data.get("examples") or []),
                phonetic=data.get("phonetic") or "",
                image_url=data.get("image_url"),
                pronunciation_audio=data.get("pronunciation_audio"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid dictionary entry: {e}") from e


@dataclass(frozen=True)
class ChatMessage:
    """A tutor chat turn. Kept in memory only."""
    id: str
    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True)
class DefinitionResult:
    """Structured definition returned by the provider, before an id is assigned."""
    term: str
    native_language: str
    target_language: str
    definition: str
    usage_note: str
    phonetic: str = ""
    examples: tuple[ExampleSentence, ...] = field(default_factory=tuple)
