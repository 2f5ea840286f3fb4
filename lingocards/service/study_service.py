from __future__ import annotations

import uuid
from typing import List, Literal, Sequence

from lingocards.models.entry import ChatMessage, DictionaryEntry
from lingocards.service.gemini_service import GeminiService

Side = Literal["front", "back"]


class FlashcardDeck:
    """Walks a fixed snapshot of entries, one card at a time.

    Moving to another card always shows its front first.
    """

    def __init__(self, entries: Sequence[DictionaryEntry], index: int = 0):
        self.entries = list(entries)
        self.index = index % len(self.entries) if self.entries else 0
        self.side: Side = "front"

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def current(self) -> DictionaryEntry:
        if not self.entries:
            raise ValueError("No cards to study. Save some words to your notebook first.")
        return self.entries[self.index]

    def flip(self) -> Side:
        self.side = "back" if self.side == "front" else "front"
        return self.side

    def next(self) -> DictionaryEntry:
        self.side = "front"
        self.index = (self.index + 1) % len(self.entries) if self.entries else 0
        return self.current

    def prev(self) -> DictionaryEntry:
        self.side = "front"
        self.index = (self.index - 1) % len(self.entries) if self.entries else 0
        return self.current


class TutorSession:
    """In-memory chat with the tutor about one entry."""

    def __init__(self, entry: DictionaryEntry, gemini: GeminiService):
        self.entry = entry
        self.gemini = gemini
        self.messages: List[ChatMessage] = []

    async def send(self, text: str) -> ChatMessage | None:
        text = text.strip()
        if not text:
            return None
        history = list(self.messages)
        self.messages.append(ChatMessage(id=str(uuid.uuid4()), role="user", text=text))
        answer = await self.gemini.chat(self.entry, history, text)
        reply = ChatMessage(id=str(uuid.uuid4()), role="model", text=answer)
        self.messages.append(reply)
        return reply
