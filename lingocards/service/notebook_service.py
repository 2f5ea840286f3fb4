from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from dataclasses import replace
from typing import Any, List, Optional

from lingocards.config import settings
from lingocards.data.notebook_repo import NotebookRepo
from lingocards.models.entry import DefinitionResult, DictionaryEntry
from lingocards.models.language import language_name
from lingocards.service.gemini_service import DefinitionError, GeminiService

logger = logging.getLogger(__name__)


class NotebookService:
    """Owns the notebook and the active search result.

    Callers only get copies; the list itself changes through save, delete
    and update, and each change is written straight back to the repo.
    """

    def __init__(self, repo: NotebookRepo, gemini: GeminiService):
        self.repo = repo
        self.gemini = gemini
        self._lock = threading.Lock()
        self._active_lock = threading.Lock()
        self._entries: List[DictionaryEntry] = repo.load()
        self._active: Optional[DictionaryEntry] = None
        self._search_ticket = 0

    # -------------
    # Search
    # -------------
    async def search(
        self,
        term: str,
        native_code: str | None = None,
        target_code: str | None = None,
    ) -> DictionaryEntry:
        term = term.strip()
        if not term:
            raise ValueError("Search term cannot be empty.")
        native = language_name(native_code or settings.DEFAULT_NATIVE, "English")
        target = language_name(target_code or settings.DEFAULT_TARGET, "Spanish")

        with self._active_lock:
            self._search_ticket += 1
            ticket = self._search_ticket
            self._active = None

        definition, image = await asyncio.gather(
            self.gemini.generate_definition(term, native, target),
            self.gemini.generate_image(term),
            return_exceptions=True,
        )
        # The definition is mandatory: its error wins even if the image failed too.
        if isinstance(definition, BaseException):
            logger.error("Search failed for %r", term, exc_info=definition)
            if isinstance(definition, DefinitionError):
                raise definition
            raise DefinitionError(f"Search failed for {term!r}") from definition
        if isinstance(image, BaseException):
            logger.warning("Image lookup raised for %r", term, exc_info=image)
            image = None

        entry = self._compose(definition, image)
        with self._active_lock:
            if ticket == self._search_ticket:
                self._active = entry
            else:
                logger.info("Discarding stale search result for %r", term)
        return entry

    @staticmethod
    def _compose(definition: DefinitionResult, image_url: Optional[str]) -> DictionaryEntry:
        return DictionaryEntry(
            id=str(uuid.uuid4()),
            term=definition.term,
            definition=definition.definition,
            native_language=definition.native_language,
            target_language=definition.target_language,
            usage_note=definition.usage_note,
            phonetic=definition.phonetic,
            examples=definition.examples,
            image_url=image_url,
            timestamp=int(time.time() * 1000),
        )

    def get_active(self) -> Optional[DictionaryEntry]:
        return self._active

    # -------------------------
    # Collection
    # -------------------------
    # _entries is replaced on every change and never mutated in place, so
    # readers take no lock; writers hold _lock across the persist.
    def get_collection(self) -> List[DictionaryEntry]:
        return list(self._entries)

    def get_entry(self, entry_id: str) -> Optional[DictionaryEntry]:
        for e in self._entries:
            if e.id == entry_id:
                return e
        active = self._active
        if active and active.id == entry_id:
            return active
        return None

    def is_saved(self, entry_id: str) -> bool:
        return any(e.id == entry_id for e in self._entries)

    def save(self, entry: DictionaryEntry) -> bool:
        """Insert at the front unless already saved. Returns True if inserted."""
        with self._lock:
            if any(e.id == entry.id for e in self._entries):
                return False
            entries = [entry, *self._entries]
            self.repo.save(entries)
            self._entries = entries
        logger.info("Saved %r to notebook", entry.term)
        return True

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            kept = [e for e in self._entries if e.id != entry_id]
            if len(kept) == len(self._entries):
                return False
            self.repo.save(kept)
            self._entries = kept
        return True

    def update(self, entry_id: str, **changes: Any) -> Optional[DictionaryEntry]:
        """Merge `changes` into the saved copy and the active result.

        Both copies get the same merge, and neither changes unless the
        notebook was persisted. Unknown ids are ignored.
        """
        with self._lock:
            updated = None
            entries = []
            for e in self._entries:
                if e.id == entry_id:
                    e = updated = e.merged(changes)
                entries.append(e)
            active = self._active
            new_active = active.merged(changes) if active and active.id == entry_id else None

            if updated is not None:
                self.repo.save(entries)
                self._entries = entries
            if new_active is not None:
                with self._active_lock:
                    # a newer search may have replaced it meanwhile
                    if self._active is active:
                        self._active = new_active
        return updated or new_active

    def cache_pronunciation(self, entry_id: str, audio: str) -> Optional[DictionaryEntry]:
        return self.update(entry_id, pronunciation_audio=audio)

    def cache_example_audio(self, entry_id: str, index: int, audio: str) -> Optional[DictionaryEntry]:
        entry = self.get_entry(entry_id)
        if entry is None or not (0 <= index < len(entry.examples)):
            return None
        examples = list(entry.examples)
        examples[index] = replace(examples[index], audio=audio)
        return self.update(entry_id, examples=examples)

    # -------------
    # Story
    # -------------
    async def generate_story(self, native_code: str | None = None, target_code: str | None = None) -> str:
        terms = [e.term for e in self.get_collection()]
        if not terms:
            raise ValueError("Notebook is empty.")
        return await self.gemini.generate_story(
            terms,
            language_name(native_code or settings.DEFAULT_NATIVE, "English"),
            language_name(target_code or settings.DEFAULT_TARGET, "Spanish"),
        )
