from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SearchRequest(BaseModel):
    term: str
    native: Optional[str] = None
    target: Optional[str] = None


class SaveRequest(BaseModel):
    id: str


class ExampleIn(BaseModel):
    original: str
    translation: str
    audio: Optional[str] = None


class EntryUpdate(BaseModel):
    """Fields that may change after creation. Only the ones sent are applied."""
    definition: Optional[str] = None
    usage_note: Optional[str] = None
    phonetic: Optional[str] = None
    image_url: Optional[str] = None
    pronunciation_audio: Optional[str] = None
    examples: Optional[List[ExampleIn]] = None


class StoryRequest(BaseModel):
    native: Optional[str] = None
    target: Optional[str] = None


class PronounceRequest(BaseModel):
    text: str
    entry_id: Optional[str] = None
    # None means the term itself; otherwise the example sentence at this index
    example_index: Optional[int] = None


class ChatRequest(BaseModel):
    message: str
