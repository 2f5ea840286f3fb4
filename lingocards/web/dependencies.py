from __future__ import annotations
from functools import lru_cache
from typing import Dict

from lingocards.data.notebook_repo import NotebookRepo
from lingocards.service.gemini_service import GeminiService
from lingocards.service.notebook_service import NotebookService
from lingocards.service.playback_service import PlaybackController
from lingocards.service.study_service import TutorSession

SEARCH_FAILED_MESSAGE = "Oops! Something went wrong getting the definition. Try again!"

@lru_cache
def get_gemini() -> GeminiService:
    return GeminiService()

@lru_cache
def get_notebook_service() -> NotebookService:
    return NotebookService(NotebookRepo(), get_gemini())

@lru_cache
def get_playback() -> PlaybackController:
    return PlaybackController(get_gemini())

@lru_cache
def get_tutor_sessions() -> Dict[str, TutorSession]:
    """Chat sessions keyed by entry id; they live as long as the process."""
    return {}
