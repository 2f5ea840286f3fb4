from __future__ import annotations
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from lingocards.service.highlight import split_highlights
from lingocards.service.notebook_service import NotebookService
from lingocards.service.playback_service import PlaybackController
from lingocards.service.study_service import FlashcardDeck, TutorSession
from lingocards.web.dependencies import get_notebook_service, get_playback, get_tutor_sessions
from lingocards.web.schemas import ChatRequest, PronounceRequest

router = APIRouter()


@router.post("/audio/pronounce")
async def pronounce(
    body: PronounceRequest,
    notebook: NotebookService = Depends(get_notebook_service),
    playback: PlaybackController = Depends(get_playback),
):
    """Play a term or example sentence, reusing cached audio when there is some.

    Newly synthesized audio is written back to the entry.
    """
    entry = notebook.get_entry(body.entry_id) if body.entry_id else None
    cached = None
    if entry is not None:
        if body.example_index is None:
            cached = entry.pronunciation_audio
        elif 0 <= body.example_index < len(entry.examples):
            cached = entry.examples[body.example_index].audio
        else:
            raise HTTPException(status_code=400, detail="Example index out of range.")

    audio = await playback.play_pronunciation(body.text, cached)

    if entry is not None and audio and audio != cached:
        if body.example_index is None:
            await run_in_threadpool(notebook.cache_pronunciation, entry.id, audio)
        else:
            await run_in_threadpool(notebook.cache_example_audio, entry.id, body.example_index, audio)
    return {"audio": audio}


@router.get("/study/card")
def study_card(index: int = 0, side: str = "front", notebook: NotebookService = Depends(get_notebook_service)):
    deck = FlashcardDeck(notebook.get_collection(), index=index)
    if not len(deck):
        raise HTTPException(status_code=404, detail="No cards to study! Save some words to your notebook first.")
    card = deck.current
    if side == "back":
        deck.flip()
    # the flashcard shows the first example only
    first = card.examples[0] if card.examples else None
    return {
        "index": deck.index,
        "total": len(deck),
        "side": deck.side,
        "entry": card.to_dict(),
        "example": {
            "segments": [{"text": s.text, "highlighted": s.highlighted} for s in split_highlights(first.original)],
            "translation": first.translation,
        } if first else None,
        "next_index": (deck.index + 1) % len(deck),
        "prev_index": (deck.index - 1) % len(deck),
    }


@router.post("/chat/{entry_id}")
async def chat(
    entry_id: str,
    body: ChatRequest,
    notebook: NotebookService = Depends(get_notebook_service),
    sessions: Dict[str, TutorSession] = Depends(get_tutor_sessions),
):
    entry = notebook.get_entry(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Unknown entry.")
    session = sessions.get(entry_id)
    if session is None:
        session = sessions[entry_id] = TutorSession(entry, notebook.gemini)
    # edits made since the session started must reach the tutor
    session.entry = entry
    reply = await session.send(body.message)
    if reply is None:
        raise HTTPException(status_code=400, detail="Message cannot be empty.")
    return {"reply": reply.text, "messages": [{"id": m.id, "role": m.role, "text": m.text} for m in session.messages]}


@router.get("/chat/{entry_id}")
def chat_history(entry_id: str, sessions: Dict[str, TutorSession] = Depends(get_tutor_sessions)):
    session = sessions.get(entry_id)
    messages = session.messages if session else []
    return {"messages": [{"id": m.id, "role": m.role, "text": m.text} for m in messages]}
