from __future__ import annotations
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from lingocards.service.notebook_service import NotebookService
from lingocards.service.study_service import TutorSession
from lingocards.web.dependencies import get_notebook_service, get_tutor_sessions
from lingocards.web.schemas import EntryUpdate, SaveRequest, StoryRequest

router = APIRouter()


@router.get("/notebook")
def list_notebook(notebook: NotebookService = Depends(get_notebook_service)):
    return {"entries": [e.to_dict() for e in notebook.get_collection()]}


@router.post("/notebook")
def save_entry(body: SaveRequest, notebook: NotebookService = Depends(get_notebook_service)):
    """Save the active result (or any entry the service knows) by id.

    Saving twice is fine; the second call changes nothing.
    """
    entry = notebook.get_entry(body.id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Unknown entry.")
    inserted = notebook.save(entry)
    return {"saved": True, "inserted": inserted}


@router.delete("/notebook/{entry_id}")
def delete_entry(
    entry_id: str,
    notebook: NotebookService = Depends(get_notebook_service),
    sessions: Dict[str, TutorSession] = Depends(get_tutor_sessions),
):
    deleted = notebook.delete(entry_id)
    sessions.pop(entry_id, None)
    return {"deleted": deleted}


@router.patch("/notebook/{entry_id}")
def update_entry(entry_id: str, body: EntryUpdate, notebook: NotebookService = Depends(get_notebook_service)):
    changes = body.model_dump(exclude_unset=True)
    try:
        updated = notebook.update(entry_id, **changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"updated": updated is not None, "entry": updated.to_dict() if updated else None}


@router.post("/notebook/story")
async def notebook_story(body: StoryRequest, notebook: NotebookService = Depends(get_notebook_service)):
    try:
        story = await notebook.generate_story(body.native, body.target)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"story": story}
