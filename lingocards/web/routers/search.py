from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from lingocards.service.gemini_service import DefinitionError
from lingocards.service.notebook_service import NotebookService
from lingocards.web.dependencies import SEARCH_FAILED_MESSAGE, get_notebook_service
from lingocards.web.schemas import SearchRequest

router = APIRouter()


@router.post("/search")
async def search(body: SearchRequest, notebook: NotebookService = Depends(get_notebook_service)):
    """Look up a term; definition and image are fetched together."""
    try:
        entry = await notebook.search(body.term, body.native, body.target)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DefinitionError:
        raise HTTPException(status_code=502, detail=SEARCH_FAILED_MESSAGE)
    return {"entry": entry.to_dict(), "saved": notebook.is_saved(entry.id)}


@router.get("/result")
def active_result(notebook: NotebookService = Depends(get_notebook_service)):
    entry = notebook.get_active()
    if entry is None:
        raise HTTPException(status_code=404, detail="Ready to learn something new? Search for a word first.")
    return {"entry": entry.to_dict(), "saved": notebook.is_saved(entry.id)}
