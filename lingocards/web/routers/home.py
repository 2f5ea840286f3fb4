from __future__ import annotations
from fastapi import APIRouter, Depends

from lingocards.config import settings
from lingocards.models.language import POPULAR_LANGUAGES
from lingocards.service.notebook_service import NotebookService
from lingocards.web.dependencies import get_notebook_service

router = APIRouter()

@router.get("/")
def home(notebook: NotebookService = Depends(get_notebook_service)):
    return {"app": "lingocards", "saved": len(notebook.get_collection())}

@router.get("/languages")
def languages():
    return {
        "default_native": settings.DEFAULT_NATIVE,
        "default_target": settings.DEFAULT_TARGET,
        "languages": [{"code": l.code, "name": l.name, "flag": l.flag} for l in POPULAR_LANGUAGES],
    }
