from __future__ import annotations
import logging

from fastapi import FastAPI

from lingocards.config import settings
from lingocards.db.database import init_db
from lingocards.web.dependencies import get_notebook_service, get_playback
from lingocards.web.routers import home, notebook, search, study

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="LingoCards")

@app.on_event("startup")
def on_startup() -> None:
    init_db()
    # Load the notebook now so a corrupt store fails at startup, not on first use.
    get_notebook_service()

@app.on_event("shutdown")
def on_shutdown() -> None:
    get_playback().close()

app.include_router(home.router)
app.include_router(search.router)
app.include_router(notebook.router)
app.include_router(study.router)
