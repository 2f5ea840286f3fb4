from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Make package importable when running tests from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lingocards.data.notebook_repo import NotebookRepo  # noqa: E402
from lingocards.db.database import init_db  # noqa: E402
from lingocards.models.entry import DefinitionResult, DictionaryEntry, ExampleSentence  # noqa: E402
from lingocards.service.gemini_service import DefinitionError  # noqa: E402


def make_definition(term: str = "correr", native: str = "English", target: str = "Spanish") -> DefinitionResult:
    return DefinitionResult(
        term=term,
        native_language=native,
        target_language=target,
        definition="to run",
        usage_note="Use it for jogging, not for running a business.",
        phonetic="koˈrer",
        examples=(
            ExampleSentence(f"Me gusta <b>{term}</b> por la mañana.", "I like to run in the morning."),
            ExampleSentence("Ella <b>corre</b> rápido.", "She runs fast."),
        ),
    )


def make_entry(entry_id: str = "e1", term: str = "correr", **overrides) -> DictionaryEntry:
    fields = dict(
        id=entry_id,
        term=term,
        definition="to run",
        native_language="English",
        target_language="Spanish",
        usage_note="Casual and common.",
        timestamp=1700000000000,
        examples=(ExampleSentence(f"Voy a <b>{term}</b>.", "I'm going to run."),),
    )
    fields.update(overrides)
    return DictionaryEntry(**fields)


class FakeGemini:
    """Stands in for GeminiService; each outcome can be a value or an exception."""

    def __init__(self, definition=None, image="data:image/png;base64,aW1n", speech="AAAA"):
        self.definition = definition
        self.image = image
        self.speech = speech
        self.story = "Había una vez..."
        self.chat_reply = "Great question!"
        self.calls: list[tuple] = []

    @staticmethod
    def _resolve(outcome):
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def generate_definition(self, term, native, target):
        self.calls.append(("definition", term, native, target))
        if self.definition is None:
            return make_definition(term, native, target)
        return self._resolve(self.definition)

    async def generate_image(self, term):
        self.calls.append(("image", term))
        return self._resolve(self.image)

    async def generate_speech(self, text):
        self.calls.append(("speech", text))
        return self._resolve(self.speech)

    async def generate_story(self, terms, native, target):
        self.calls.append(("story", list(terms), native, target))
        return self.story

    async def chat(self, entry, history, message):
        self.calls.append(("chat", entry.id, list(history), message))
        return self.chat_reply


class FakeModels:
    """Mimics client.aio.models of google-genai."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(response=None, error: Exception | None = None):
    models = FakeModels(response, error)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def inline_response(data, mime_type: str = "image/png"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "lingocards.db"
    init_db(path)
    return path


@pytest.fixture
def repo(db_path: Path) -> NotebookRepo:
    return NotebookRepo(key="notebook", db_path=db_path)


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def definition_error() -> DefinitionError:
    return DefinitionError("No definition generated")
