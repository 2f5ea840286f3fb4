from __future__ import annotations

import base64
import json
import logging
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from lingocards.config import settings
from lingocards.models.entry import ChatMessage, DefinitionResult, DictionaryEntry, ExampleSentence
from lingocards.service.highlight import HIGHLIGHT_CLOSE, HIGHLIGHT_OPEN, strip_markup

logger = logging.getLogger(__name__)

STORY_FALLBACK = "Could not generate story."
CHAT_EMPTY_FALLBACK = "I'm not sure how to answer that, but I'm listening! 🎧"
CHAT_ERROR_FALLBACK = "Oops! My brain froze for a sec. 🧊 Try asking again!"


class DefinitionError(Exception):
    pass


_DEFINITION_PROMPT = """
Define the term "{term}" (which is in {target}).
The user is a native {native} speaker.

1. Provide a natural definition in {native}. Do NOT use markdown syntax like bold (**) or italics (*) in the definition.
2. Provide phonetic transcription (IPA) for the term.
3. Provide 3 example sentences in {target} with {native} translations.

CRITICAL RULE FOR EXAMPLES:
- Every single example sentence MUST contain the exact term "{term}" (or a grammatical variation of it like plural/conjugated form).
- You MUST wrap the term (and only the term) in the example sentence with {open} tags, exactly once per sentence.
  Example: If term is "run", output: "I love to {open}run{close} in the morning."

4. Write a "usage note" in {native}. It must be fun, lively, and casual (slang is okay if appropriate). Explain cultural nuance, tone, or common pitfalls. Do NOT sound like a textbook. Be brief and punchy. No greetings. Do NOT use markdown syntax.
"""

_IMAGE_PROMPT = """Design a cool, trendy, and vibrant 3D illustration for the concept of "{term}".

Target Audience: Junior high school students.
Style: High-quality 3D render, similar to modern animation or trendy digital art. Use bold, saturated colors and dynamic composition.

CRITICAL: The image must be a DIRECT visual metaphor that clearly explains the meaning of "{term}". It should not just be abstract art; it must be educational but look like cool sticker art or a game asset.

Background: Isolate on a clean, soft-colored background."""

_STORY_PROMPT = """
Write a short, funny, and coherent story in {target} using the following words: [{words}].
After every sentence, provide the translation in {native} in parentheses.
Keep it simple and helpful for memorization.
Do not use markdown formatting.
"""

_TUTOR_INSTRUCTION = """
You are a fun, friendly, and energetic language tutor named "Pop".
Target Audience: Junior high school students.
Tone: Cool, encouraging, slightly slangy but educational. Use emojis!

Current Topic: The user is asking about the word "{term}" (Target Language: {target}).
Definition: {definition}
Usage Note: {usage_note}

Your Goal: Answer the user's question about grammar, usage, or nuance.
Language: Explain in {native} unless asked otherwise.
Keep it short and punchy.

Format:
- Use Markdown to make it easy to read.
- Use **bold** for key terms or emphasis.
- Use lists (- item) if explaining multiple points.
"""

_DEFINITION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "definition": types.Schema(type=types.Type.STRING),
        "phonetic": types.Schema(type=types.Type.STRING),
        "examples": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "original": types.Schema(type=types.Type.STRING),
                    "translation": types.Schema(type=types.Type.STRING),
                },
                required=["original", "translation"],
            ),
        ),
        "usage_note": types.Schema(type=types.Type.STRING),
    },
    required=["definition", "examples", "usage_note", "phonetic"],
)


def _first_inline_data(response: Any) -> Optional[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return None
    for part in candidates[0].content.parts or []:
        if getattr(part, "inline_data", None) is not None and part.inline_data.data:
            return part.inline_data
    return None


def _as_base64(data: bytes | str) -> str:
    # the SDK hands back raw bytes; older transports may already give base64 text
    if isinstance(data, str):
        return data
    return base64.b64encode(data).decode("ascii")


def parse_definition(text: str | None, term: str, native: str, target: str) -> DefinitionResult:
    """Turn the provider's JSON document into a DefinitionResult.

    Anything short of a complete document is a DefinitionError; there is
    no partial result.
    """
    if not text:
        raise DefinitionError("No definition generated")
    try:
        data = json.loads(text)
        examples = tuple(
            ExampleSentence(original=str(ex["original"]), translation=str(ex["translation"]))
            for ex in data["examples"]
        )
        return DefinitionResult(
            term=term,
            native_language=native,
            target_language=target,
            definition=str(data["definition"]),
            usage_note=str(data["usage_note"]),
            phonetic=data.get("phonetic") or "",
            examples=examples,
        )
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise DefinitionError(f"Malformed definition for {term!r}") from e


def build_chat_contents(history: Sequence[ChatMessage], message: str, limit: int) -> list[types.Content]:
    recent = list(history)[-limit:] if limit > 0 else []
    contents = [types.Content(role=m.role, parts=[types.Part(text=m.text)]) for m in recent]
    contents.append(types.Content(role="user", parts=[types.Part(text=message)]))
    return contents


class GeminiService:
    """Thin async wrapper around the Gemini API.

    Each call stands alone: the definition call raises on failure, the
    others log and return None or a fallback string.
    """

    def __init__(self, client: Any = None, api_key: str | None = None):
        self._client = client
        self._api_key = api_key or settings.GEMINI_API_KEY

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def _generate(self, **kwargs: Any) -> Any:
        return await self.client.aio.models.generate_content(**kwargs)

    async def generate_definition(self, term: str, native: str, target: str) -> DefinitionResult:
        prompt = _DEFINITION_PROMPT.format(
            term=term, native=native, target=target, open=HIGHLIGHT_OPEN, close=HIGHLIGHT_CLOSE
        )
        try:
            response = await self._generate(
                model=settings.TEXT_MODEL,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=_DEFINITION_SCHEMA,
                ),
            )
        except Exception as e:
            raise DefinitionError(f"Definition request failed for {term!r}") from e
        return parse_definition(response.text, term, native, target)

    async def generate_image(self, term: str) -> Optional[str]:
        try:
            response = await self._generate(
                model=settings.IMAGE_MODEL,
                contents=_IMAGE_PROMPT.format(term=term),
            )
            inline = _first_inline_data(response)
        except Exception:
            logger.warning("Image generation failed for %r", term, exc_info=True)
            return None
        if inline is None:
            logger.info("No image returned for %r", term)
            return None
        mime = getattr(inline, "mime_type", None) or "image/png"
        return f"data:{mime};base64,{_as_base64(inline.data)}"

    async def generate_speech(self, text: str) -> Optional[str]:
        clean_text = strip_markup(text)
        try:
            response = await self._generate(
                model=settings.TTS_MODEL,
                contents=[types.Content(parts=[types.Part(text=clean_text)])],
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=settings.TTS_VOICE),
                        ),
                    ),
                ),
            )
            inline = _first_inline_data(response)
        except Exception:
            logger.error("Speech generation failed", exc_info=True)
            return None
        if inline is None:
            return None
        return _as_base64(inline.data)

    async def generate_story(self, terms: Sequence[str], native: str, target: str) -> str:
        prompt = _STORY_PROMPT.format(target=target, native=native, words=", ".join(terms))
        try:
            response = await self._generate(model=settings.TEXT_MODEL, contents=prompt)
        except Exception:
            logger.error("Story generation failed", exc_info=True)
            return STORY_FALLBACK
        return response.text or STORY_FALLBACK

    async def chat(self, entry: DictionaryEntry, history: Sequence[ChatMessage], message: str) -> str:
        # No server-side session: the entry context and the recent history go out every time.
        instruction = _TUTOR_INSTRUCTION.format(
            term=entry.term,
            target=entry.target_language,
            native=entry.native_language,
            definition=entry.definition,
            usage_note=entry.usage_note,
        )
        try:
            response = await self._generate(
                model=settings.TEXT_MODEL,
                contents=build_chat_contents(history, message, settings.CHAT_HISTORY_LIMIT),
                config=types.GenerateContentConfig(system_instruction=instruction),
            )
        except Exception:
            logger.error("Chat error", exc_info=True)
            return CHAT_ERROR_FALLBACK
        return response.text or CHAT_EMPTY_FALLBACK
