from __future__ import annotations

import re
from dataclasses import dataclass

HIGHLIGHT_OPEN = "<b>"
HIGHLIGHT_CLOSE = "</b>"

_TAG_RE = re.compile(r"<[^>]*>")
_HIGHLIGHT_RE = re.compile(r"(<b>.*?</b>)")


@dataclass(frozen=True)
class Segment:
    text: str
    highlighted: bool


def strip_markup(text: str) -> str:
    """Remove every tag so the text can be spoken."""
    return _TAG_RE.sub("", text)


def split_highlights(text: str) -> list[Segment]:
    """Split an example sentence into plain and highlighted runs."""
    segments = []
    for part in _HIGHLIGHT_RE.split(text):
        if not part:
            continue
        if part.startswith(HIGHLIGHT_OPEN) and part.endswith(HIGHLIGHT_CLOSE):
            segments.append(Segment(part[len(HIGHLIGHT_OPEN):-len(HIGHLIGHT_CLOSE)], True))
        else:
            segments.append(Segment(part, False))
    return segments


def count_highlights(text: str) -> int:
    return len(_HIGHLIGHT_RE.findall(text))


def has_single_highlight(text: str) -> bool:
    """True when exactly one non-empty span is marked and no marker is left unpaired."""
    spans = [s for s in split_highlights(text) if s.highlighted]
    if len(spans) != 1 or not spans[0].text.strip():
        return False
    return text.count(HIGHLIGHT_OPEN) == 1 and text.count(HIGHLIGHT_CLOSE) == 1
