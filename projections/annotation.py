"""Annotation projection.

Maps attributions and cache contents to host-renderable views:
- styled chunks for the end-of-line virtual text,
- ``file:line = author date message`` lines for the cache popup,
- a centred floating-window geometry for that popup.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from schemas.blame import AnnotationChunk, Attribution, BlameKey
from schemas.config import HighlightConfig

EMPTY_CACHE_LINE = "Cache empty"
POPUP_MAX_WIDTH = 80
POPUP_MAX_HEIGHT = 15


def to_chunks(attribution: Attribution, highlights: HighlightConfig | None = None) -> list[AnnotationChunk]:
    """Build the three styled chunks (author, date, message)."""
    hl = highlights or HighlightConfig()
    return [
        AnnotationChunk(text=f"{attribution.author} ", highlight=hl.author.name),
        AnnotationChunk(text=f"{attribution.relative_date} ", highlight=hl.date.name),
        AnnotationChunk(text=attribution.message, highlight=hl.message.name),
    ]


def chunks_text(chunks: Iterable[AnnotationChunk]) -> str:
    return "".join(c.text for c in chunks)


def format_cache_entry(key: BlameKey, attribution: Attribution) -> str:
    return f"{key} = {chunks_text(to_chunks(attribution))}"


def cache_popup_lines(entries: Iterable[tuple[BlameKey, Attribution]]) -> list[str]:
    """One line per cached entry, or a single placeholder when empty."""
    lines = [format_cache_entry(k, a) for k, a in entries]
    return lines or [EMPTY_CACHE_LINE]


@dataclass(frozen=True)
class PopupGeometry:
    width: int
    height: int
    row: float
    col: float
    border: str = "rounded"
    relative: str = "editor"


def popup_geometry(columns: int, lines: int, count: int) -> PopupGeometry:
    """Centre a popup of ``count`` lines inside a ``columns`` x ``lines`` editor."""
    width = min(POPUP_MAX_WIDTH, columns - 4)
    height = min(POPUP_MAX_HEIGHT, count)
    return PopupGeometry(
        width=width,
        height=height,
        row=(lines - height) / 2 - 1,
        col=(columns - width) / 2,
    )
