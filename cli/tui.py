"""Rich console host (scriptable) for the blame plugin.

Stands in for an editor: it tracks a current file, a cursor line and a mode,
records annotations per line and prints them with Rich styles. Sessions are
driven by scripted commands so they can be unit tested without a terminal:
- "goto <line>"        move the cursor without firing the moved event
- "move <line>"        move the cursor and fire the cursor-moved event
- "mode <mode>"        set the editor mode (e.g. "n", "i")
- "hold"               fire the cursor-idle event
- "toggle"             toggle blame
- "blame"              force a lookup for the current line
- "cache"              show the cache popup
- "key <lhs>"          run the action bound to a keymap
- "clear-cache"        drop every cached entry
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from core.plugin import BlamePlugin
from projections.annotation import PopupGeometry
from schemas.blame import AnnotationChunk
from schemas.config import HighlightConfig


def rich_style(fg: str, style: str) -> str:
    """Translate a highlight group into a Rich style string."""
    if style and style != "none":
        return f"{style} {fg}"
    return fg


def render_chunks(chunks: Sequence[AnnotationChunk], highlights: HighlightConfig | None = None) -> Text:
    """Render annotation chunks as styled Rich text."""
    styles = {g.name: rich_style(g.fg, g.style) for g in (highlights or HighlightConfig()).groups()}
    text = Text()
    for chunk in chunks:
        text.append(chunk.text, style=styles.get(chunk.highlight, ""))
    return text


@dataclass
class ConsoleHost:
    """``EditorHost`` implementation backed by a Rich console."""

    file_path: str = ""
    line: int = 1
    current_mode: str = "n"
    columns: int = 120
    rows: int = 40
    console: Optional[Console] = None
    highlights: HighlightConfig = field(default_factory=HighlightConfig)
    annotations: Dict[int, List[AnnotationChunk]] = field(default_factory=dict)
    notifications: List[str] = field(default_factory=list)
    popups: List[List[str]] = field(default_factory=list)

    def current_file(self) -> str:
        return self.file_path

    def cursor_line(self) -> int:
        return self.line

    def mode(self) -> str:
        return self.current_mode

    def set_annotation(self, line: int, chunks: Sequence[AnnotationChunk], *, priority: int) -> None:
        self.annotations[line] = list(chunks)
        if self.console is not None:
            label = Text(f"{line:>5} ", style="dim")
            self.console.print(label + render_chunks(chunks, self.highlights))

    def clear_annotations(self, line: Optional[int] = None) -> None:
        if line is None:
            self.annotations.clear()
        else:
            self.annotations.pop(line, None)

    def notify(self, message: str) -> None:
        self.notifications.append(message)
        if self.console is not None:
            self.console.print(f"[cyan]{message}[/cyan]")

    def open_popup(self, lines: Sequence[str], geometry: PopupGeometry) -> None:
        self.popups.append(list(lines))
        if self.console is not None:
            self.console.print(
                Panel(
                    Text("\n".join(lines)),
                    title="Git Blame cache",
                    width=min(geometry.width + 2, self.console.width),
                )
            )

    def dimensions(self) -> tuple[int, int]:
        return self.columns, self.rows


def _parse_command(cmd: str) -> tuple[str, list[str]]:
    parts = cmd.strip().split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


def run_session(plugin: BlamePlugin, host: ConsoleHost, commands: Iterable[str]) -> list[str]:
    """Replay scripted commands against ``plugin``.

    Returns:
        Commands that were not understood, in order.
    """
    unknown: list[str] = []
    for raw in commands:
        op, args = _parse_command(raw)
        if not op or op.startswith("#"):
            continue

        if op in {"goto", "move"}:
            if not args or not args[0].isdigit() or int(args[0]) < 1:
                unknown.append(raw)
                continue
            host.line = int(args[0])
            if op == "move":
                plugin.on_cursor_moved()
            continue

        if op == "mode":
            host.current_mode = args[0] if args else "n"
            continue

        if op == "hold":
            plugin.on_cursor_hold()
            continue

        if op == "toggle":
            plugin.toggle()
            continue

        if op == "blame":
            plugin.blame_current_line()
            continue

        if op == "cache":
            plugin.show_cache()
            continue

        if op == "clear-cache":
            plugin.service.clear_cache()
            continue

        if op == "key":
            mapping = plugin.keymaps().get(args[0]) if args else None
            if mapping is None:
                unknown.append(raw)
                continue
            mapping.action()
            continue

        unknown.append(raw)

    return unknown
