"""Blame plugin controller.

Host-agnostic wiring between an editor-like host and the lookup service. The
host calls plain methods: ``on_cursor_hold``/``on_cursor_moved`` for its idle
and move events, and the three keymapped actions (toggle, blame current
line, show cache). The controller never depends on a host event loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Sequence

import structlog

from core.lookup import BlameService
from projections.annotation import PopupGeometry, cache_popup_lines, popup_geometry, to_chunks
from schemas.blame import AnnotationChunk
from schemas.config import BlameConfig
from storage.blame_cache import BlameCache
from tools.git import GitInvoker, GitRunner

logger = structlog.get_logger(__name__)

ENABLED_MESSAGE = "Git Blame enabled"
DISABLED_MESSAGE = "Git Blame disabled"


class EditorHost(Protocol):
    """What the controller consumes from its host."""

    def current_file(self) -> str:
        """Absolute path of the current buffer, ``""`` when unnamed."""

    def cursor_line(self) -> int:
        """1-based cursor line."""

    def mode(self) -> str:
        """Editor mode string; any mode containing ``i`` is insert-like."""

    def set_annotation(self, line: int, chunks: Sequence[AnnotationChunk], *, priority: int) -> None:
        ...

    def clear_annotations(self, line: Optional[int] = None) -> None:
        """Clear one line's annotation, or all of them when ``line`` is None."""

    def notify(self, message: str) -> None:
        ...

    def open_popup(self, lines: Sequence[str], geometry: PopupGeometry) -> None:
        ...

    def dimensions(self) -> tuple[int, int]:
        """Return ``(columns, lines)`` of the host screen."""


@dataclass(frozen=True)
class Keymap:
    lhs: str
    description: str
    action: Callable[[], None]


class BlamePlugin:
    """Inline blame controller.

    Args:
        host: Editor host implementation.
        service: Lookup service owning the cache.
        config: Resolved configuration.
    """

    def __init__(self, host: EditorHost, service: BlameService, config: BlameConfig | None = None) -> None:
        self.host = host
        self.service = service
        self.config = config or BlameConfig()
        self.enabled = True

    def toggle(self) -> bool:
        """Flip enabled state and notify the host. Returns the new state."""
        self.enabled = not self.enabled
        if not self.enabled:
            self.host.clear_annotations()
            self.service.cancel_pending()
            self.host.notify(DISABLED_MESSAGE)
        else:
            self.host.notify(ENABLED_MESSAGE)
        logger.info("blame_toggled", enabled=self.enabled)
        return self.enabled

    def _should_skip(self, file_path: str) -> bool:
        if not file_path:
            return True
        parent = Path(file_path).parent.name
        return not parent or parent in self.config.skip_dirs

    def blame_current_line(self) -> bool:
        """Look up and render the current line. Returns True if rendered."""
        if not self.enabled:
            return False
        file_path = self.host.current_file()
        if self._should_skip(file_path):
            return False
        if "i" in self.host.mode():
            return False

        line = self.host.cursor_line()
        self.host.clear_annotations(line)
        result = self.service.lookup(file_path, line)
        if result is None:
            return False
        chunks = to_chunks(result, self.config.highlights)
        self.host.set_annotation(line, chunks, priority=self.config.priority)
        return True

    def on_cursor_hold(self) -> None:
        if "i" in self.host.mode():
            return
        self.blame_current_line()

    def on_cursor_moved(self) -> None:
        self.host.clear_annotations()
        self.service.cancel_pending()

    def show_cache(self) -> list[str]:
        """Open the cache popup and return the lines shown."""
        lines = cache_popup_lines(self.service.dump_cache())
        columns, rows = self.host.dimensions()
        self.host.open_popup(lines, popup_geometry(columns, rows, len(lines)))
        return lines

    def keymaps(self) -> Dict[str, Keymap]:
        km = self.config.keymaps
        maps = [
            Keymap(km.toggle, "Toggle Git Blame", self.toggle),
            Keymap(km.blame, "Git Blame", self.blame_current_line),
            Keymap(km.show_cache, "Show Git Blame cache", self.show_cache),
        ]
        return {m.lhs: m for m in maps}


def build_plugin(host: EditorHost, config: BlameConfig, *, git: GitInvoker | None = None) -> BlamePlugin:
    """Create a plugin with a service and cache configured from ``config``."""
    invoker = git if git is not None else GitRunner(config.git_binary, timeout_s=config.timeout_s)
    service = BlameService(
        git=invoker,
        cache=BlameCache(max_entries=config.max_entries),
        workers=config.workers,
    )
    return BlamePlugin(host, service, config)
