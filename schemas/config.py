"""Configuration schemas and JSON helpers."""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T", bound="_JsonMixin")


class _JsonMixin(BaseModel):
    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls: type[T], data: str) -> T:
        return cls.model_validate_json(data)


class HighlightGroup(_JsonMixin):
    name: str
    fg: str
    # "bold", "italic" or "none"
    style: str = "none"


class HighlightConfig(_JsonMixin):
    author: HighlightGroup = HighlightGroup(name="GitBlameAuthor", fg="#A9B1D6", style="bold")
    date: HighlightGroup = HighlightGroup(name="GitBlameDate", fg="#7AA2F7", style="italic")
    message: HighlightGroup = HighlightGroup(name="GitBlameMsg", fg="#C0CAF5", style="none")

    def groups(self) -> list[HighlightGroup]:
        return [self.author, self.date, self.message]


class KeymapConfig(_JsonMixin):
    toggle: str = "<Leader>gBt"
    blame: str = "<Leader>gBc"
    show_cache: str = "<Leader>gBC"


class BlameConfig(_JsonMixin):
    git_binary: str = "git"
    # None keeps git calls blocking with no bound
    timeout_s: float | None = Field(default=None, gt=0)
    # None keeps the cache unbounded and insertion-only
    max_entries: int | None = Field(default=None, ge=1)
    workers: int = Field(default=2, ge=1)
    skip_dirs: list[str] = Field(default_factory=lambda: ["bin"])
    priority: int = 100
    highlights: HighlightConfig = Field(default_factory=HighlightConfig)
    keymaps: KeymapConfig = Field(default_factory=KeymapConfig)
