"""Blame schemas and JSON helpers.

Defines the immutable value types passed between the parser, the cache, the
lookup service and the presentation layer.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound="_JsonMixin")


class _JsonMixin(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls: type[T], data: str) -> T:
        return cls.model_validate_json(data)


class BlameKey(_JsonMixin):
    """Cache key for one line of one file.

    The path is kept exactly as given; no separator or symlink normalization.
    """

    file_path: str
    line: int = Field(ge=1)

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line}"


class Attribution(_JsonMixin):
    author: str
    relative_date: str
    message: str


NOT_COMMITTED_MESSAGE = "Not Committed Yet"

# Shared by uncommitted lines and git failures alike.
SENTINEL = Attribution(author="?", relative_date="?", message=NOT_COMMITTED_MESSAGE)


class LookupOutcome(str, Enum):
    """Why a lookup ended the way it did (logging and stats only)."""

    RESOLVED = "resolved"
    CACHED = "cached"
    NO_BLAME_DATA = "no_blame_data"
    UNCOMMITTED = "uncommitted"
    MALFORMED = "malformed"
    GIT_FAILURE = "git_failure"
    SUPERSEDED = "superseded"


class AnnotationChunk(_JsonMixin):
    """One styled span of virtual text."""

    text: str
    highlight: str
