"""Attribution parser.

Turns the single line printed by ``git show <hash> --format="%an | %ar | %s"``
into an ``Attribution`` and extracts the commit hash from ``git blame -c``
output.
"""

from __future__ import annotations

from schemas.blame import Attribution, SENTINEL

SHOW_FORMAT = "%an | %ar | %s"
DELIMITER = " | "
FAILURE_MARKER = "fatal"
UNKNOWN = "?"


class AttributionParseError(ValueError):
    """Raised when show output does not carry two delimiters."""


def parse_show_line(text: str) -> Attribution:
    """Split ``text`` into author, relative date and message.

    Only the first two delimiters split; the message keeps any further
    ``" | "`` content.

    Raises:
        AttributionParseError: fewer than two delimiters were found.
    """
    parts = text.split(DELIMITER, 2)
    if len(parts) < 3:
        raise AttributionParseError(f"expected 2 delimiters in {text!r}")
    author, date, message = parts
    return Attribution(author=author, relative_date=date, message=message)


def parse_or_fallback(text: str) -> Attribution:
    """Parse ``text``; on failure keep the raw text as the message."""
    try:
        return parse_show_line(text)
    except AttributionParseError:
        return Attribution(author=UNKNOWN, relative_date=UNKNOWN, message=text)


def is_git_failure(text: str) -> bool:
    return FAILURE_MARKER in text


def parse_show_output(text: str) -> Attribution:
    """Map raw show output to an Attribution, sentinel included.

    Empty output and captured git errors both yield the sentinel.
    """
    if not text or is_git_failure(text):
        return SENTINEL
    return parse_or_fallback(text)


def extract_commit_hash(blame_line: str) -> str:
    """Return the first whitespace-delimited token of a blame line.

    A leading ``^`` boundary marker is dropped so the hash can be passed to
    ``git show`` as-is.
    """
    tokens = blame_line.split()
    if not tokens:
        return ""
    return tokens[0].lstrip("^")


def is_uncommitted(commit_hash: str) -> bool:
    # git pads the placeholder to the abbreviation length; "00000000" with -c
    return bool(commit_hash) and set(commit_hash) == {"0"}


__all__ = [
    "AttributionParseError",
    "DELIMITER",
    "SHOW_FORMAT",
    "extract_commit_hash",
    "is_git_failure",
    "is_uncommitted",
    "parse_or_fallback",
    "parse_show_line",
    "parse_show_output",
]
