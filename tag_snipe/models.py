"""Tag Snipe data models. Every value that flows through the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class Language(Enum):
    """Comment syntax family, selected by file extension."""

    C_LIKE = "c-like"
    RUST_MACRO = "rust-macro"
    CUSTOM = "custom"


class CommentKind(Enum):
    LINE = "line"
    BLOCK = "block"
    MACRO = "macro"


class TagLevel(Enum):
    """Urgency class of a tag. Used for filtering and colouring."""

    FIX = "fix"
    IMPROVEMENT = "improvement"
    INFORMATION = "information"
    CUSTOM = "custom"


@dataclass(frozen=True, order=True)
class Position:
    """1-based line and column."""

    line: int
    column: int


@dataclass(frozen=True)
class CommentSpan:
    """One comment (or todo!() call) as found by the lexer."""

    start: Position
    end: Position  # exclusive: first position after the span
    text: str      # raw text, delimiters included
    kind: CommentKind

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"span ends before it starts: {self.start} > {self.end}")


@dataclass(frozen=True)
class Tag:
    """A recognised tag keyword and the aliases that map to it."""

    keyword: str                # canonical, upper-case
    aliases: frozenset[str]     # lower-case, includes the keyword
    level: TagLevel = TagLevel.CUSTOM

    def __str__(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class BlameInfo:
    """Last commit that touched a line."""

    timestamp: datetime  # UTC committer time
    author: str
    commit: str


@dataclass(frozen=True)
class Finding:
    """One reported tag occurrence."""

    tag: Tag
    message: str
    path: str
    line: int
    timestamp: datetime | None = None
    emphasis: bool = False
    kind: CommentKind = CommentKind.LINE
    author: str | None = None

    def __post_init__(self) -> None:
        if "\n" in self.message or "\r" in self.message:
            raise ValueError("finding message must be a single line")

    @property
    def label(self) -> str:
        """Keyword as displayed: TODO, TODO! (emphasis or todo!() macro)."""
        if self.emphasis or self.kind is CommentKind.MACRO:
            return f"{self.tag.keyword}!"
        return self.tag.keyword

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict."""
        return {
            "tag": self.tag.keyword,
            "level": self.tag.level.value,
            "message": self.message,
            "path": self.path,
            "line": self.line,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "author": self.author,
            "emphasis": self.emphasis,
            "kind": self.kind.value,
        }
