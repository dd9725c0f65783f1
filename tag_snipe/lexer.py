"""
lexer.py — Comment lexer.

One pass over a decoded source file, yielding a CommentSpan for every line
comment, block comment and (for Rust) every `todo!(...)` call. The scan is a
small state machine:

    CODE           search forward for the next opener of any kind
    LINE_COMMENT   `//` up to the end of the physical line
    BLOCK_COMMENT  `/*` up to the first `*/` (no nesting)
    MACRO_CALL     `todo!(` up to the balancing `)`

String literals in code are not understood. The only quote handling is inside
a todo!() argument list, where a `"..."` literal is skipped so parens inside it
do not close the call. Backslashes skip the next character while looking for
the closing quote; nothing is unescaped.

Malformed input never raises: an unterminated block comment runs to the end of
the file, and an unbalanced todo!( is dropped and scanning continues after it.

Usage:
    from tag_snipe.lexer import lex_comments, C_LIKE_SYNTAX

    for span in lex_comments(text, C_LIKE_SYNTAX):
        print(span.start.line, span.text)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .models import CommentKind, CommentSpan, Language, Position

logger = logging.getLogger(__name__)

TODO_MACRO = "todo!("


# ---------------------------------------------------------------------------
# Syntax table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommentSyntax:
    """Comment delimiters recognised for one language."""

    line_markers: tuple[str, ...] = ("//",)
    block_pairs: tuple[tuple[str, str], ...] = (("/*", "*/"),)
    todo_macro: bool = False

    def __post_init__(self) -> None:
        openers = [o for o, _ in self.block_pairs] + list(self.line_markers)
        if not openers and not self.todo_macro:
            raise ValueError("comment syntax needs at least one comment opener")
        if not all(openers) or not all(c for _, c in self.block_pairs):
            raise ValueError("comment delimiters must not be empty")

    def opener_pattern(self) -> re.Pattern:
        """Regex matching any opener. Longest alternatives first."""
        openers = [o for o, _ in self.block_pairs] + list(self.line_markers)
        parts = [re.escape(o) for o in sorted(openers, key=len, reverse=True)]
        if self.todo_macro:
            parts.append(r"(?<!\w)" + re.escape(TODO_MACRO))
        return re.compile("|".join(parts))


C_LIKE_SYNTAX = CommentSyntax()
RUST_SYNTAX = CommentSyntax(todo_macro=True)

SYNTAXES: dict[Language, CommentSyntax] = {
    Language.C_LIKE: C_LIKE_SYNTAX,
    Language.RUST_MACRO: RUST_SYNTAX,
}


class _State(Enum):
    CODE = "code"
    LINE_COMMENT = "line"
    BLOCK_COMMENT = "block"
    MACRO_CALL = "macro"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def decode_source(content: bytes) -> str:
    """
    Decode file content as UTF-8 (a leading BOM is dropped).

    Raises:
        UnicodeDecodeError: content is not UTF-8 text.
    """
    return content.decode("utf-8-sig")


def _advance(pos: Position, chunk: str) -> Position:
    """Position just past *chunk* when it starts at *pos*."""
    newlines = chunk.count("\n")
    if not newlines:
        return Position(pos.line, pos.column + len(chunk))
    return Position(pos.line + newlines, len(chunk) - chunk.rfind("\n"))


def _skip_string(text: str, i: int) -> int:
    """Index just past the closing quote of a literal whose body starts at *i*."""
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            return i + 1
        i += 1
    return n


def _macro_end(text: str, i: int) -> int | None:
    """
    Index just past the `)` balancing an already-consumed `(`.

    Returns None if the argument list never closes.
    """
    depth = 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == '"':
            i = _skip_string(text, i + 1)
            continue
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def lex_comments(text: str, syntax: CommentSyntax) -> Iterator[CommentSpan]:
    """
    Yield every comment span in *text*, in source order.

    The iterator is lazy and single-pass. Several comments on one physical
    line are all reported.
    """
    openers = syntax.opener_pattern()
    closers = dict(syntax.block_pairs)

    i = 0
    n = len(text)
    pos = Position(1, 1)
    state = _State.CODE
    token = ""

    while True:
        if state is _State.CODE:
            match = openers.search(text, i)
            if match is None:
                return
            pos = _advance(pos, text[i:match.start()])
            i = match.start()
            token = match.group()
            if token in closers:
                state = _State.BLOCK_COMMENT
            elif token == TODO_MACRO:
                state = _State.MACRO_CALL
            else:
                state = _State.LINE_COMMENT
            continue

        if state is _State.LINE_COMMENT:
            end = text.find("\n", i)
            if end == -1:
                end = n
            raw = text[i:end]
            if raw.endswith("\r"):
                raw = raw[:-1]
            kind = CommentKind.LINE

        elif state is _State.BLOCK_COMMENT:
            closer = closers[token]
            close_at = text.find(closer, i + len(token))
            if close_at == -1:
                logger.debug(f"unterminated block comment at line {pos.line}, taking rest of file")
                end = n
            else:
                end = close_at + len(closer)
            raw = text[i:end]
            kind = CommentKind.BLOCK

        else:
            end = _macro_end(text, i + len(TODO_MACRO))
            if end is None:
                logger.debug(f"unbalanced todo!( at line {pos.line}, skipping")
                skipped = TODO_MACRO[:-1]
                pos = _advance(pos, skipped)
                i += len(skipped)
                state = _State.CODE
                continue
            raw = text[i:end]
            kind = CommentKind.MACRO

        end_pos = _advance(pos, raw)
        yield CommentSpan(start=pos, end=end_pos, text=raw, kind=kind)
        pos = end_pos
        i += len(raw)
        state = _State.CODE
