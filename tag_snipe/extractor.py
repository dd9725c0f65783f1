"""
extractor.py — Turn a comment span into a tag match.

    // TODO: Add cool features     -> TODO, "Add cool features"
    /*! Hack: hacky */             -> HACK, "hacky"
    // FIXME! urgent               -> FIXME (emphasis), "urgent"
    todo!("fix this")              -> TODO (macro), "fix this"

Only the first physical line of a comment is used for the message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .lexer import C_LIKE_SYNTAX, CommentSyntax
from .models import CommentKind, CommentSpan, Tag
from .registry import TagRegistry

# Keyword runs up to the first whitespace or ':'
_KEYWORD = re.compile(r"([^\s:]+)(.*)")

# Words that look like `word:` but are URLs, not tags
_URL_SCHEMES = frozenset({"http", "https"})

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class TagMatch:
    """A finding before it has a path or blame info."""

    tag: Tag
    message: str
    emphasis: bool
    kind: CommentKind
    line: int


def _first_line(text: str) -> str:
    return _LINE_BREAK.split(text, 1)[0]


def _strip_delimiters(span: CommentSpan, syntax: CommentSyntax) -> str:
    """
    Comment body with its delimiters removed.

    Repeats of the opener's last character and one `!` are dropped as well,
    so doc-comment forms (`///`, `//!`, `/**`, `/*!`) read like plain ones.
    """
    text = span.text
    opener = ""
    if span.kind is CommentKind.BLOCK:
        for block_open, block_close in syntax.block_pairs:
            if text.startswith(block_open):
                opener = block_open
                if text.endswith(block_close) and len(text) >= len(block_open) + len(block_close):
                    text = text[: -len(block_close)]
                break
    else:
        for marker in sorted(syntax.line_markers, key=len, reverse=True):
            if text.startswith(marker):
                opener = marker
                break
    if not opener:
        return text
    text = text[len(opener):].lstrip(opener[-1])
    if text.startswith("!"):
        text = text[1:]
    return text


def _macro_message(span: CommentSpan) -> str:
    """todo!() argument: contents of a leading string literal, else the raw text."""
    args = span.text[span.text.index("(") + 1 : -1].strip()
    if args.startswith('"'):
        close = 1
        while close < len(args) and args[close] != '"':
            close += 2 if args[close] == "\\" else 1
        args = args[1:close]
    return _first_line(args).strip()


def extract(
    span: CommentSpan,
    registry: TagRegistry,
    syntax: CommentSyntax = C_LIKE_SYNTAX,
    require_colon: bool = False,
) -> TagMatch | None:
    """
    Match a comment span against the registry.

    Args:
        span:          Span from the lexer.
        registry:      Recognised tags.
        syntax:        Syntax the span was lexed with (for delimiter stripping).
        require_colon: Only accept `KEYWORD:` forms, not bare `KEYWORD message`.

    Returns:
        TagMatch, or None when the comment is not a tag.
    """
    if span.kind is CommentKind.MACRO:
        tag = registry.lookup("todo")
        if tag is None:
            return None
        return TagMatch(
            tag=tag,
            message=_macro_message(span),
            emphasis=False,
            kind=span.kind,
            line=span.start.line,
        )

    body = _first_line(_strip_delimiters(span, syntax)).lstrip()
    match = _KEYWORD.match(body)
    if match is None:
        return None
    word, rest = match.groups()

    emphasis = word.endswith("!")
    word = word.rstrip("!")
    if not word or word.lower() in _URL_SCHEMES:
        return None
    if require_colon and not rest.startswith(":"):
        return None

    tag = registry.lookup(word)
    if tag is None:
        return None

    return TagMatch(
        tag=tag,
        message=rest.lstrip(": \t").strip(),
        emphasis=emphasis,
        kind=span.kind,
        line=span.start.line,
    )
