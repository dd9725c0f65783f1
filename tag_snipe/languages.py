"""
languages.py — Pick a comment syntax for a file from its extension.

Overrides come from the CLI as EXT=VALUE:

    rs=c-like          treat .rs as plain C-like (no todo!() detection)
    h=off              stop scanning .h files
    py=#               custom syntax, `#` line comments
    sql=--,/*,*/       custom syntax, `--` line comments and /* */ blocks
"""

from __future__ import annotations

from pathlib import Path

from .lexer import SYNTAXES, CommentSyntax
from .models import Language
from .registry import ConfigError

# Extension → language
DEFAULT_EXTENSIONS: dict[str, Language] = {
    ".rs": Language.RUST_MACRO,
    ".c": Language.C_LIKE,
    ".h": Language.C_LIKE,
    ".cc": Language.C_LIKE,
    ".cpp": Language.C_LIKE,
    ".cxx": Language.C_LIKE,
    ".hh": Language.C_LIKE,
    ".hpp": Language.C_LIKE,
    ".java": Language.C_LIKE,
    ".cs": Language.C_LIKE,
    ".js": Language.C_LIKE,
    ".jsx": Language.C_LIKE,
    ".ts": Language.C_LIKE,
    ".tsx": Language.C_LIKE,
    ".go": Language.C_LIKE,
    ".swift": Language.C_LIKE,
    ".kt": Language.C_LIKE,
    ".scala": Language.C_LIKE,
}

_DISABLED = "off"


class LanguageConfigError(ConfigError):
    """A language override could not be parsed."""


def _normalise_ext(ext: str) -> str:
    ext = ext.strip().lower()
    if not ext:
        raise LanguageConfigError("empty extension in language override")
    return ext if ext.startswith(".") else f".{ext}"


def parse_override(spec: str) -> tuple[str, tuple[Language, CommentSyntax] | None]:
    """
    Parse one EXT=VALUE override.

    Returns:
        (extension, (language, syntax)), or (extension, None) for `off`.

    Raises:
        LanguageConfigError: malformed spec.
    """
    ext, sep, value = spec.partition("=")
    if not sep or not value.strip():
        raise LanguageConfigError(f"expected EXT=SYNTAX, got {spec!r}")
    ext = _normalise_ext(ext)
    value = value.strip()

    if value == _DISABLED:
        return ext, None
    for language in (Language.C_LIKE, Language.RUST_MACRO):
        if value == language.value:
            return ext, (language, SYNTAXES[language])

    parts = [p.strip() for p in value.split(",")]
    if len(parts) not in (1, 3) or not all(parts):
        raise LanguageConfigError(
            f"custom syntax must be LINE or LINE,OPEN,CLOSE, got {value!r}"
        )
    blocks = ((parts[1], parts[2]),) if len(parts) == 3 else ()
    return ext, (Language.CUSTOM, CommentSyntax(line_markers=(parts[0],), block_pairs=blocks))


class LanguageMap:
    """Extension lookup with optional overrides layered over the defaults."""

    def __init__(self, overrides: list[str] | None = None):
        self._table: dict[str, tuple[Language, CommentSyntax] | None] = {
            ext: (language, SYNTAXES[language]) for ext, language in DEFAULT_EXTENSIONS.items()
        }
        for spec in overrides or []:
            ext, entry = parse_override(spec)
            self._table[ext] = entry

    @property
    def extensions(self) -> set[str]:
        """Extensions that will be scanned."""
        return {ext for ext, entry in self._table.items() if entry is not None}

    def detect(self, path: str | Path) -> tuple[Language, CommentSyntax] | None:
        """Language and syntax for *path*, or None if the extension is not scanned."""
        return self._table.get(Path(path).suffix.lower())
