"""
Tag Snipe - Find comment tags in source code.

Scans source files for labelled comments (TODO, FIXME, HACK, ...) and Rust
todo!() calls, and dates each one with git blame.

Usage:
    from tag_snipe import scan, iter_source_files, default_registry

    for finding in scan(iter_source_files("src/")):
        print(finding.tag, finding.message, finding.path, finding.line)

CLI:
    tag-snipe                  # fix + improvement tags under .
    tag-snipe --all --json     # everything, as JSON
"""

from .blame import (
    BlameCache,
    BlameError,
    BlameResolver,
    NoHistory,
    NotTracked,
    RepositoryError,
)
from .extractor import TagMatch, extract
from .languages import LanguageConfigError, LanguageMap
from .lexer import C_LIKE_SYNTAX, RUST_SYNTAX, CommentSyntax, lex_comments
from .models import (
    BlameInfo,
    CommentKind,
    CommentSpan,
    Finding,
    Language,
    Position,
    Tag,
    TagLevel,
)
from .orchestrator import ScanOptions, scan, scan_file
from .registry import (
    ConfigError,
    DuplicateTagError,
    TagRegistry,
    build_registry,
    default_registry,
)
from .walker import iter_source_files

__version__ = "0.3.1"

__all__ = [
    "scan",
    "scan_file",
    "ScanOptions",
    "iter_source_files",
    "TagRegistry",
    "default_registry",
    "build_registry",
    "ConfigError",
    "DuplicateTagError",
    "LanguageConfigError",
    "LanguageMap",
    "lex_comments",
    "CommentSyntax",
    "C_LIKE_SYNTAX",
    "RUST_SYNTAX",
    "extract",
    "TagMatch",
    "BlameResolver",
    "BlameCache",
    "BlameError",
    "NotTracked",
    "NoHistory",
    "RepositoryError",
    "BlameInfo",
    "CommentKind",
    "CommentSpan",
    "Finding",
    "Language",
    "Position",
    "Tag",
    "TagLevel",
]
