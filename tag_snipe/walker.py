"""
walker.py — Source file discovery.

Walks a root path in sorted order and yields (path, content) pairs for the
scan orchestrator. Skips vendored/build directories, oversized and binary
files, and (optionally) anything git ignores.

No external dependencies. Pure stdlib + the git binary when present.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Directory names to skip entirely during traversal
SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".idea",
        ".vscode",
        ".next",
        ".nuxt",
        ".svelte-kit",
    }
)

# Maximum file size to read (1 MB)
MAX_FILE_SIZE_BYTES: int = 1 * 1024 * 1024

# Bytes inspected by the binary-file heuristic
BINARY_SNIFF_BYTES: int = 8192


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_binary(chunk: bytes) -> bool:
    """Null byte in the first few KB means binary."""
    return b"\x00" in chunk[:BINARY_SNIFF_BYTES]


def _display_path(path: Path) -> str:
    """Path relative to the working directory when it is below it."""
    try:
        return str(path.resolve().relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)


def _git_ignored(root: Path, paths: list[Path]) -> set[Path]:
    """
    Subset of *paths* that git ignores.

    Uses `git check-ignore --stdin`. Returns an empty set when git is missing
    or *root* is not in a work tree (nothing is filtered).
    """
    if not paths:
        return set()
    cwd = root if root.is_dir() else root.parent
    try:
        result = subprocess.run(
            ["git", "-C", str(cwd), "check-ignore", "--stdin", "-z"],
            input=b"".join(os.fsencode(os.path.relpath(p, cwd)) + b"\0" for p in paths),
            capture_output=True,
            timeout=60,
        )
    except (OSError, ValueError, subprocess.TimeoutExpired) as e:
        logger.warning(f"git check-ignore failed: {e}")
        return set()
    # 0: some ignored, 1: none ignored, 128: not a repository
    if result.returncode not in (0, 1):
        return set()
    ignored = set()
    for entry in result.stdout.split(b"\0"):
        if entry:
            ignored.add(cwd / os.fsdecode(entry))
    return ignored


def _candidate_files(root: Path, extensions: set[str] | None) -> list[Path]:
    """Every file below *root* with a wanted extension, in sorted walk order."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        # Prune unwanted directories in-place so os.walk won't descend.
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            file_path = Path(dirpath) / filename
            if extensions is not None and file_path.suffix.lower() not in extensions:
                continue
            found.append(file_path)
    return found


def _read(path: Path) -> bytes | None:
    try:
        if path.stat().st_size > MAX_FILE_SIZE_BYTES:
            logger.info(f"skipping {path}: larger than {MAX_FILE_SIZE_BYTES} bytes")
            return None
        content = path.read_bytes()
    except OSError as e:
        logger.warning(f"skipping {path}: {e}")
        return None
    if _is_binary(content):
        logger.debug(f"skipping {path}: binary")
        return None
    return content


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def iter_source_files(
    root: str | Path,
    git_ignore: bool = True,
    extensions: Iterable[str] | None = None,
) -> Iterator[tuple[str, bytes]]:
    """
    Yield (path, content) for every scannable file under *root*.

    Args:
        root:       Directory (walked recursively) or a single file.
        git_ignore: Drop paths that git ignores.
        extensions: Only yield files with these suffixes (e.g. {'.rs', '.c'}).

    Raises:
        FileNotFoundError: *root* does not exist.
    """
    root_path = Path(root).absolute()
    if not root_path.exists():
        raise FileNotFoundError(f"no such file or directory: {root}")

    wanted = {e.lower() for e in extensions} if extensions is not None else None

    if root_path.is_file():
        files = [root_path]
    else:
        files = _candidate_files(root_path, wanted)

    ignored = _git_ignored(root_path, files) if git_ignore else set()

    for file_path in files:
        if file_path in ignored:
            logger.debug(f"skipping {file_path}: git-ignored")
            continue
        content = _read(file_path)
        if content is not None:
            yield _display_path(file_path), content
