"""
blame.py — Last-modified time of a line, via git blame.

Pure subprocess + stdlib, like the rest of the package. One
`git blame --porcelain` call per file covers every line that file's
findings reference; results (including failures) are cached per
(path, line) for the lifetime of the resolver.

Usage:
    from tag_snipe.blame import BlameResolver, BlameError

    with BlameResolver() as resolver:
        resolver.prefetch("src/lib.rs", [3, 17])
        try:
            when = resolver.resolve("src/lib.rs", 3)
        except BlameError:
            when = None
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Union

from .models import BlameInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: float = 60.0

# Porcelain header: "<sha> <orig line> <final line> [<lines in group>]"
# SHA-1 or SHA-256 object names
_HEADER = re.compile(r"^([0-9a-f]{40}|[0-9a-f]{64}) (\d+) (\d+)(?: \d+)?$")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class BlameError(Exception):
    """Blame data is unavailable for a line. Never fatal to a scan."""

    def __init__(self, path: str, line: int, detail: str = ""):
        self.path = path
        self.line = line
        self.detail = detail
        message = f"{path}:{line}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class NotTracked(BlameError):
    """The file is not under version control."""


class NoHistory(BlameError):
    """The file is tracked but the line has no commit (uncommitted change, empty repo)."""


class RepositoryError(BlameError):
    """git itself failed: missing binary, timeout, corrupt repository."""


class _BatchRejected(RepositoryError):
    """git refused a multi-line blame; the lines are worth retrying one by one."""


CacheEntry = Union[BlameInfo, BlameError]


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class BlameCache:
    """(path, line) -> BlameInfo or BlameError. Safe to share between threads."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, int], CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, path: str, line: int) -> CacheEntry | None:
        with self._lock:
            return self._entries.get((path, line))

    def put(self, path: str, line: int, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[(path, line)] = entry

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ---------------------------------------------------------------------------
# Porcelain parsing
# ---------------------------------------------------------------------------


def _is_uncommitted(sha: str) -> bool:
    """git reports not-yet-committed lines under the all-zero hash."""
    return not sha.strip("0")


def parse_porcelain(raw: str) -> dict[int, BlameInfo | None]:
    """
    Parse `git blame --porcelain` output.

    Returns a dict mapping final line number -> BlameInfo, or None for lines
    that are not committed yet.

    Commit metadata (author, committer-time, ...) is only printed the first
    time a commit appears, so it is collected across the whole output before
    lines are resolved.

    Example raw block:
        3f2c...e1 1 1 1
        author Ada
        committer-time 1700000000
        filename src/lib.rs
        \t// TODO: x
        3f2c...e1 3 3 1
        \t/* FIXME: y */
    """
    commits: dict[str, dict[str, str]] = {}
    final_lines: list[tuple[int, str]] = []
    current: str | None = None

    for row in raw.splitlines():
        if row.startswith("\t"):
            current = None
            continue
        header = _HEADER.match(row)
        if header:
            current = header.group(1)
            commits.setdefault(current, {})
            final_lines.append((int(header.group(3)), current))
            continue
        if current is not None:
            key, _, value = row.partition(" ")
            commits[current].setdefault(key, value)

    result: dict[int, BlameInfo | None] = {}
    for line, sha in final_lines:
        meta = commits[sha]
        if _is_uncommitted(sha) or "committer-time" not in meta:
            result[line] = None
            continue
        result[line] = BlameInfo(
            timestamp=datetime.fromtimestamp(int(meta["committer-time"]), tz=timezone.utc),
            author=meta.get("author", ""),
            commit=sha,
        )
    return result


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class BlameResolver:
    """
    Resolves (path, line) to the time of the last commit touching it.

    Args:
        timeout: Ceiling in seconds for each git call.
        cache:   Injected cache; a fresh one is created if omitted.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, cache: BlameCache | None = None):
        self.timeout = timeout
        self.cache = cache if cache is not None else BlameCache()
        self._roots: dict[str, str | None] = {}
        self._roots_lock = threading.Lock()

    def __enter__(self) -> "BlameResolver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Forget repository lookups. The blame cache is kept."""
        with self._roots_lock:
            self._roots.clear()

    # -- git plumbing -------------------------------------------------------

    def _run_git(self, cwd: str, args: list[str], path: str, line: int) -> subprocess.CompletedProcess:
        """Run a git command in *cwd*. Process-level failures become RepositoryError."""
        cmd = ["git", "-C", cwd] + args
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise RepositoryError(path, line, "git executable not found")
        except subprocess.TimeoutExpired:
            raise RepositoryError(path, line, f"git timed out after {self.timeout:g}s")
        except OSError as exc:
            raise RepositoryError(path, line, str(exc))

    def _repo_root(self, directory: str, path: str, line: int) -> str | None:
        """Top level of the work tree containing *directory*, memoised."""
        with self._roots_lock:
            if directory in self._roots:
                return self._roots[directory]
        result = self._run_git(directory, ["rev-parse", "--show-toplevel"], path, line)
        root = result.stdout.strip() if result.returncode == 0 else None
        with self._roots_lock:
            self._roots[directory] = root
        return root

    def _blame(self, path: str, lines: list[int]) -> dict[int, BlameInfo | None]:
        first = lines[0]
        directory = os.path.dirname(path)
        if not os.path.isdir(directory):
            raise NotTracked(path, first, "directory does not exist")

        root = self._repo_root(directory, path, first)
        if root is None:
            raise NotTracked(path, first, "not inside a git work tree")

        args = ["blame", "--porcelain"]
        for line in lines:
            args.extend(["-L", f"{line},{line}"])
        args.extend(["--", os.path.relpath(path, root)])

        result = self._run_git(root, args, path, first)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            if "no such path" in stderr:
                raise NotTracked(path, first, stderr)
            if "HEAD" in stderr:
                raise NoHistory(path, first, stderr)
            error = RepositoryError if len(lines) == 1 else _BatchRejected
            raise error(path, first, stderr or f"git blame exited {result.returncode}")
        return parse_porcelain(result.stdout)

    # -- public API ---------------------------------------------------------

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(Path(path).resolve())

    def prefetch(self, path: str | Path, lines: Iterable[int]) -> None:
        """
        Blame every uncached line of *path* in a single git call.

        git rejects the whole call when any one `-L` range is bad (the file on
        disk is shorter than the content that was scanned, for instance). When
        git rejects a batch of several lines, each line is retried on its own
        so one bad line cannot blank the rest of the file.
        """
        key = self._key(path)
        wanted = sorted({line for line in lines if (key, line) not in self.cache})
        if not wanted:
            return

        try:
            results = self._blame(key, wanted)
        except _BatchRejected as exc:
            logger.debug(f"batched blame failed for {key}, retrying per line: {exc.detail}")
            for line in wanted:
                self.prefetch(key, [line])
            return
        except BlameError as exc:
            self._cache_failure(key, wanted, exc)
            return

        for line in wanted:
            info = results.get(line)
            if info is None:
                self.cache.put(key, line, NoHistory(key, line, "line not committed"))
            else:
                self.cache.put(key, line, info)

    def _cache_failure(self, key: str, lines: list[int], exc: BlameError) -> None:
        logger.debug(f"blame failed for {key}: {exc.detail}")
        for line in lines:
            self.cache.put(key, line, type(exc)(key, line, exc.detail))

    def resolve_info(self, path: str | Path, line: int) -> BlameInfo:
        """
        BlameInfo for one line.

        Raises:
            NotTracked, NoHistory, RepositoryError (all BlameError).
        """
        key = self._key(path)
        entry = self.cache.get(key, line)
        if entry is None:
            self.prefetch(key, [line])
            entry = self.cache.get(key, line)
        if isinstance(entry, BlameError):
            raise type(entry)(entry.path, entry.line, entry.detail)
        return entry

    def resolve(self, path: str | Path, line: int) -> datetime:
        """Committer timestamp (UTC) of the last commit that touched *line*."""
        return self.resolve_info(path, line).timestamp
