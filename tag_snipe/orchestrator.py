"""
orchestrator.py — The core. Files in, findings out.

scan() takes a stream of (path, content) pairs from a walker, lexes each
supported file, extracts tags, and attaches blame timestamps. Files run on a
ThreadPoolExecutor (git blame is the dominant cost); findings still come out
in walk order, spans in source order.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .blame import DEFAULT_TIMEOUT, BlameCache, BlameError, BlameResolver
from .extractor import extract
from .languages import LanguageMap
from .lexer import decode_source, lex_comments
from .models import Finding
from .registry import TagRegistry, default_registry

logger = logging.getLogger(__name__)

# Files queued per worker before the oldest result is waited on
IN_FLIGHT_PER_WORKER = 4


@dataclass
class ScanOptions:
    """How a scan is performed."""

    blame: bool = True
    require_colon: bool = False
    workers: int | None = None  # None -> os.cpu_count()
    blame_timeout: float = DEFAULT_TIMEOUT
    languages: LanguageMap = field(default_factory=LanguageMap)

    def worker_count(self) -> int:
        return max(1, self.workers or os.cpu_count() or 1)


def scan_file(
    path: str,
    content: bytes,
    registry: TagRegistry,
    options: ScanOptions,
    resolver: BlameResolver | None = None,
) -> list[Finding]:
    """
    Findings for one file, in source order.

    Unsupported extensions and undecodable content give an empty list.
    """
    detected = options.languages.detect(path)
    if detected is None:
        logger.debug(f"skipping {path}: unsupported extension")
        return []
    language, syntax = detected

    try:
        text = decode_source(content)
    except UnicodeDecodeError as exc:
        logger.warning(f"skipping {path}: not UTF-8 text ({exc.reason})")
        return []

    matches = []
    for span in lex_comments(text, syntax):
        match = extract(span, registry, syntax=syntax, require_colon=options.require_colon)
        if match is not None:
            matches.append(match)

    if not matches:
        return []
    logger.debug(f"{path}: {len(matches)} tags ({language.value})")

    if resolver is not None:
        resolver.prefetch(path, [m.line for m in matches])

    findings = []
    for match in matches:
        timestamp = None
        author = None
        if resolver is not None:
            try:
                info = resolver.resolve_info(path, match.line)
                timestamp, author = info.timestamp, info.author
            except BlameError as exc:
                logger.debug(f"no blame for {path}:{match.line}: {type(exc).__name__}")
        findings.append(
            Finding(
                tag=match.tag,
                message=match.message,
                path=path,
                line=match.line,
                timestamp=timestamp,
                emphasis=match.emphasis,
                kind=match.kind,
                author=author,
            )
        )
    return findings


def scan(
    file_stream: Iterable[tuple[str, bytes]],
    registry: TagRegistry | None = None,
    options: ScanOptions | None = None,
    resolver: BlameResolver | None = None,
) -> Iterator[Finding]:
    """
    Scan a stream of files for comment tags.

    Args:
        file_stream: (path, content) pairs, in walk order.
        registry:    Recognised tags (default set if omitted).
        options:     ScanOptions (defaults if omitted).
        resolver:    Blame resolver to use. When omitted and options.blame is
                     set, one is created for this scan and closed afterwards.

    Yields:
        Finding objects, files in stream order, tags in source order.
    """
    registry = registry if registry is not None else default_registry()
    options = options if options is not None else ScanOptions()

    owned = None
    if resolver is None and options.blame:
        owned = resolver = BlameResolver(timeout=options.blame_timeout, cache=BlameCache())
    if not options.blame:
        resolver = None

    try:
        workers = options.worker_count()
        if workers == 1:
            for path, content in file_stream:
                yield from scan_file(path, content, registry, options, resolver)
            return

        with ThreadPoolExecutor(max_workers=workers) as pool:
            # Bounded window of in-flight files, drained in submission order
            pending: deque[Future] = deque()
            for path, content in file_stream:
                pending.append(pool.submit(scan_file, path, content, registry, options, resolver))
                if len(pending) >= workers * IN_FLIGHT_PER_WORKER:
                    yield from pending.popleft().result()
            while pending:
                yield from pending.popleft().result()
    finally:
        if owned is not None:
            owned.close()
