"""
formatters.py - Terminal table + JSON output for findings.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from colorama import Fore, Style

from .models import CommentKind, Finding, TagLevel

LEVEL_COLORS: dict[TagLevel, str] = {
    TagLevel.FIX: Fore.RED,
    TagLevel.IMPROVEMENT: Fore.BLUE,
    TagLevel.INFORMATION: Fore.LIGHTBLACK_EX,
    TagLevel.CUSTOM: Fore.YELLOW,
}
MACRO_COLOR = Fore.MAGENTA

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_WIDTH = 40


def _clamp(text: str, width: int) -> str:
    return text if len(text) <= width else text[:width]


def _color_for(finding: Finding) -> str:
    if finding.kind is CommentKind.MACRO:
        return MACRO_COLOR
    return LEVEL_COLORS[finding.tag.level]


def format_finding(finding: Finding, color: bool = False, width: int = DEFAULT_WIDTH) -> str:
    """`TODO: message   2024-01-02 10:11:12 author path:line`"""
    head = _clamp(f"{finding.label}: {finding.message}", width).ljust(width)
    if color:
        head = f"{_color_for(finding)}{head}{Style.RESET_ALL}"

    parts = [head]
    if finding.timestamp is not None:
        parts.append(finding.timestamp.astimezone().strftime(TIME_FORMAT))
    if finding.author:
        parts.append(finding.author)
    location = f"{finding.path}:{finding.line}"
    parts.append(f"{Style.DIM}{location}{Style.RESET_ALL}" if color else location)
    return " ".join(parts)


def iter_table(findings: Iterable[Finding], color: bool = False, width: int = DEFAULT_WIDTH) -> Iterator[str]:
    """One formatted line per finding, as findings arrive."""
    for finding in findings:
        yield format_finding(finding, color=color, width=width)


def to_table(findings: Iterable[Finding], color: bool = False, width: int = DEFAULT_WIDTH) -> str:
    return "\n".join(iter_table(findings, color=color, width=width))


def to_json(findings: Iterable[Finding]) -> list[dict[str, Any]]:
    """JSON-serializable list."""
    return [finding.to_dict() for finding in findings]
