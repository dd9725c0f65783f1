"""
registry.py — Recognised tag keywords.

Lookup is a case-insensitive exact match against every registered alias,
backed by a dict so it stays O(1) per comment.

Usage:
    from tag_snipe.registry import default_registry

    registry = default_registry()
    registry.register("PERF", aliases=["slow"])
    registry.lookup("todo")   # -> Tag(keyword='TODO', ...)
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .models import Tag, TagLevel


class ConfigError(Exception):
    """Invalid configuration. Raised before any scanning begins."""


class DuplicateTagError(ConfigError):
    """An alias is already claimed by another registered tag."""

    def __init__(self, alias: str, existing: Tag):
        self.alias = alias
        self.existing = existing
        super().__init__(f"tag alias {alias!r} is already registered to {existing.keyword}")


# ---------------------------------------------------------------------------
# Default tag set
# ---------------------------------------------------------------------------

# Keyword → level. Each keyword is its own canonical tag.
DEFAULT_TAGS: dict[str, TagLevel] = {
    "TODO": TagLevel.IMPROVEMENT,
    "BUG": TagLevel.FIX,
    "DEBUG": TagLevel.FIX,
    "FIX": TagLevel.FIX,
    "FIXME": TagLevel.FIX,
    "NOTE": TagLevel.INFORMATION,
    "NB": TagLevel.INFORMATION,
    "UNDONE": TagLevel.INFORMATION,
    "HACK": TagLevel.INFORMATION,
    "BODGE": TagLevel.INFORMATION,
    "KLUDGE": TagLevel.INFORMATION,
    "XXX": TagLevel.INFORMATION,
    "OPTIMIZE": TagLevel.IMPROVEMENT,
    "OPTIMIZEME": TagLevel.IMPROVEMENT,
    "OPTIMISE": TagLevel.IMPROVEMENT,
    "OPTIMISEME": TagLevel.IMPROVEMENT,
    "SAFETY": TagLevel.INFORMATION,
    "INVARIANT": TagLevel.INFORMATION,
    "LINT": TagLevel.INFORMATION,
    "IGNORED": TagLevel.INFORMATION,
}


class TagRegistry:
    """Read-mostly mapping of alias → Tag. Extend it at startup, then scan."""

    def __init__(self, tags: Iterable[Tag] = ()):
        self._tags: dict[str, Tag] = {}      # keyword -> Tag, registration order
        self._aliases: dict[str, Tag] = {}   # lower-case alias -> Tag
        for tag in tags:
            self.add(tag)

    def add(self, tag: Tag) -> Tag:
        """Register a prebuilt Tag. All aliases are checked before any is stored."""
        names = {a.lower() for a in tag.aliases} | {tag.keyword.lower()}
        for name in sorted(names):
            existing = self._aliases.get(name)
            if existing is not None:
                raise DuplicateTagError(name, existing)
        tag = Tag(keyword=tag.keyword.upper(), aliases=frozenset(names), level=tag.level)
        self._tags[tag.keyword] = tag
        for name in names:
            self._aliases[name] = tag
        return tag

    def register(
        self,
        keyword: str,
        aliases: Iterable[str] = (),
        level: TagLevel = TagLevel.CUSTOM,
    ) -> Tag:
        """
        Add a tag with its case-insensitive alias set.

        Raises:
            DuplicateTagError: an alias (or the keyword) collides with a registered tag.
            ValueError: the keyword is blank or contains whitespace or ':'.
        """
        keyword = keyword.strip()
        aliases = [a.strip() for a in aliases]
        for name in [keyword, *aliases]:
            if not name or any(c.isspace() or c == ":" for c in name):
                raise ValueError(f"invalid tag name: {name!r}")
        return self.add(Tag(keyword=keyword.upper(), aliases=frozenset(aliases), level=level))

    def extend(self, tags: Iterable[Tag]) -> None:
        for tag in tags:
            self.add(tag)

    def lookup(self, word: str) -> Tag | None:
        """Case-insensitive exact match; None when the word is not a tag."""
        return self._aliases.get(word.lower())

    def get(self, keyword: str) -> Tag | None:
        return self._tags.get(keyword.upper())

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._aliases

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._tags.values())

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"TagRegistry({', '.join(self._tags)})"


def default_registry() -> TagRegistry:
    """A fresh registry holding the built-in tag set."""
    registry = TagRegistry()
    for keyword, level in DEFAULT_TAGS.items():
        registry.register(keyword, level=level)
    return registry


def parse_tag_spec(spec: str) -> tuple[str, list[str]]:
    """
    Parse a CLI tag spec.

        "PERF"              -> ("PERF", [])
        "HACK2=bodge2,wtf"  -> ("HACK2", ["bodge2", "wtf"])
    """
    keyword, _, rest = spec.partition("=")
    aliases = [a.strip() for a in rest.split(",") if a.strip()]
    return keyword.strip(), aliases


def build_registry(custom: Iterable[str] = (), replace: bool = False) -> TagRegistry:
    """
    Default registry extended with (or replaced by) custom tag specs.

    Raises:
        DuplicateTagError: a custom tag collides with an existing alias.
    """
    registry = TagRegistry() if replace else default_registry()
    for spec in custom:
        keyword, aliases = parse_tag_spec(spec)
        registry.register(keyword, aliases)
    return registry
