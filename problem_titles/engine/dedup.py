"""Known-titles store persisted as a single '|' joined line."""

from __future__ import annotations

import re
from pathlib import Path

TOKEN_DELIMITER = "|"
# Line breaks count as delimiters; appends after a trailing newline start a second line
_TOKEN_SPLIT = re.compile(r"[|\s]+")


class KnownTitlesStore:
    """Append-only set of reservation tokens reported in earlier runs."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._known: list[str] = []
        self._known_set: set[str] = set()
        self._pending: list[str] = []
        self.load_all()

    def load_all(self) -> set[str]:
        """Rebuild the set from disk; a missing or empty file is an empty set."""

        self._known = []
        self._known_set = set()
        content = ""
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as stream:
                content = stream.read()
        for token in _TOKEN_SPLIT.split(content):
            if token and token not in self._known_set:
                self._known.append(token)
                self._known_set.add(token)
        return set(self._known_set)

    def contains(self, token: str) -> bool:
        return token in self._known_set or token in self._pending

    def mark_seen(self, token: str) -> None:
        if token and not self.contains(token):
            self._pending.append(token)

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    def tokens(self) -> list[str]:
        return [*self._known, *self._pending]

    def flush(self) -> int:
        """Append pending tokens without rewriting earlier content."""

        if not self._pending:
            return 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        has_content = self.path.exists() and self.path.stat().st_size > 0
        with self.path.open("a", encoding="utf-8", newline="") as stream:
            for token in self._pending:
                if has_content:
                    stream.write(TOKEN_DELIMITER)
                stream.write(token)
                has_content = True
        written = len(self._pending)
        for token in self._pending:
            self._known.append(token)
            self._known_set.add(token)
        self._pending.clear()
        return written


__all__ = ["KnownTitlesStore", "TOKEN_DELIMITER"]
