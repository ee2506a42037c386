"""
Catalog — the immutable set of known software, keyed by id.

Lookups also accept declared aliases (``rust`` → ``rust_stable``) so
templates and the CLI can use short names. Read-only after load; safe
to share across threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import ValidationError

from maziq.core.errors import ConfigError
from maziq.core.models.software import Software

logger = logging.getLogger(__name__)


class Catalog:
    """Id-indexed collection of Software definitions."""

    def __init__(self, entries: Iterable[Software]):
        self._entries: dict[str, Software] = {}
        self._aliases: dict[str, str] = {}
        for sw in entries:
            if sw.id in self._entries:
                raise ConfigError(f"Duplicate software id in catalog: {sw.id}")
            self._entries[sw.id] = sw
        for sw in self._entries.values():
            for alias in sw.aliases:
                if alias in self._entries or alias in self._aliases:
                    raise ConfigError(
                        f"Alias '{alias}' of '{sw.id}' collides with another entry"
                    )
                self._aliases[alias] = sw.id

    # ── Construction ────────────────────────────────────────────

    @classmethod
    def from_dicts(cls, raw: Iterable[dict[str, Any]]) -> Catalog:
        """Validate plain dicts (built-in table or YAML) into a catalog."""
        entries = []
        for item in raw:
            try:
                entries.append(Software.model_validate(item))
            except ValidationError as e:
                sid = item.get("id", "?") if isinstance(item, dict) else "?"
                raise ConfigError(f"Invalid catalog entry '{sid}': {e}") from e
        return cls(entries)

    @classmethod
    def builtin(cls) -> Catalog:
        """The catalog shipped with MazIQ."""
        from maziq.core.data.catalog import SOFTWARE

        return cls.from_dicts(SOFTWARE)

    # ── Lookup ──────────────────────────────────────────────────

    def canonical(self, software_id: str) -> str | None:
        """Resolve an id or alias to the canonical id."""
        if software_id in self._entries:
            return software_id
        return self._aliases.get(software_id)

    def get(self, software_id: str) -> Software | None:
        canonical = self.canonical(software_id)
        return self._entries.get(canonical) if canonical else None

    def __contains__(self, software_id: object) -> bool:
        return isinstance(software_id, str) and self.canonical(software_id) is not None

    def __iter__(self) -> Iterator[Software]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def ids(self) -> list[str]:
        return list(self._entries)

    def categories(self) -> dict[str, list[Software]]:
        """Entries grouped by category, in catalog order."""
        grouped: dict[str, list[Software]] = {}
        for sw in self._entries.values():
            grouped.setdefault(sw.category or "Uncategorized", []).append(sw)
        return grouped

    def __repr__(self) -> str:
        return f"<Catalog entries={len(self._entries)}>"
