"""
Adapter registry — installer kind → adapter lookup.

The engine and detector never pick adapters themselves; they ask the
registry with a Software entry. Dispatch is exhaustive: ``default()``
covers every ``InstallerKind`` and ``for_software`` raises on a gap,
so a new kind without an adapter fails loudly at first use.
"""

from __future__ import annotations

import logging
from typing import Any

from maziq.adapters.base import InstallerAdapter
from maziq.core.models.software import InstallerKind, Software

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry of installer adapters."""

    def __init__(self) -> None:
        self._adapters: dict[InstallerKind, InstallerAdapter] = {}

    @classmethod
    def default(cls) -> AdapterRegistry:
        """Registry with one adapter for every installer kind."""
        from maziq.adapters.installers import (
            BrewAdapter,
            BrewCaskAdapter,
            CargoAdapter,
            DirectDownloadAdapter,
            NpmAdapter,
            RustupAdapter,
            ScriptAdapter,
        )

        registry = cls()
        for adapter in (
            BrewAdapter(),
            BrewCaskAdapter(),
            CargoAdapter(),
            NpmAdapter(),
            RustupAdapter(),
            DirectDownloadAdapter(),
            ScriptAdapter(),
        ):
            registry.register(adapter)
        return registry

    def register(self, adapter: InstallerAdapter) -> None:
        kind = adapter.kind
        if kind in self._adapters:
            logger.warning("Overwriting existing adapter: %s", kind.value)
        self._adapters[kind] = adapter
        logger.debug("Registered adapter: %s", kind.value)

    def get(self, kind: InstallerKind) -> InstallerAdapter | None:
        return self._adapters.get(kind)

    def for_software(self, software: Software) -> InstallerAdapter:
        """The adapter for a Software entry's installer kind."""
        adapter = self._adapters.get(software.installer)
        if adapter is None:
            raise LookupError(f"No adapter registered for installer '{software.installer.value}'")
        return adapter

    def missing_kinds(self) -> list[InstallerKind]:
        return [k for k in InstallerKind if k not in self._adapters]

    def list_adapters(self) -> list[str]:
        return [k.value for k in self._adapters]

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered adapter's binary."""
        status = {}
        for kind, adapter in self._adapters.items():
            status[kind.value] = {
                "name": kind.value,
                "available": adapter.is_available(),
                "type": adapter.__class__.__name__,
            }
        return status
