"""Installer adapters, one per installer kind."""

from maziq.adapters.installers.direct import DirectDownloadAdapter, ScriptAdapter
from maziq.adapters.installers.homebrew import BrewAdapter, BrewCaskAdapter
from maziq.adapters.installers.language import CargoAdapter, NpmAdapter, RustupAdapter

__all__ = [
    "BrewAdapter",
    "BrewCaskAdapter",
    "CargoAdapter",
    "DirectDownloadAdapter",
    "NpmAdapter",
    "RustupAdapter",
    "ScriptAdapter",
]
