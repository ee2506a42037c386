"""
Direct-download and script adapters.

Neither has a package manager behind it, so there are no command
templates and no installed listing: every catalog entry of these kinds
carries explicit recipes and a command or manual version check.
"""

from __future__ import annotations

from maziq.adapters.base import InstallerAdapter
from maziq.core.models.software import InstallerKind


class DirectDownloadAdapter(InstallerAdapter):
    """Vendor installers fetched with curl (rustup, nvm, bun)."""

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.DIRECT


class ScriptAdapter(InstallerAdapter):
    """Arbitrary shell recipes (Homebrew bootstrap, Xcode CLT)."""

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.SCRIPT
