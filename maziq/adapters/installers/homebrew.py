"""
Homebrew adapters — formulae and casks.

Both share Homebrew's global lock, so the orchestrator keeps them in
the same ``homebrew`` concurrency group.
"""

from __future__ import annotations

from typing import ClassVar

from maziq.adapters.base import InstallerAdapter
from maziq.core.models.action import Action
from maziq.core.models.software import InstallerKind


def _last_token(returncode: int, output: str) -> tuple[bool, str | None]:
    # `brew list --versions pkg` prints "pkg 1.2.3 [1.2.2 ...]" or nothing.
    if returncode != 0:
        return False, None
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            return True, parts[1]
        if parts:
            return True, None
    return False, None


class BrewAdapter(InstallerAdapter):
    """Homebrew formulae."""

    binary = "brew"
    templates: ClassVar[dict[Action, str]] = {
        Action.INSTALL: "brew install {package}",
        Action.UPDATE: "brew upgrade {package}",
        Action.UNINSTALL: "brew uninstall {package}",
    }

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.BREW

    def list_command(self, package: str) -> list[str] | None:
        return ["brew", "list", "--versions", package]

    def parse_listing(self, package, returncode, output):
        return _last_token(returncode, output)


class BrewCaskAdapter(InstallerAdapter):
    """Homebrew casks (GUI bundles and some SDKs)."""

    binary = "brew"
    templates: ClassVar[dict[Action, str]] = {
        Action.INSTALL: "brew install --cask {package}",
        Action.UPDATE: "brew upgrade --cask {package}",
        Action.UNINSTALL: "brew uninstall --cask {package}",
    }

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.BREW_CASK

    def list_command(self, package: str) -> list[str] | None:
        return ["brew", "list", "--cask", "--versions", package]

    def parse_listing(self, package, returncode, output):
        return _last_token(returncode, output)
