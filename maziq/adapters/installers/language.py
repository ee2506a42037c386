"""
Language package manager adapters — cargo, npm, rustup.
"""

from __future__ import annotations

import json
import logging
import re
from typing import ClassVar

from maziq.adapters.base import InstallerAdapter
from maziq.core.models.action import Action
from maziq.core.models.software import InstallerKind

logger = logging.getLogger(__name__)


class CargoAdapter(InstallerAdapter):
    binary = "cargo"
    templates: ClassVar[dict[Action, str]] = {
        Action.INSTALL: "cargo install {package}",
        Action.UPDATE: "cargo install {package} --force",
        Action.UNINSTALL: "cargo uninstall {package}",
    }

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.CARGO

    def list_command(self, package: str) -> list[str] | None:
        return ["cargo", "install", "--list"]

    def parse_listing(self, package, returncode, output):
        # Crate header lines look like "ripgrep v14.1.0:".
        if returncode != 0:
            return False, None
        pattern = re.compile(rf"^{re.escape(package)} v(\S+?):?$")
        for line in output.splitlines():
            m = pattern.match(line.strip())
            if m:
                return True, m.group(1)
        return False, None


class NpmAdapter(InstallerAdapter):
    binary = "npm"
    templates: ClassVar[dict[Action, str]] = {
        Action.INSTALL: "npm install -g {package}",
        Action.UPDATE: "npm update -g {package}",
        Action.UNINSTALL: "npm uninstall -g {package}",
    }

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.NPM

    def list_command(self, package: str) -> list[str] | None:
        return ["npm", "ls", "-g", "--depth=0", "--json"]

    def parse_listing(self, package, returncode, output):
        # npm ls exits 1 on peer-dependency noise but still prints JSON.
        try:
            data = json.loads(output or "{}")
        except json.JSONDecodeError:
            logger.debug("npm ls output is not JSON (exit %s)", returncode)
            return False, None
        entry = (data.get("dependencies") or {}).get(package)
        if entry is None:
            return False, None
        return True, entry.get("version")


class RustupAdapter(InstallerAdapter):
    """Rust toolchains managed by rustup (package = channel name)."""

    binary = "rustup"
    templates: ClassVar[dict[Action, str]] = {
        Action.INSTALL: "rustup toolchain install {package}",
        Action.UPDATE: "rustup update {package}",
        Action.UNINSTALL: "rustup toolchain uninstall {package}",
    }

    @property
    def kind(self) -> InstallerKind:
        return InstallerKind.RUSTUP

    def list_command(self, package: str) -> list[str] | None:
        return ["rustup", "toolchain", "list"]

    def parse_listing(self, package, returncode, output):
        # "stable-aarch64-apple-darwin (default)"; no versions in the listing.
        if returncode != 0:
            return False, None
        for line in output.splitlines():
            name = line.split(" ", 1)[0].strip()
            if name == package or name.startswith(f"{package}-"):
                return True, None
        return False, None
