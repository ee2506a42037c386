"""
Software model — one catalog entry.

A Software definition says where a tool comes from (installer kind),
how to tell whether it is present (version check), what it needs first
(dependencies), and optionally how to install/update/uninstall it.
Recipes left unset fall back to the installer adapter's templates.

Immutable after catalog load.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from maziq.core.models.action import Action


class InstallerKind(str, Enum):
    """Where a tool is sourced from."""

    BREW = "brew"                      # system package
    BREW_CASK = "brew-cask"            # system cask (GUI bundles)
    CARGO = "cargo"                    # language package managers
    NPM = "npm"
    RUSTUP = "rustup"
    DIRECT = "direct-download"
    SCRIPT = "script"

    @property
    def lock_group(self) -> str:
        """Concurrency group sharing one host lock.

        Formulae and casks both go through Homebrew's global lock.
        """
        if self in (InstallerKind.BREW, InstallerKind.BREW_CASK):
            return "homebrew"
        return self.value


class SoftwareKind(str, Enum):
    GUI = "gui"
    CLI = "cli"
    SDK = "sdk"

    @property
    def label(self) -> str:
        return self.value.upper()


class DetectionMethod(str, Enum):
    BUNDLE = "bundle"        # app bundle metadata (mdls / mdfind)
    COMMAND = "command"      # the tool's own --version
    PACKAGE = "package"      # package manager's installed listing
    MANUAL = "manual"        # cannot be detected automatically


class VersionCheck(BaseModel):
    """How to detect the installed version."""

    model_config = ConfigDict(frozen=True)

    method: DetectionMethod
    path: str = ""                  # bundle: canonical .app path
    app_name: str = ""              # bundle: name for the metadata search
    program: str = ""               # command
    args: tuple[str, ...] = ()
    pattern: str = ""               # regex, group 1 = version
    package: str = ""               # package: listing entry (default: software package)
    note: str = ""                  # manual

    def description(self) -> str:
        if self.method is DetectionMethod.BUNDLE:
            if self.path:
                escaped = self.path.replace(" ", "\\ ")
                return f"mdls -name kMDItemVersion {escaped}"
            return f"mdfind {self.app_name}.app"
        if self.method is DetectionMethod.COMMAND:
            return " ".join([self.program, *self.args])
        if self.method is DetectionMethod.PACKAGE:
            return f"installed listing for {self.package or '(package)'}"
        return f"Manual check: {self.note}"


class Recipe(BaseModel):
    """A shell command, or a manual instruction when no command exists."""

    model_config = ConfigDict(frozen=True)

    command: str = ""
    manual: str = ""

    @property
    def is_manual(self) -> bool:
        return not self.command

    def description(self) -> str:
        return self.command or self.manual


class Software(BaseModel):
    """An immutable catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    category: str = ""
    summary: str = ""
    kind: SoftwareKind = SoftwareKind.CLI
    installer: InstallerKind
    package: str = ""
    aliases: tuple[str, ...] = ()
    detection: VersionCheck
    dependencies: tuple[str, ...] = ()

    install: Recipe | None = None
    update: Recipe | None = None
    uninstall: Recipe | None = None

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("software id must not be empty")
        return value

    @field_validator("install", "update", "uninstall", mode="before")
    @classmethod
    def _coerce_recipe(cls, value: object) -> object:
        # Catalog files may give a bare command string.
        if isinstance(value, str):
            return {"command": value}
        return value

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def package_name(self) -> str:
        return self.package or self.id

    def recipe_for(self, action: Action) -> Recipe | None:
        """Explicit recipe for a mutating action, if the entry declares one."""
        if action is Action.INSTALL:
            return self.install
        if action is Action.UPDATE:
            return self.update
        if action is Action.UNINSTALL:
            return self.uninstall
        return None
