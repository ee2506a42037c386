"""
Installer adapter base — the contract between engine and package managers.

One adapter per ``InstallerKind``. An adapter never runs anything
itself: it turns a Software entry into the shell command for an action,
vets that command, and knows how to ask its package manager for the
installed version. The execution engine and status detector do the
spawning through the process runner.

To add an installer kind:
    1. Subclass InstallerAdapter
    2. Set ``kind`` and ``templates`` (and the listing hooks if any)
    3. Register it in ``AdapterRegistry.default()``
"""

from __future__ import annotations

import shlex
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import ClassVar

from maziq.core.models.action import Action
from maziq.core.models.software import InstallerKind, Recipe, Software, SoftwareKind

# GUI bundles may only be touched through Homebrew casks.
_GUI_SAFE_PREFIXES = (
    "brew install --cask",
    "brew upgrade --cask",
    "brew uninstall --cask",
)


class InstallerAdapter(ABC):
    """Abstract base class for installer adapters.

    ``templates`` maps each mutating action to a command template;
    ``{package}`` is replaced with the shell-quoted package name.
    """

    templates: ClassVar[dict[Action, str]] = {}
    binary: ClassVar[str] = ""

    @property
    @abstractmethod
    def kind(self) -> InstallerKind:
        """The installer kind this adapter serves."""

    @property
    def name(self) -> str:
        return self.kind.value

    def is_available(self, which: Callable[[str], str | None] = shutil.which) -> bool:
        """Whether the package manager binary is on PATH.

        Adapters without a binary (scripts, direct downloads) are always
        available; their recipes bring their own tooling.
        """
        if not self.binary:
            return True
        return which(self.binary) is not None

    def recipe_for(self, software: Software, action: Action) -> Recipe | None:
        """Explicit recipe on the entry, else this kind's template."""
        explicit = software.recipe_for(action)
        if explicit is not None:
            return explicit
        template = self.templates.get(action)
        if template is None:
            return None
        return Recipe(command=template.format(package=shlex.quote(software.package_name)))

    def validate(self, software: Software, command: str) -> tuple[bool, str]:
        """Check that a command may run for this entry.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """
        if software.kind is SoftwareKind.GUI and not command.startswith(_GUI_SAFE_PREFIXES):
            return False, (
                f"unsafe command for GUI application {software.id}: {command} "
                "(GUI apps are only managed through brew casks)"
            )
        return True, ""

    # ── Installed listing (package check) ───────────────────────

    def list_command(self, package: str) -> list[str] | None:
        """argv listing the installed version of ``package``, or None."""
        return None

    def parse_listing(
        self,
        package: str,
        returncode: int,
        output: str,
    ) -> tuple[bool, str | None]:
        """Interpret listing output as ``(present, version)``."""
        return False, None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} kind={self.name!r}>"
