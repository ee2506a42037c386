"""
Status model — the installation state of one piece of software.

A Status is produced fresh on every query and never cached: installs
and uninstalls within a run change it.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StatusState(str, Enum):
    NOT_INSTALLED = "not_installed"
    OUTDATED = "outdated"
    UP_TO_DATE = "up_to_date"
    UNKNOWN = "unknown"


class Status(BaseModel):
    """Observed installation state."""

    model_config = ConfigDict(frozen=True)

    installed: bool = False
    version: str | None = None
    state: StatusState = StatusState.UNKNOWN
    note: str = ""

    @classmethod
    def not_installed(cls, note: str = "") -> Status:
        return cls(installed=False, state=StatusState.NOT_INSTALLED, note=note)

    @classmethod
    def unknown(cls, note: str = "", installed: bool = False) -> Status:
        return cls(installed=installed, state=StatusState.UNKNOWN, note=note)

    @classmethod
    def present(cls, version: str | None, note: str = "") -> Status:
        """Installed; classified against the latest version later.

        Without a version the state stays unknown.
        """
        return cls(
            installed=True,
            version=version or None,
            state=StatusState.UP_TO_DATE if version else StatusState.UNKNOWN,
            note=note,
        )

    def describe(self) -> str:
        if self.state is StatusState.NOT_INSTALLED:
            return "not installed"
        if self.state is StatusState.UNKNOWN:
            base = "installed" if self.installed else "unknown"
            return f"{base}: {self.note}" if self.note else base
        label = "outdated" if self.state is StatusState.OUTDATED else "up to date"
        return f"{self.version} ({label})"
