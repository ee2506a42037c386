"""
Template model — a named, ordered software bundle.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Template(BaseModel):
    """A reusable installation bundle.

    Attributes:
        name:        Display name (defaults to the file stem).
        description: Optional free text.
        software:    Software ids; order is only a tie-break hint.
        path:        Source file, when loaded from disk.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    software: tuple[str, ...] = ()
    path: str | None = None

    @property
    def slug(self) -> str:
        return self.name.lower().replace(" ", "-")
