"""Static data shipped with MazIQ (the built-in catalog)."""

from maziq.core.data.catalog import SOFTWARE

__all__ = ["SOFTWARE"]
