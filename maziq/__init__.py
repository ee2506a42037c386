"""MazIQ — dependency-aware workstation provisioning."""

__version__ = "0.4.0"
