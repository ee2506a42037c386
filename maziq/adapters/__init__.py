"""Adapters — installer bindings and process execution.

Public re-exports for convenient access.
"""

from maziq.adapters.base import InstallerAdapter
from maziq.adapters.mock import FakeRunner, ScriptedRun
from maziq.adapters.registry import AdapterRegistry
from maziq.adapters.shell.process import CaptureResult, ProcessResult, ProcessRunner

__all__ = [
    "AdapterRegistry",
    "CaptureResult",
    "FakeRunner",
    "InstallerAdapter",
    "ProcessResult",
    "ProcessRunner",
    "ScriptedRun",
]
