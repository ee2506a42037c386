"""Shell process execution."""

from maziq.adapters.shell.process import CaptureResult, ProcessResult, ProcessRunner

__all__ = ["CaptureResult", "ProcessResult", "ProcessRunner"]
