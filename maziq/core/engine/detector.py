"""
Status detector — read-only checks for installed state and version.

Strategy by detection method:

    bundle    mdls kMDItemVersion on the canonical .app path; mdfind
              search by bundle name when no path is known
    command   the tool's own version flag, first line matched against
              the configured pattern
    package   the installer adapter's "list installed" command
    manual    cannot be detected; reported as unknown with the note

``detect`` never raises. Failed checks degrade to ``unknown`` and are
logged as warnings, which are also passed to the caller's ``on_warning``
observer so they show up on the affected task. Results are never cached.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from collections.abc import Callable
from dataclasses import dataclass

from maziq.adapters.registry import AdapterRegistry
from maziq.adapters.shell.process import ProcessRunner
from maziq.core.models.software import DetectionMethod, Software, VersionCheck
from maziq.core.models.status import Status, StatusState

logger = logging.getLogger(__name__)

_DEFAULT_PATTERN = r"v?(\d+(?:\.\d+)+)"
_NUMERIC = re.compile(r"\d+(?:\.\d+)*")


def _parse_version(v: str) -> tuple[int, ...]:
    m = _NUMERIC.search(v)
    if m is None:
        raise ValueError(f"no numeric version in {v!r}")
    return tuple(int(x) for x in m.group(0).split("."))


def compare_versions(installed: str, latest: str) -> int | None:
    """-1, 0 or 1 comparing numeric version components; None if unparsable.

    Missing trailing components count as zero (``1.2`` == ``1.2.0``).
    """
    try:
        a = _parse_version(installed)
        b = _parse_version(latest)
    except ValueError:
        return None
    width = max(len(a), len(b))
    a += (0,) * (width - len(a))
    b += (0,) * (width - len(b))
    return (a > b) - (a < b)


def classify(status: Status, latest_version: str | None) -> Status:
    """Outdated vs up-to-date, given the latest known version."""
    if not status.installed or not status.version or not latest_version:
        return status
    if compare_versions(status.version, latest_version) == -1:
        return status.model_copy(update={
            "state": StatusState.OUTDATED,
            "note": status.note or f"latest is {latest_version}",
        })
    return status.model_copy(update={"state": StatusState.UP_TO_DATE})


def _first_line(output: str) -> str:
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return ""


@dataclass
class _Attempt:
    """One ``detect`` call: the entry, its command timeout and warning sink."""

    software: Software
    timeout: float
    on_warning: Callable[[str], None] | None = None

    def warn(self, message: str) -> None:
        logger.warning("%s: %s", self.software.id, message)
        if self.on_warning is not None:
            try:
                self.on_warning(message)
            except Exception as e:
                logger.debug("Warning observer raised: %s", e)


class StatusDetector:
    """Determines the installation state of one Software entry.

    Args:
        runner: Process runner used for every version command.
        registry: Adapter registry (package strategy).
        which: PATH lookup, injectable for tests.
        path_exists: Filesystem check for bundle paths.
        timeout: Seconds allowed per command when ``detect`` is not
            given one.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        registry: AdapterRegistry | None = None,
        which: Callable[[str], str | None] = shutil.which,
        path_exists: Callable[[str], bool] = os.path.exists,
        timeout: float = 10.0,
    ):
        self._runner = runner or ProcessRunner()
        self._registry = registry or AdapterRegistry.default()
        self._which = which
        self._path_exists = path_exists
        self._timeout = timeout

    def detect(
        self,
        software: Software,
        latest_version: str | None = None,
        *,
        timeout: float | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> Status:
        """Check ``software`` and classify it against ``latest_version``.

        ``timeout`` bounds each command spawned for the check.
        ``on_warning`` receives every warning logged along the way.
        """
        attempt = _Attempt(software, timeout or self._timeout, on_warning)
        try:
            status = self._dispatch(attempt)
        except Exception as e:
            attempt.warn(f"status detection failed: {e}")
            return Status.unknown(f"detection error: {e}")
        return classify(status, latest_version)

    def _dispatch(self, attempt: _Attempt) -> Status:
        check = attempt.software.detection
        if check.method is DetectionMethod.BUNDLE:
            if check.path:
                return self._detect_bundle(attempt, check.path)
            return self._detect_by_search(attempt, check)
        if check.method is DetectionMethod.COMMAND:
            return self._detect_command(attempt, check)
        if check.method is DetectionMethod.PACKAGE:
            return self._detect_package(attempt, check)
        return Status.unknown(check.note or "manual check required")

    # ── Bundle ──────────────────────────────────────────────────

    def _detect_bundle(self, attempt: _Attempt, path: str) -> Status:
        if not self._path_exists(path):
            return Status.not_installed(f"{path} not found")

        result = self._runner.run_capture(
            ["mdls", "-name", "kMDItemVersion", path], timeout=attempt.timeout,
        )
        if result.not_found or result.timed_out or result.error:
            attempt.warn("mdls unavailable; bundle present")
            return Status.unknown("bundle present, metadata unreadable", installed=True)
        if not result.ok:
            return Status.not_installed(f"mdls exited {result.returncode}")

        # kMDItemVersion = "131.0.6778.86"   or   kMDItemVersion = (null)
        for line in result.output.splitlines():
            if "=" not in line:
                continue
            value = line.split("=", 1)[1].strip().strip('"')
            if value and value != "(null)":
                return Status.present(value)
            break
        return Status.present(None, note="bundle has no version metadata")

    def _detect_by_search(self, attempt: _Attempt, check: VersionCheck) -> Status:
        app = check.app_name or attempt.software.display_name
        result = self._runner.run_capture(
            ["mdfind", f'kMDItemFSName == "{app}.app"'], timeout=attempt.timeout,
        )
        if result.not_found or result.timed_out or result.error:
            attempt.warn("mdfind unavailable")
            return Status.unknown("metadata search unavailable")
        hit = _first_line(result.output)
        if not result.ok or not hit:
            return Status.not_installed(f"no {app}.app found")
        return self._detect_bundle(attempt, hit)

    # ── Command ─────────────────────────────────────────────────

    def _detect_command(self, attempt: _Attempt, check: VersionCheck) -> Status:
        program = check.program or attempt.software.id
        if self._which(program) is None:
            return Status.not_installed(f"{program} not found on PATH")

        result = self._runner.run_capture([program, *check.args], timeout=attempt.timeout)
        if result.not_found:
            return Status.not_installed(f"{program} not found")
        if result.timed_out:
            attempt.warn(f"version command timed out after {attempt.timeout:g}s")
            return Status.unknown("version command timed out", installed=True)
        if result.error:
            attempt.warn(f"version command failed: {result.error}")
            return Status.unknown(result.error)
        if not result.ok:
            return Status.not_installed(f"{program} exited {result.returncode}")

        first = _first_line(result.output)
        m = re.search(check.pattern or _DEFAULT_PATTERN, first)
        if m is None:
            return Status.unknown(f"unparsable version output: {first!r}", installed=True)
        return Status.present(m.group(1))

    # ── Package listing ─────────────────────────────────────────

    def _detect_package(self, attempt: _Attempt, check: VersionCheck) -> Status:
        adapter = self._registry.for_software(attempt.software)
        package = check.package or attempt.software.package_name
        argv = adapter.list_command(package)
        if argv is None:
            return Status.unknown(f"{adapter.name} has no installed listing")
        if self._which(argv[0]) is None:
            return Status.not_installed(f"{argv[0]} not found on PATH")

        result = self._runner.run_capture(argv, timeout=attempt.timeout)
        if result.not_found:
            return Status.not_installed(f"{argv[0]} not found")
        if result.timed_out or result.error:
            attempt.warn(f"installed listing from {adapter.name} failed")
            return Status.unknown("installed listing failed")

        present, version = adapter.parse_listing(package, result.returncode or 0, result.output)
        if not present:
            return Status.not_installed(f"{package} not listed by {adapter.name}")
        return Status.present(version)
