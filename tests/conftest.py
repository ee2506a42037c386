"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from maziq.adapters.mock import FakeRunner
from maziq.core.catalog import Catalog
from maziq.core.engine.detector import StatusDetector
from maziq.core.engine.executor import ExecutionEngine


def _entry(sid: str, installer: str = "brew", deps=(), **extra) -> dict:
    entry = {
        "id": sid,
        "name": sid.upper(),
        "installer": installer,
        "detection": {"method": "command", "program": f"{sid}-tool", "args": ["--version"]},
        "dependencies": list(deps),
    }
    if installer == "script":
        entry.update({
            "install": f"install-{sid}.sh",
            "update": f"install-{sid}.sh --update",
            "uninstall": f"uninstall-{sid}.sh",
        })
    entry.update(extra)
    return entry


@pytest.fixture
def make_catalog():
    """Build a catalog from (id, installer, deps) shorthand."""

    def factory(*specs, **extras) -> Catalog:
        entries = []
        for sid, installer, deps in specs:
            entries.append(_entry(sid, installer, deps, **extras.get(sid, {})))
        return Catalog.from_dicts(entries)

    return factory


@pytest.fixture
def chain_catalog(make_catalog) -> Catalog:
    """a → b → c, plus an unrelated d."""
    return make_catalog(
        ("a", "cargo", ["b"]),
        ("b", "npm", ["c"]),
        ("c", "script", []),
        ("d", "script", []),
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def installed() -> set[str]:
    """Programs the fake PATH reports as present."""
    return set()


@pytest.fixture
def engine(fake_runner: FakeRunner, installed: set[str]) -> ExecutionEngine:
    """Engine on the fake runner; only programs in ``installed`` are on PATH."""
    detector = StatusDetector(
        runner=fake_runner,
        which=lambda program: f"/usr/local/bin/{program}" if program in installed else None,
        path_exists=lambda path: False,
    )
    return ExecutionEngine(runner=fake_runner, detector=detector)


@pytest.fixture
def tmp_state_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for state files."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir
