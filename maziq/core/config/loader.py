"""
Configuration loader — catalog override, version manifest, file paths.

Reads YAML, validates against the Pydantic models, and returns typed
objects. Every failure is a ``ConfigError`` raised before resolution
starts.

Environment:
    MAZIQ_CATALOG        YAML catalog replacing the built-in one
    MAZIQ_TEMPLATE_DIR   directory of template files
    MAZIQ_HISTORY_FILE   NDJSON history file
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from maziq.core.catalog import Catalog
from maziq.core.errors import ConfigError
from maziq.core.persistence.history import DEFAULT_HISTORY_FILE

logger = logging.getLogger(__name__)

ENV_CATALOG = "MAZIQ_CATALOG"
ENV_TEMPLATE_DIR = "MAZIQ_TEMPLATE_DIR"
ENV_HISTORY_FILE = "MAZIQ_HISTORY_FILE"

BUNDLED_TEMPLATES = Path(__file__).resolve().parent.parent.parent / "templates"


def read_yaml(path: Path) -> Any:
    """Parse one YAML file.

    Raises:
        ConfigError: Missing, unreadable, or invalid YAML.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_catalog(path: Path | None = None) -> Catalog:
    """Load the catalog.

    Args:
        path: YAML catalog file. Falls back to ``MAZIQ_CATALOG``, then to
            the built-in catalog.

    The file holds either a list of entries or a mapping with a
    ``software`` list.
    """
    if path is None and os.environ.get(ENV_CATALOG):
        path = Path(os.environ[ENV_CATALOG]).expanduser()
    if path is None:
        return Catalog.builtin()

    logger.debug("Loading catalog from %s", path)
    data = read_yaml(path)
    if isinstance(data, dict):
        data = data.get("software")
    if not isinstance(data, list):
        raise ConfigError(f"Expected a list of software entries in {path}")

    catalog = Catalog.from_dicts(data)
    logger.info("Loaded %d catalog entries from %s", len(catalog), path)
    return catalog


def load_manifest(path: Path) -> dict[str, str]:
    """Load a latest-version manifest: ``id: version`` pairs.

    A top-level ``versions`` mapping is also accepted.
    """
    data = read_yaml(path)
    if isinstance(data, dict) and isinstance(data.get("versions"), dict):
        data = data["versions"]
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping of id → version in {path}")
    # YAML reads an unquoted 1.10 as the float 1.1; manifests should quote versions.
    return {str(k): str(v) for k, v in data.items() if v is not None}


def templates_dir(explicit: Path | None = None) -> Path:
    """Template directory: explicit, then ``MAZIQ_TEMPLATE_DIR``, then bundled."""
    if explicit is not None:
        return explicit
    env = os.environ.get(ENV_TEMPLATE_DIR)
    if env:
        return Path(env).expanduser()
    return BUNDLED_TEMPLATES


def history_path(explicit: Path | None = None) -> Path:
    """History file: explicit, then ``MAZIQ_HISTORY_FILE``, then ~/.maziq."""
    if explicit is not None:
        return explicit
    env = os.environ.get(ENV_HISTORY_FILE)
    if env:
        return Path(env).expanduser()
    return DEFAULT_HISTORY_FILE
