"""
Template loader — named software bundles from YAML files.

Templates live in a flat directory, one ``<slug>.yml`` per template::

    name: hmziq
    description: Default workstation
    software:
      - homebrew
      - rust_stable

Lookup order for ``find_template(name)``: file stem, then slug, then
case-insensitive display name.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from maziq.core.catalog import Catalog
from maziq.core.config.loader import read_yaml
from maziq.core.errors import ConfigError
from maziq.core.models.template import Template

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "hmziq"
_SUFFIXES = (".yml", ".yaml")


def load_template(path: Path) -> Template:
    """Load a single template file.

    Raises:
        ConfigError: Unreadable, not a mapping, or invalid fields.
    """
    data = read_yaml(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Template {path} is not a mapping")
    data.setdefault("name", path.stem)
    data["software"] = data.get("software") or []
    data["path"] = str(path)
    try:
        template = Template.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid template {path}: {e}") from e
    logger.debug("Loaded template %s from %s", template.name, path)
    return template


def discover_templates(directory: Path) -> list[Template]:
    """Load every template in ``directory``, sorted by file name."""
    if not directory.is_dir():
        logger.debug("Template directory not found: %s", directory)
        return []
    templates = [
        load_template(p)
        for p in sorted(directory.iterdir())
        if p.is_file() and p.suffix.lower() in _SUFFIXES
    ]
    logger.info("Discovered %d templates in %s", len(templates), directory)
    return templates


def find_template(name: str, directory: Path) -> Template:
    """Look a template up by file stem, slug or name.

    Raises:
        ConfigError: No such template, or a template file is malformed.
    """
    for suffix in _SUFFIXES:
        explicit = directory / f"{name}{suffix}"
        if explicit.is_file():
            return load_template(explicit)

    wanted = name.lower()
    for template in discover_templates(directory):
        if template.slug == wanted or template.name.lower() == wanted:
            return template
    raise ConfigError(f"Template '{name}' was not found in {directory}")


def validate_template(template: Template, catalog: Catalog) -> list[str]:
    """Canonical software ids of ``template``.

    Raises:
        ConfigError: The template references ids missing from the catalog.
    """
    unknown = [sid for sid in template.software if sid not in catalog]
    if unknown:
        raise ConfigError(
            f"Template '{template.name}' references unknown software: {', '.join(unknown)}"
        )
    return [catalog.canonical(sid) for sid in template.software]
