"""
Configuration loader — reads cluster.yml and stacks.yml into models.

Reads YAML, validates against the Pydantic schemas, and returns typed
domain objects. Every failure surfaces as ``ConfigError`` naming the
file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from rollplan.core.models.catalog import StackCatalog
from rollplan.core.models.cluster import Cluster

logger = logging.getLogger(__name__)

# Default config filenames
CLUSTER_CONFIG_FILE = "cluster.yml"
STACKS_CONFIG_FILE = "stacks.yml"


class ConfigError(Exception):
    """Raised when an input file is invalid or missing."""


def find_config_file(name: str = CLUSTER_CONFIG_FILE, start_dir: Path | None = None) -> Path | None:
    """Search for ``name`` starting from the given directory, walking up.

    Args:
        name: File name to look for.
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / name
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_yaml_mapping(path: Path) -> dict[str, Any]:
    """Read a YAML file that must contain a mapping.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_cluster(path: Path | None = None) -> Cluster:
    """Load and validate the cluster description.

    Args:
        path: Explicit path to cluster.yml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file(CLUSTER_CONFIG_FILE)

    if path is None:
        raise ConfigError(f"No {CLUSTER_CONFIG_FILE} found. Specify one with --cluster.")

    logger.debug("Loading cluster from %s", path)
    data = read_yaml_mapping(path)

    # The YAML may wrap everything under a "cluster" key or be flat
    cluster_data = data.get("cluster", data)

    try:
        cluster = Cluster.model_validate(cluster_data)
    except Exception as e:
        raise ConfigError(f"Invalid cluster configuration in {path}: {e}") from e

    logger.info("Loaded cluster '%s' with %d services", cluster.name, len(cluster.services))
    return cluster


def load_stack_catalog(path: Path | None = None) -> StackCatalog:
    """Load stack metadata, defaults and repository versions.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file(STACKS_CONFIG_FILE)

    if path is None:
        raise ConfigError(f"No {STACKS_CONFIG_FILE} found. Specify one with --stacks.")

    data = read_yaml_mapping(path)
    try:
        catalog = StackCatalog.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid stack catalog in {path}: {e}") from e

    logger.info(
        "Loaded %d stacks and %d repository versions from %s",
        len(catalog.stacks), len(catalog.repositories), path,
    )
    return catalog
