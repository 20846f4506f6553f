"""
Upgrade pack loader — loads upgrade pack definitions from YAML files.

Packs live side by side in a directory::

    packs/
        upgrade-2.3.yml
        nonrolling-upgrade-2.3.yml

and are keyed by their declared ``name``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rollplan.core.config.loader import ConfigError, read_yaml_mapping
from rollplan.core.models.pack import UpgradePack

logger = logging.getLogger(__name__)

_PACK_SUFFIXES = (".yml", ".yaml")


def load_upgrade_pack(path: Path) -> UpgradePack:
    """Load a single upgrade pack.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    data = read_yaml_mapping(path)

    # Allow the pack to sit under an "upgrade" key
    pack_data = data.get("upgrade", data)

    try:
        pack = UpgradePack.model_validate(pack_data)
    except Exception as e:
        raise ConfigError(f"Invalid upgrade pack in {path}: {e}") from e

    logger.debug("Loaded upgrade pack: %s from %s", pack.name, path)
    return pack


def discover_upgrade_packs(packs_dir: Path) -> dict[str, UpgradePack]:
    """Load every pack file in ``packs_dir``.

    Files that fail to load are logged and skipped. A later file with
    the same pack name replaces an earlier one (files load in name order).
    """
    packs: dict[str, UpgradePack] = {}

    if not packs_dir.is_dir():
        logger.debug("Upgrade pack directory not found: %s", packs_dir)
        return packs

    for child in sorted(packs_dir.iterdir()):
        if not child.is_file() or child.suffix not in _PACK_SUFFIXES:
            continue
        try:
            pack = load_upgrade_pack(child)
        except ConfigError as e:
            logger.warning("Failed to load upgrade pack from %s: %s", child, e)
            continue
        if pack.name in packs:
            logger.warning("Upgrade pack '%s' redefined by %s", pack.name, child)
        packs[pack.name] = pack

    logger.info("Discovered %d upgrade packs: %s", len(packs), list(packs.keys()))
    return packs
