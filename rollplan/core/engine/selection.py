"""
Upgrade pack selection — find the one pack that fits a request.
"""

from __future__ import annotations

import logging

from rollplan.core.errors import PlanningInputError
from rollplan.core.models.catalog import StackCatalog
from rollplan.core.models.cluster import StackId
from rollplan.core.models.direction import Direction, UpgradeType
from rollplan.core.models.pack import UpgradePack

logger = logging.getLogger(__name__)


def suggest_upgrade_pack(
    packs: dict[str, UpgradePack],
    catalog: StackCatalog,
    current_stack: StackId,
    from_version: str | None,
    to_version: str,
    direction: Direction,
    upgrade_type: UpgradeType,
    preferred: str | None = None,
) -> UpgradePack:
    """Pick the upgrade pack for moving the cluster between versions.

    The repository of interest is ``to_version``, except for a downgrade
    with a known ``from_version``: the pack that performed the upgrade
    is the one that undoes it.

    Args:
        packs: Available packs for the current stack, keyed by name.
        catalog: Stack catalog holding the known repository versions.
        current_stack: The cluster's current stack.
        from_version: Version being moved away from, if known.
        to_version: Version being moved to.
        direction: Upgrade or downgrade.
        upgrade_type: Required orchestration type.
        preferred: Pack name to use when several could match.

    Returns:
        The matching pack.

    Raises:
        PlanningInputError: The repository is unknown, or zero or more
            than one pack matches.
    """
    repo_version = to_version
    if direction.is_downgrade and from_version:
        repo_version = from_version

    repository = catalog.find_repository(current_stack.name, repo_version)
    if repository is None:
        raise PlanningInputError(f"Repository version {repo_version} was not found")

    if preferred and preferred in packs:
        logger.debug("Using preferred upgrade pack %s", preferred)
        return packs[preferred]

    pack: UpgradePack | None = None
    for candidate in packs.values():
        if candidate.target_stack != repository.stack_id or candidate.type is not upgrade_type:
            continue
        if pack is not None:
            raise PlanningInputError(
                f"Unable to perform {direction.text()}. Found multiple upgrade packs "
                f"for type {upgrade_type.value} and target version {repo_version}"
            )
        pack = candidate

    if pack is None:
        raise PlanningInputError(
            f"Unable to perform {direction.text()}. Could not locate "
            f"{upgrade_type.value} upgrade pack for version {repo_version}"
        )

    logger.info("Selected upgrade pack %s for %s %s", pack.name, direction.text(), repo_version)
    return pack
