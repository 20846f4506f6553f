"""
Desired repository transition — point services at the target repository.

Before the plan executes, every participating service and component is
moved to the target repository, and every component host is marked
IN_PROGRESS (or NONE for components that do not advertise a version).
This touches every component on every host, so it always runs inside
one store transaction together with configuration reconciliation.
"""

from __future__ import annotations

import logging

from rollplan.adapters.base import ConfigStore, MetadataCatalog
from rollplan.core.engine.config_merge import ReconcileResult, reconcile_configurations
from rollplan.core.errors import MergeFatalError, StoreError
from rollplan.core.models.cluster import UNKNOWN_VERSION, UpgradeState
from rollplan.core.models.context import UpgradeContext

logger = logging.getLogger(__name__)


def set_desired_repositories(context: UpgradeContext, catalog: MetadataCatalog) -> int:
    """Move participating services and components to their target repository.

    Returns:
        Number of component hosts whose upgrade state changed.

    Raises:
        StoreError: A participating service is not installed.
    """
    cluster = context.cluster
    changed = 0

    for service_name in context.get_supported_services():
        service = cluster.get_service(service_name)
        if service is None:
            raise StoreError(f"Service {service_name} is not installed in cluster {cluster.name}")

        target = context.get_target_repository_version(service_name)
        service.desired_repository = target

        for component in service.components:
            try:
                advertised = catalog.is_version_advertised(target.stack, service_name, component.name)
            except LookupError:
                logger.warning(
                    "Component %s/%s doesn't exist for stack %s.  Setting version to %s",
                    service_name, component.name, target.stack, UNKNOWN_VERSION,
                )
                advertised = False

            state = UpgradeState.IN_PROGRESS if advertised else UpgradeState.NONE
            for host in component.hosts:
                if host.upgrade_state is not state:
                    host.upgrade_state = state
                    changed += 1
                if not advertised and host.version != UNKNOWN_VERSION:
                    host.version = UNKNOWN_VERSION

            component.desired_repository = target

    logger.info("Moved %d component hosts to their new upgrade state", changed)
    return changed


def update_desired_repositories_and_configs(
    context: UpgradeContext,
    store: ConfigStore,
    catalog: MetadataCatalog,
    actor: str,
) -> ReconcileResult:
    """Repository transition plus configuration reconciliation, atomically.

    Raises:
        MergeFatalError: Either step failed; nothing was committed.
    """
    with store.transaction():
        try:
            set_desired_repositories(context, catalog)
        except StoreError as e:
            raise MergeFatalError(f"Repository transition failed: {e}") from e
        return reconcile_configurations(context, store, actor)
