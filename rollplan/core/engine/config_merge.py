"""
Configuration merge — reconcile configurations across a stack boundary.

Nothing happens for a service whose source and target repositories
belong to the same stack (HDP-2.2.0.0 → HDP-2.2.1.0 creates no new
configurations). Across stacks (HDP-2.2 → HDP-2.3):

    Upgrade:   create new revisions merging old-stack defaults, new-stack
               defaults and the live configuration. A new-stack default
               replaces a live value only if the operator never changed
               that value from the old-stack default.
    Downgrade: make the latest revisions of the target (older) stack
               desired again. Revisions created by the upgrade stay in
               place so components still on the new stack keep working.

The whole call runs in one store transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rollplan.adapters.base import ConfigMap, ConfigStore
from rollplan.core.errors import MergeFatalError, StoreError
from rollplan.core.models.context import UpgradeContext

logger = logging.getLogger(__name__)

UPGRADE_CONFIG_COMMENT = "Configuration created for Upgrade"


@dataclass
class ReconcileResult:
    """Which services were merged, reverted or left alone."""

    merged: dict[str, list[str]] = field(default_factory=dict)  # service -> config types
    reverted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "merged": {k: list(v) for k, v in self.merged.items()},
            "reverted": list(self.reverted),
            "unchanged": list(self.unchanged),
        }


def merge_configurations(
    old_defaults: ConfigMap,
    new_defaults: ConfigMap,
    live: list[tuple[str, dict[str, str | None]]],
) -> ConfigMap:
    """Three-way merge of one service's configuration.

    Rules, per configuration type present in ``live``:

        1. No new-stack defaults for the type → the live type carries over.
        2. New-stack defaults whose value is None are dropped. A live
           property with that key then carries over through rule 4.
        3. Live value differs from the new default:
              differs from the old default too → customized, live value wins
              equals the old default → never customized, new default wins
        4. Key unknown to the new defaults → the live value is added.
        5. Key in the old defaults but absent from live → removed; the
           cluster deliberately dropped it and it must not come back.

    Types only present in the new defaults are included with None
    values dropped.

    Returns:
        A fresh map of configuration type to merged properties.
    """
    merged: ConfigMap = {
        config_type: {k: v for k, v in props.items() if v is not None}
        for config_type, props in new_defaults.items()
    }

    for config_type, existing in live:
        old = old_defaults.get(config_type) or {}
        new = merged.get(config_type)

        if new is None:
            merged[config_type] = dict(existing)
            continue

        for key, value in existing.items():
            if key in new:
                if value != new[key] and value != old.get(key):
                    new[key] = value
            else:
                new[key] = value

        for key in list(new):
            if key in old and key not in existing:
                logger.info(
                    "The property %s/%s exists in both stacks but is not part of the "
                    "current set of configurations and will therefore not be included "
                    "in the configuration merge",
                    config_type, key,
                )
                del new[key]

    return merged


def reconcile_configurations(
    context: UpgradeContext,
    store: ConfigStore,
    actor: str,
) -> ReconcileResult:
    """Merge or revert configurations for every participating service.

    Args:
        context: Direction, cluster and per-service repositories.
        store: The configuration store.
        actor: User the new revisions are attributed to.

    Returns:
        What was done per service.

    Raises:
        MergeFatalError: A store lookup or write failed; the transaction
            was rolled back and nothing is visible.
    """
    with store.transaction():
        try:
            return _reconcile(context, store, actor)
        except StoreError as e:
            raise MergeFatalError(f"Configuration reconciliation failed: {e}") from e


def _reconcile(context: UpgradeContext, store: ConfigStore, actor: str) -> ReconcileResult:
    result = ReconcileResult()
    direction = context.direction

    for service_name in context.get_supported_services():
        source_stack = context.get_source_repository_version(service_name).stack
        target_stack = context.get_target_repository_version(service_name).stack

        if source_stack == target_stack:
            logger.info(
                "The %s %s %s will not change stack configurations for %s "
                "since the source and target are both %s",
                direction.text(), direction.preposition,
                context.repository_version.version, service_name, target_stack,
            )
            result.unchanged.append(service_name)
            continue

        if direction.is_downgrade:
            store.apply_latest_configurations(target_stack, service_name)
            result.reverted.append(service_name)
            continue

        old_defaults = store.get_default_properties(source_stack, service_name)
        new_defaults = store.get_default_properties(target_stack, service_name)
        live = store.get_live_config(service_name)

        merged = merge_configurations(old_defaults, new_defaults, live)
        if not merged:
            result.unchanged.append(service_name)
            continue

        logger.info(
            "The upgrade will create the following configurations for stack %s: %s",
            target_stack, ",".join(merged),
        )
        store.create_config_types(
            context.cluster, target_stack, merged, actor, UPGRADE_CONFIG_COMMENT,
            service_name=service_name,
        )
        result.merged[service_name] = list(merged)

    return result
