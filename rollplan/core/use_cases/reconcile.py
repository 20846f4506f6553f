"""
Reconcile use case — move the cluster to the target repository.

Runs the desired repository transition and configuration reconciliation
in one transaction, then writes the cluster file back (unless dry-run).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from rollplan.adapters.catalog import StaticMetadataCatalog
from rollplan.adapters.config_store import InMemoryConfigStore
from rollplan.core.config.loader import (
    CLUSTER_CONFIG_FILE,
    ConfigError,
    find_config_file,
    load_cluster,
    load_stack_catalog,
)
from rollplan.core.engine.config_merge import ReconcileResult
from rollplan.core.engine.repositories import update_desired_repositories_and_configs
from rollplan.core.errors import MergeFatalError, PlanningError
from rollplan.core.models.context import UpgradeContext
from rollplan.core.models.direction import Direction, UpgradeType
from rollplan.core.persistence.audit import AuditEntry, AuditWriter, generate_operation_id
from rollplan.core.persistence.cluster_file import save_cluster
from rollplan.core.use_cases.plan import build_context

logger = logging.getLogger(__name__)


@dataclass
class ReconcileRunResult:
    """Result of a repository and configuration transition."""

    reconcile: ReconcileResult | None = None
    context: UpgradeContext | None = None
    cluster_path: Path | None = None
    saved: bool = False
    dry_run: bool = False
    operation_id: str = ""
    errors: list[str] = field(default_factory=list)

    @property
    def error(self) -> str | None:
        return self.errors[0] if self.errors else None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        if self.context:
            result["cluster"] = self.context.cluster.name
            result["direction"] = self.context.direction.value
            result["from"] = str(self.context.source_repository)
            result["to"] = str(self.context.target_repository)
        result["cluster_path"] = str(self.cluster_path) if self.cluster_path else None
        result["operation_id"] = self.operation_id
        result["dry_run"] = self.dry_run
        result["saved"] = self.saved
        if self.reconcile:
            result["configurations"] = self.reconcile.to_dict()
        return result


def run_reconcile(
    to_version: str,
    actor: str,
    cluster_path: Path | None = None,
    stacks_path: Path | None = None,
    from_version: str | None = None,
    direction: Direction = Direction.UPGRADE,
    services: list[str] | None = None,
    dry_run: bool = False,
    audit_path: Path | None = None,
) -> ReconcileRunResult:
    """Point the cluster at ``to_version`` and reconcile its configurations.

    Args:
        to_version: Repository version being moved to.
        actor: User recorded on created configuration revisions.
        cluster_path: Optional explicit path to cluster.yml.
        stacks_path: Optional explicit path to stacks.yml.
        from_version: Repository version being moved away from.
        direction: Upgrade or downgrade.
        services: Restrict the transition to these services.
        dry_run: Compute everything but don't write the cluster file.
        audit_path: When set, append an audit entry there.

    Returns:
        ReconcileRunResult describing what changed.
    """
    result = ReconcileRunResult(dry_run=dry_run, operation_id=generate_operation_id())

    if cluster_path is None:
        cluster_path = find_config_file(CLUSTER_CONFIG_FILE)
    result.cluster_path = cluster_path

    try:
        cluster = load_cluster(cluster_path)
        catalog = load_stack_catalog(stacks_path)

        # orchestration type plays no part in reconciliation
        context = build_context(
            cluster, catalog, direction, UpgradeType.ROLLING, to_version, from_version, services
        )
        result.context = context

        store = InMemoryConfigStore(cluster, catalog)
        result.reconcile = update_desired_repositories_and_configs(
            context, store, StaticMetadataCatalog(catalog), actor
        )
    except (ConfigError, PlanningError, MergeFatalError) as e:
        result.errors.append(str(e))

    if not result.errors and not dry_run and cluster_path is not None:
        try:
            save_cluster(cluster, cluster_path)
            result.saved = True
        except OSError as e:
            result.errors.append(f"Failed to save {cluster_path}: {e}")

    if result.errors:
        logger.error("Reconciliation failed: %s", result.error)

    if audit_path is not None:
        AuditWriter(audit_path).write(_audit_entry(result, direction, to_version))

    return result


def _audit_entry(result: ReconcileRunResult, direction: Direction, to_version: str) -> AuditEntry:
    context = result.context
    merged = result.reconcile.merged if result.reconcile else {}
    return AuditEntry(
        operation_id=result.operation_id,
        operation_type="reconcile",
        cluster=context.cluster.name if context else "",
        direction=direction.value,
        target_version=to_version,
        services=context.get_supported_services() if context else [],
        status="failed" if result.errors else "ok",
        errors=list(result.errors),
        context={
            "dry_run": result.dry_run,
            "saved": result.saved,
            "merged": {k: list(v) for k, v in merged.items()},
        },
    )
