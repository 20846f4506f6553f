"""
Plan use case — build an upgrade or downgrade plan for a cluster.

Loads the cluster, the stack catalog and the upgrade pack (a single file,
or a directory to select from), builds the upgrade context and runs the
sequence planner. Nothing is written except an optional audit entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from rollplan.adapters.catalog import StaticMetadataCatalog
from rollplan.adapters.config_store import InMemoryConfigStore
from rollplan.adapters.topology import ClusterHostResolver
from rollplan.core.config.loader import ConfigError, load_cluster, load_stack_catalog
from rollplan.core.config.pack_loader import discover_upgrade_packs, load_upgrade_pack
from rollplan.core.engine.selection import suggest_upgrade_pack
from rollplan.core.engine.sequence import create_sequence
from rollplan.core.errors import PlanningError, PlanningInputError
from rollplan.core.models.catalog import StackCatalog
from rollplan.core.models.cluster import Cluster, RepositoryVersion
from rollplan.core.models.context import UpgradeContext
from rollplan.core.models.direction import Direction, UpgradeScope, UpgradeType
from rollplan.core.models.pack import UpgradePack
from rollplan.core.models.plan import PlanningNotes, UpgradeGroupHolder
from rollplan.core.persistence.audit import AuditEntry, AuditWriter, generate_operation_id

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Result of planning an upgrade."""

    groups: list[UpgradeGroupHolder] = field(default_factory=list)
    notes: PlanningNotes = field(default_factory=PlanningNotes)
    pack: UpgradePack | None = None
    context: UpgradeContext | None = None
    operation_id: str = ""
    error: str | None = None

    @property
    def stages_total(self) -> int:
        return sum(len(g.items) for g in self.groups)

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        if self.pack:
            result["pack"] = self.pack.name
        if self.context:
            result["cluster"] = self.context.cluster.name
            result["direction"] = self.context.direction.value
            result["type"] = self.context.type.value
            result["from"] = str(self.context.source_repository)
            result["to"] = str(self.context.target_repository)
        result["operation_id"] = self.operation_id
        result["groups"] = [g.to_dict() for g in self.groups]
        result["notes"] = self.notes.to_dict()
        return result


def build_context(
    cluster: Cluster,
    catalog: StackCatalog,
    direction: Direction,
    upgrade_type: UpgradeType,
    to_version: str,
    from_version: str | None = None,
    services: list[str] | None = None,
) -> UpgradeContext:
    """Assemble the upgrade context for a cluster and a version pair.

    Without ``services`` every installed service takes part and the
    scope is COMPLETE; an explicit subset makes the scope PARTIAL.

    Raises:
        PlanningInputError: A version or service is unknown.
    """
    stack_name = cluster.current_stack.name

    target = catalog.find_repository(stack_name, to_version)
    if target is None:
        raise PlanningInputError(f"Repository version {to_version} was not found")

    source = _source_repository(cluster, catalog, from_version)

    installed = [s.name for s in cluster.services]
    if services:
        unknown = sorted(set(services) - set(installed))
        if unknown:
            raise PlanningInputError(
                f"Services not installed in cluster {cluster.name}: {', '.join(unknown)}"
            )
        supported = set(services)
    else:
        supported = set(installed)

    scope = UpgradeScope.COMPLETE if supported == set(installed) else UpgradeScope.PARTIAL

    return UpgradeContext(
        cluster=cluster,
        direction=direction,
        type=upgrade_type,
        resolver=ClusterHostResolver(cluster),
        source_repository=source,
        target_repository=target,
        supported_services=supported,
        scope=scope,
    )


def _source_repository(
    cluster: Cluster, catalog: StackCatalog, from_version: str | None
) -> RepositoryVersion:
    stack_name = cluster.current_stack.name

    if from_version:
        source = catalog.find_repository(stack_name, from_version)
        if source is None:
            raise PlanningInputError(f"Repository version {from_version} was not found")
        return source

    # Fall back to whatever the services currently desire
    for service in cluster.services:
        if service.desired_repository is not None:
            return service.desired_repository

    for repo in catalog.repositories:
        if repo.stack == cluster.current_stack:
            return repo

    raise PlanningInputError(
        f"Unable to determine the current repository version of cluster {cluster.name}; "
        "pass it explicitly"
    )


def _load_pack(
    pack_path: Path,
    cluster: Cluster,
    catalog: StackCatalog,
    direction: Direction,
    upgrade_type: UpgradeType,
    to_version: str,
    from_version: str | None,
) -> UpgradePack:
    if pack_path.is_dir():
        packs = discover_upgrade_packs(pack_path)
        return suggest_upgrade_pack(
            packs, catalog, cluster.current_stack,
            from_version, to_version, direction, upgrade_type,
        )
    return load_upgrade_pack(pack_path)


def plan_upgrade(
    pack_path: Path,
    to_version: str,
    cluster_path: Path | None = None,
    stacks_path: Path | None = None,
    from_version: str | None = None,
    direction: Direction = Direction.UPGRADE,
    upgrade_type: UpgradeType = UpgradeType.ROLLING,
    services: list[str] | None = None,
    audit_path: Path | None = None,
) -> PlanResult:
    """Build the ordered plan for moving a cluster between versions.

    Args:
        pack_path: An upgrade pack file, or a directory of packs to select
            from by target stack and ``upgrade_type``.
        to_version: Repository version being moved to.
        cluster_path: Optional explicit path to cluster.yml.
        stacks_path: Optional explicit path to stacks.yml.
        from_version: Repository version being moved away from.
        direction: Upgrade or downgrade.
        upgrade_type: Orchestration type; a pack file's own type wins.
        services: Restrict the plan to these services.
        audit_path: When set, append an audit entry there.

    Returns:
        PlanResult with the groups and planning notes.
    """
    result = PlanResult(operation_id=generate_operation_id())

    try:
        cluster = load_cluster(cluster_path)
        catalog = load_stack_catalog(stacks_path)
        pack = _load_pack(
            pack_path, cluster, catalog, direction, upgrade_type, to_version, from_version
        )
        result.pack = pack

        context = build_context(
            cluster, catalog, direction, pack.type, to_version, from_version, services
        )
        result.context = context

        result.groups = create_sequence(
            pack,
            context,
            catalog=StaticMetadataCatalog(catalog),
            config_store=InMemoryConfigStore(cluster, catalog),
            notes=result.notes,
        )
    except (ConfigError, PlanningError) as e:
        result.error = str(e)

    if result.error:
        logger.error("Planning failed: %s", result.error)
    else:
        logger.info(
            "Planned %d groups with %d stages using %s",
            len(result.groups), result.stages_total, result.pack.name if result.pack else "?",
        )

    if audit_path is not None:
        AuditWriter(audit_path).write(_audit_entry(result, direction, to_version))

    return result


def _audit_entry(result: PlanResult, direction: Direction, to_version: str) -> AuditEntry:
    context = result.context
    return AuditEntry(
        operation_id=result.operation_id,
        operation_type="plan",
        cluster=context.cluster.name if context else "",
        direction=direction.value,
        upgrade_type=context.type.value if context else "",
        pack=result.pack.name if result.pack else "",
        target_version=to_version,
        services=context.get_supported_services() if context else [],
        status="failed" if result.error else "ok",
        groups_total=len(result.groups),
        stages_total=result.stages_total,
        errors=[result.error] if result.error else [],
        context={"skipped": len(result.notes.skipped)},
    )
