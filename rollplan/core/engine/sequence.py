"""
Sequence planner — turns an upgrade pack and context into an ordered plan.

The planner is the heart of rollplan. For every grouping of the pack
(in direction order) it decides which services and components take
part, resolves their hosts, picks or synthesizes their tasks, and feeds
them to the grouping's stage wrapper builder.

Flow:
    groupings → scope/condition filter → services → components
        → hosts → processing component → builder.add() → builder.build()
        → post-process text → UpgradeGroupHolder

Skipping a component is never an error: each skip has a ``SkipReason``,
is logged, and is recorded on the ``PlanningNotes`` passed in.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from rollplan.adapters.base import ConfigStore, MetadataCatalog
from rollplan.core.engine.builders import StageWrapperBuilder
from rollplan.core.engine.placeholders import PlaceholderResolver
from rollplan.core.engine.post_process import post_process
from rollplan.core.engine.processing import resolve_processing
from rollplan.core.errors import PlanningError
from rollplan.core.models.context import UpgradeContext
from rollplan.core.models.direction import UpgradeType
from rollplan.core.models.pack import ProcessingComponent, UpgradePack
from rollplan.core.models.plan import HostsType, PlanningNotes, UpgradeGroupHolder

logger = logging.getLogger(__name__)

NAMENODE_ROLE_PARAM = "desired_namenode_role"


class SkipReason(StrEnum):
    """Why a service or component was left out of a grouping."""

    SERVICE_NOT_SUPPORTED = "service-not-supported"
    SERVICE_NOT_IN_PACK = "service-not-in-pack"
    COMPONENT_NOT_IN_PACK = "component-not-in-pack"
    NO_HOSTS = "no-hosts"
    NO_PROCESSING = "no-processing-component"
    NAMENODE_UNRESOLVED = "namenode-hosts-unresolved"


def create_sequence(
    pack: UpgradePack,
    context: UpgradeContext,
    *,
    catalog: MetadataCatalog | None = None,
    config_store: ConfigStore | None = None,
    notes: PlanningNotes | None = None,
) -> list[UpgradeGroupHolder]:
    """Build the ordered group/stage/task plan for an upgrade or downgrade.

    Args:
        pack: The upgrade pack to plan from.
        context: Direction, type, versions, participating services, resolver.
        catalog: Optional metadata catalog for display names.
        config_store: Optional store used to render configuration tokens.
        notes: Optional accumulator for unhealthy hosts, display names
            and skips. A throwaway one is used when omitted.

    Returns:
        Group holders in execution order. Groupings whose builder yields
        no stages are left out.

    Raises:
        PlanningError: A resolved component belongs to a service the
            cluster does not know.
    """
    notes = notes if notes is not None else PlanningNotes()
    resolver = PlaceholderResolver(context, config_store)
    rolling = pack.type is UpgradeType.ROLLING

    groups: list[UpgradeGroupHolder] = []

    for group in pack.get_groups(context.direction):
        if not context.is_scoped(group.scope):
            logger.debug("Skipping %s: scope %s does not apply", group, group.scope.value)
            continue

        if group.condition is not None and not group.condition.is_satisfied(context):
            logger.info(
                "Skipping %s while building upgrade orchestration due to %s",
                group, group.condition,
            )
            continue

        holder = UpgradeGroupHolder(
            name=group.name,
            title=group.title,
            group_kind=group.kind,
            allow_retry=group.allow_retry,
            skippable=group.skippable,
            supports_auto_skip_on_failure=group.supports_auto_skip_on_failure,
        )

        # all downgrades are skippable
        if context.direction.is_downgrade:
            holder.skippable = True

        function = group.function
        builder = group.get_builder()

        # non-rolling upgrades only run service checks in service-check groupings
        if pack.type is UpgradeType.NON_ROLLING and not group.is_service_check:
            builder.perform_service_check = False

        services = list(group.services)
        if rolling and context.direction.is_downgrade:
            services.reverse()

        for order in services:
            service_name = order.service_name

            if not context.is_service_supported(service_name):
                _skip(notes, service_name, "*", SkipReason.SERVICE_NOT_SUPPORTED)
                continue

            if rolling and not pack.has_service(service_name):
                _skip(notes, service_name, "*", SkipReason.SERVICE_NOT_IN_PACK)
                continue

            for component in order.components:
                if rolling and pack.get_processing(service_name, component) is None:
                    _skip(notes, service_name, component, SkipReason.COMPONENT_NOT_IN_PACK)
                    continue

                hosts_type = context.resolver.resolve(service_name, component)
                if hosts_type is None or not hosts_type.hosts:
                    _skip(notes, service_name, component, SkipReason.NO_HOSTS)
                    continue

                if hosts_type.unhealthy:
                    notes.add_unhealthy(hosts_type.unhealthy)

                pc = resolve_processing(pack, service_name, component, function)
                if pc is None:
                    logger.error(
                        "Couldn't create a processing component for service %s and component %s.",
                        service_name, component,
                    )
                    _skip(notes, service_name, component, SkipReason.NO_PROCESSING, log=False)
                    continue

                service = context.cluster.get_service(service_name)
                if service is None:
                    raise PlanningError(
                        f"Service {service_name} is not installed in cluster {context.cluster.name}"
                    )

                _set_display_names(context, catalog, notes, service_name, component)

                if service_name.upper() == "HDFS" and component.upper() == "NAMENODE":
                    _add_namenode(
                        builder, context, pack.type, hosts_type,
                        service_name, service.client_only, pc, notes,
                    )
                else:
                    builder.add(context, hosts_type, service_name, service.client_only, pc, None)

        stages = builder.build(context)
        if stages:
            holder.items = stages
            post_process(resolver, holder)
            groups.append(holder)
        else:
            logger.debug("Grouping %s produced no stages and is omitted", group.name)

    if logger.isEnabledFor(logging.DEBUG):
        _log_plan(groups)

    return groups


def _add_namenode(
    builder: StageWrapperBuilder,
    context: UpgradeContext,
    upgrade_type: UpgradeType,
    hosts_type: HostsType,
    service_name: str,
    client_only: bool,
    pc: ProcessingComponent,
    notes: PlanningNotes,
) -> None:
    """Submit HDFS NameNode hosts, honoring active/standby roles.

    Rolling: standby first, then active, in one host group.
    Non-rolling with HA: one single-host group per role, each tagged
    with the role it should take.
    Anything else (including host-ordered): all hosts in one group.
    """
    if upgrade_type is UpgradeType.ROLLING:
        if hosts_type.hosts and hosts_type.master and hosts_type.secondary:
            ordered = list(dict.fromkeys([hosts_type.secondary, hosts_type.master]))
            builder.add(context, hosts_type.copy_with_hosts(ordered), service_name, client_only, pc, None)
        else:
            logger.warning(
                "Could not orchestrate NameNode.  Hosts could not be resolved: "
                "hosts=%s, active=%s, standby=%s",
                ",".join(hosts_type.hosts), hosts_type.master, hosts_type.secondary,
            )
            _skip(notes, service_name, pc.name, SkipReason.NAMENODE_UNRESOLVED, log=False)
        return

    if upgrade_type is UpgradeType.NON_ROLLING:
        if context.resolver.is_namenode_ha() and hosts_type.master and hosts_type.secondary:
            # Both NameNodes are handled in the same step but need different roles
            active = HostsType(hosts=[hosts_type.master])
            standby = HostsType(hosts=[hosts_type.secondary])
            builder.add(context, active, service_name, client_only, pc, {NAMENODE_ROLE_PARAM: "active"})
            builder.add(context, standby, service_name, client_only, pc, {NAMENODE_ROLE_PARAM: "standby"})
            return

    builder.add(context, hosts_type, service_name, client_only, pc, None)


def _set_display_names(
    context: UpgradeContext,
    catalog: MetadataCatalog | None,
    notes: PlanningNotes,
    service_name: str,
    component: str,
) -> None:
    if catalog is None:
        return

    stack_id = context.cluster.effective_desired_stack
    try:
        notes.service_display[service_name] = catalog.get_display_name(stack_id, service_name)
        notes.component_display[(service_name, component)] = catalog.get_component_display_name(
            stack_id, service_name, component
        )
    except LookupError as e:
        logger.debug("Could not get service detail: %s", e)


def _skip(
    notes: PlanningNotes,
    service_name: str,
    component: str,
    reason: SkipReason,
    log: bool = True,
) -> None:
    if log:
        logger.debug("Skipping %s/%s: %s", service_name, component, reason.value)
    notes.skipped.append((service_name, component, reason.value))


def _log_plan(groups: list[UpgradeGroupHolder]) -> None:
    for group in groups:
        logger.debug(group.name)
        for i, stage in enumerate(group.items):
            logger.debug("  Stage %d", i)
            for j, task in enumerate(stage.tasks):
                logger.debug("    Task %d %s", j, task)
