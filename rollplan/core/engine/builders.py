"""
Stage wrapper builders — turn planned components into ordered stages.

Each grouping kind owns one builder strategy. The sequence planner
feeds a fresh builder every component of a grouping through ``add()``
and then calls ``build()`` once; stage order inside a grouping is
entirely the builder's business.

Builders are looked up by ``GroupKind``. Embedders can swap or add
strategies with ``register_builder()``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from rollplan.core.models.direction import UpgradeType
from rollplan.core.models.pack import GroupKind, Grouping, ProcessingComponent, Task, TaskType
from rollplan.core.models.plan import HostsType, StageType, StageWrapper, TaskWrapper

if TYPE_CHECKING:
    from rollplan.core.models.context import UpgradeContext

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    """One ``add()`` call."""

    service: str
    component: str
    hosts: list[str]
    client_only: bool
    processing: ProcessingComponent
    params: dict[str, Any] = field(default_factory=dict)


class StageWrapperBuilder(ABC):
    """Strategy that materializes the stages of one grouping."""

    def __init__(self, grouping: Grouping):
        self.grouping = grouping
        self.perform_service_check = grouping.perform_service_check
        self._entries: list[_Entry] = []

    def add(
        self,
        context: UpgradeContext,
        hosts_type: HostsType,
        service_name: str,
        client_only: bool,
        processing: ProcessingComponent,
        params: dict[str, Any] | None,
    ) -> None:
        """Queue a component (on ``hosts_type.hosts``) for this grouping."""
        self._entries.append(
            _Entry(
                service=service_name,
                component=processing.name,
                hosts=list(hosts_type.hosts),
                client_only=client_only,
                processing=processing,
                params=dict(params or {}),
            )
        )

    @abstractmethod
    def build(self, context: UpgradeContext) -> list[StageWrapper]:
        """Ordered stages for everything added so far."""

    # ── Shared helpers ───────────────────────────────────────────

    def _wrap(self, entry: _Entry, tasks: list[Task], hosts: list[str] | None = None) -> TaskWrapper:
        # Tasks are copied so rendering never touches the pack itself
        return TaskWrapper(
            service=entry.service,
            component=entry.component,
            hosts=list(entry.hosts if hosts is None else hosts),
            tasks=[t.model_copy(deep=True) for t in tasks],
            params=dict(entry.params),
        )

    def _service_check_stage(self) -> StageWrapper | None:
        if not self.perform_service_check:
            return None

        services: list[str] = []
        for entry in self._entries:
            if not entry.client_only and entry.service not in services:
                services.append(entry.service)
        return _service_check_stage(services)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} grouping={self.grouping.name!r}>"


def _service_check_stage(services: list[str]) -> StageWrapper | None:
    if not services:
        return None
    return StageWrapper(
        type=StageType.SERVICE_CHECK,
        tasks=[
            TaskWrapper(service=s, component="", hosts=[], tasks=[Task(type=TaskType.SERVICE_CHECK)])
            for s in services
        ],
        text=f"Service Check {', '.join(services)}",
    )


def _stage_type(tasks: list[Task]) -> StageType:
    types = {t.type for t in tasks}
    if len(types) == 1:
        only = types.pop()
        for stage_type in (StageType.STOP, StageType.START, StageType.RESTART):
            if only.value == stage_type.value:
                return stage_type
    return StageType.PROCESSING


class SerialBuilder(StageWrapperBuilder):
    """Components one after another, in the order they were added.

    Per component: pre-tasks, then the main tasks (one host at a time
    for rolling upgrades, all hosts at once otherwise), then post-tasks.
    A single service check stage closes the grouping.
    """

    def build(self, context: UpgradeContext) -> list[StageWrapper]:
        stages: list[StageWrapper] = []
        verb = context.direction.verb(proper=True)

        for entry in self._entries:
            pc = entry.processing
            if pc.pre_tasks:
                stages.append(StageWrapper(
                    type=StageType.PROCESSING,
                    tasks=[self._wrap(entry, pc.pre_tasks)],
                    text=f"Preparing {entry.component}",
                ))

            if pc.tasks:
                if context.type is UpgradeType.ROLLING:
                    for host in entry.hosts:
                        stages.append(StageWrapper(
                            type=_stage_type(pc.tasks),
                            tasks=[self._wrap(entry, pc.tasks, [host])],
                            text=f"{verb} {entry.component} on {host}",
                        ))
                else:
                    stages.append(StageWrapper(
                        type=_stage_type(pc.tasks),
                        tasks=[self._wrap(entry, pc.tasks)],
                        text=f"{verb} {entry.component}",
                    ))

            if pc.post_tasks:
                stages.append(StageWrapper(
                    type=StageType.PROCESSING,
                    tasks=[self._wrap(entry, pc.post_tasks)],
                    text=f"Completing {entry.component}",
                ))

        check = self._service_check_stage()
        if check is not None and stages:
            stages.append(check)
        return stages


class ColocatedBuilder(StageWrapperBuilder):
    """All components on a host are handled together, host by host."""

    def build(self, context: UpgradeContext) -> list[StageWrapper]:
        by_host: dict[str, list[TaskWrapper]] = {}
        for entry in self._entries:
            tasks = entry.processing.pre_tasks + entry.processing.tasks + entry.processing.post_tasks
            if not tasks:
                continue
            for host in entry.hosts:
                by_host.setdefault(host, []).append(self._wrap(entry, tasks, [host]))

        verb = context.direction.verb(proper=True)
        stages = [
            StageWrapper(
                type=StageType.PROCESSING,
                tasks=wrappers,
                text=f"{verb} {', '.join(w.component for w in wrappers)} on {host}",
            )
            for host, wrappers in by_host.items()
        ]

        check = self._service_check_stage()
        if check is not None and stages:
            stages.append(check)
        return stages


class FunctionBuilder(StageWrapperBuilder):
    """Stop / start / restart groupings: one stage per added host group.

    An explicit pack entry keeps its bespoke steps: pre-tasks and
    post-tasks get their own stages around the main one.
    """

    _WORDS = {TaskType.STOP: "Stopping", TaskType.START: "Starting", TaskType.RESTART: "Restarting"}

    def build(self, context: UpgradeContext) -> list[StageWrapper]:
        function = self.grouping.function
        word = self._WORDS.get(function, "Processing") if function else "Processing"

        stages: list[StageWrapper] = []
        for entry in self._entries:
            pc = entry.processing
            role = entry.params.get("desired_namenode_role")
            suffix = f" ({role})" if role else ""

            if pc.pre_tasks:
                stages.append(StageWrapper(
                    type=StageType.PROCESSING,
                    tasks=[self._wrap(entry, pc.pre_tasks)],
                    text=f"Preparing {entry.component}{suffix}",
                ))

            if pc.tasks:
                stages.append(StageWrapper(
                    type=_stage_type(pc.tasks),
                    tasks=[self._wrap(entry, pc.tasks)],
                    text=f"{word} {entry.component}{suffix}",
                ))

            if pc.post_tasks:
                stages.append(StageWrapper(
                    type=StageType.PROCESSING,
                    tasks=[self._wrap(entry, pc.post_tasks)],
                    text=f"Completing {entry.component}{suffix}",
                ))

        # Nothing to check on stopped services
        if function is not TaskType.STOP:
            check = self._service_check_stage()
            if check is not None and stages:
                stages.append(check)
        return stages


class ServiceCheckBuilder(StageWrapperBuilder):
    """Runs service checks for the grouping's declared services.

    Components added by the planner are ignored; service checks do not
    depend on host placement. Rolling downgrades check in reverse order.
    """

    def build(self, context: UpgradeContext) -> list[StageWrapper]:
        orders = list(self.grouping.services)
        if context.type is UpgradeType.ROLLING and context.direction.is_downgrade:
            orders.reverse()

        services: list[str] = []
        for order in orders:
            name = order.service_name
            if not context.is_service_supported(name):
                continue
            service = context.cluster.get_service(name)
            if service is None or service.client_only:
                continue
            services.append(name)

        stage = _service_check_stage(services)
        return [stage] if stage is not None else []


class ClusterBuilder(StageWrapperBuilder):
    """Cluster-wide tasks (manual steps, server actions), one stage each."""

    def build(self, context: UpgradeContext) -> list[StageWrapper]:
        stages: list[StageWrapper] = []
        for task in self.grouping.cluster_tasks:
            stage_type = StageType.SERVER_SIDE if task.type is TaskType.SERVER_ACTION else StageType.PROCESSING
            stages.append(StageWrapper(
                type=stage_type,
                tasks=[TaskWrapper(service="", component="", hosts=[], tasks=[task.model_copy(deep=True)])],
                text=task.summary or self.grouping.title or task.type.value,
            ))
        return stages


# ── Registry ─────────────────────────────────────────────────────

BuilderFactory = Callable[[Grouping], StageWrapperBuilder]

_BUILDERS: dict[GroupKind, BuilderFactory] = {
    GroupKind.DEFAULT: SerialBuilder,
    GroupKind.COLOCATED: ColocatedBuilder,
    GroupKind.STOP: FunctionBuilder,
    GroupKind.START: FunctionBuilder,
    GroupKind.RESTART: FunctionBuilder,
    GroupKind.SERVICE_CHECK: ServiceCheckBuilder,
    GroupKind.CLUSTER: ClusterBuilder,
}


def register_builder(kind: GroupKind, factory: BuilderFactory) -> None:
    """Use ``factory`` to build stages for groupings of ``kind``."""
    if kind in _BUILDERS:
        logger.debug("Overriding builder for grouping kind %s", kind.value)
    _BUILDERS[kind] = factory


def create_builder(grouping: Grouping) -> StageWrapperBuilder:
    """A fresh builder for ``grouping``."""
    factory = _BUILDERS.get(grouping.kind, SerialBuilder)
    return factory(grouping)
