"""
Upgrade pack model — the declarative upgrade definition.

An upgrade pack is loaded from YAML and is read-only while a plan is
being built. It declares:

    - the ordered groupings for each direction
    - per service/component processing tasks
    - the target stack and orchestration type it applies to
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

from rollplan.core.models.direction import Direction, UpgradeScope, UpgradeType

if TYPE_CHECKING:
    from rollplan.core.engine.builders import StageWrapperBuilder
    from rollplan.core.models.context import UpgradeContext


class TaskType(StrEnum):
    """What a single task does on a host."""

    EXECUTE = "EXECUTE"
    CONFIGURE = "CONFIGURE"
    MANUAL = "MANUAL"
    RESTART = "RESTART"
    START = "START"
    STOP = "STOP"
    SERVICE_CHECK = "SERVICE_CHECK"
    SERVER_ACTION = "SERVER_ACTION"


class Task(BaseModel):
    """One unit of work for a component.

    ``summary`` and (for MANUAL tasks) ``messages`` may carry
    ``{{...}}`` placeholder tokens that are rendered after planning.
    """

    type: TaskType
    summary: str | None = None
    messages: list[str] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        return _upper(value)

    @property
    def is_manual(self) -> bool:
        return self.type is TaskType.MANUAL


class ProcessingComponent(BaseModel):
    """The explicit task list for one component."""

    name: str
    pre_tasks: list[Task] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    post_tasks: list[Task] = Field(default_factory=list)

    @classmethod
    def synthesize(cls, name: str, task_type: TaskType) -> ProcessingComponent:
        """A processing component with exactly one task of ``task_type``."""
        return cls(name=name, tasks=[Task(type=task_type)])


class OrderService(BaseModel):
    """A service and the order its components are processed in."""

    service_name: str
    components: list[str] = Field(default_factory=list)


# ── Conditions ───────────────────────────────────────────────────


class ConfigurationCondition(BaseModel):
    """Satisfied when a desired configuration property compares as declared."""

    kind: Literal["config"] = "config"
    config_type: str
    property: str
    comparison: Literal["equals", "not-equals", "contains", "not-contains"] = "equals"
    value: str = ""

    def is_satisfied(self, context: UpgradeContext) -> bool:
        actual = context.cluster.desired_properties(self.config_type).get(self.property)
        if self.comparison == "equals":
            return actual == self.value
        if self.comparison == "not-equals":
            return actual != self.value
        if self.comparison == "contains":
            return actual is not None and self.value in actual
        return actual is None or self.value not in actual

    def __str__(self) -> str:
        return f"{self.config_type}/{self.property} {self.comparison} {self.value!r}"


class ServiceCondition(BaseModel):
    """Satisfied when a service is (or is not) taking part in the upgrade."""

    kind: Literal["service"] = "service"
    service_name: str
    present: bool = True

    def is_satisfied(self, context: UpgradeContext) -> bool:
        return context.is_service_supported(self.service_name) == self.present

    def __str__(self) -> str:
        state = "present" if self.present else "absent"
        return f"service {self.service_name} {state}"


Condition = Annotated[
    Union[ConfigurationCondition, ServiceCondition],
    Field(discriminator="kind"),
]


# ── Groupings ────────────────────────────────────────────────────


class GroupKind(StrEnum):
    """Grouping subtype; selects the stage wrapper builder."""

    DEFAULT = "default"
    COLOCATED = "colocated"
    STOP = "stop"
    START = "start"
    RESTART = "restart"
    SERVICE_CHECK = "service-check"
    CLUSTER = "cluster"


_FUNCTIONS: dict[GroupKind, TaskType] = {
    GroupKind.STOP: TaskType.STOP,
    GroupKind.START: TaskType.START,
    GroupKind.RESTART: TaskType.RESTART,
}


class Grouping(BaseModel):
    """A named phase of the upgrade."""

    name: str
    title: str = ""
    kind: GroupKind = GroupKind.DEFAULT
    scope: UpgradeScope = UpgradeScope.ANY
    condition: Condition | None = None

    skippable: bool = False
    allow_retry: bool = True
    supports_auto_skip_on_failure: bool = True
    perform_service_check: bool = True

    services: list[OrderService] = Field(default_factory=list)
    cluster_tasks: list[Task] = Field(default_factory=list)  # kind: cluster only

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower().replace("_", "-")
        return value

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> Any:
        return _upper(value)

    @property
    def function(self) -> TaskType | None:
        """The implicit action of a function group (stop/start/restart)."""
        return _FUNCTIONS.get(self.kind)

    @property
    def is_service_check(self) -> bool:
        return self.kind is GroupKind.SERVICE_CHECK

    def get_builder(self) -> StageWrapperBuilder:
        """A fresh stage wrapper builder for this grouping's kind."""
        from rollplan.core.engine.builders import create_builder

        return create_builder(self)

    def __str__(self) -> str:
        return f"Grouping(name={self.name}, kind={self.kind.value})"


class UpgradePack(BaseModel):
    """Declarative definition of an upgrade for a stack and orchestration type."""

    name: str
    target: str = ""                # target version pattern, informational
    target_stack: str               # e.g. "HDP-2.3"
    type: UpgradeType = UpgradeType.ROLLING

    groups: list[Grouping] = Field(default_factory=list)
    downgrade_groups: list[Grouping] | None = None

    # service -> component -> processing
    processing: dict[str, dict[str, ProcessingComponent]] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        return _upper(value)

    @field_validator("processing", mode="before")
    @classmethod
    def _fill_component_names(cls, value: Any) -> Any:
        """Allow YAML to omit ``name`` under its own component key."""
        if not isinstance(value, dict):
            return value
        for components in value.values():
            if not isinstance(components, dict):
                continue
            for component, pc in components.items():
                if isinstance(pc, dict):
                    pc.setdefault("name", component)
        return value

    def get_groups(self, direction: Direction) -> list[Grouping]:
        """Groupings in execution order for ``direction``.

        Downgrades use ``downgrade_groups`` when declared, otherwise
        the upgrade groupings in reverse.
        """
        if direction.is_upgrade:
            return list(self.groups)
        if self.downgrade_groups is not None:
            return list(self.downgrade_groups)
        return list(reversed(self.groups))

    def has_service(self, service_name: str) -> bool:
        return service_name in self.processing

    def get_processing(self, service_name: str, component: str) -> ProcessingComponent | None:
        return self.processing.get(service_name, {}).get(component)


def _upper(value: Any) -> Any:
    if isinstance(value, str):
        return value.upper().replace("-", "_")
    return value
