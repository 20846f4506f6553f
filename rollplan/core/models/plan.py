"""
Plan model — the ordered output of sequence planning.

    UpgradeGroupHolder → StageWrapper → TaskWrapper → Task

Stages run in order; the task wrappers inside one stage may run
concurrently across their hosts. These are short-lived objects created
per planning call and handed to the executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from rollplan.core.models.pack import GroupKind, Task


@dataclass
class HostsType:
    """Resolved target hosts for one service/component."""

    hosts: list[str] = field(default_factory=list)
    master: str | None = None
    secondary: str | None = None
    unhealthy: list[str] = field(default_factory=list)

    def copy_with_hosts(self, hosts: list[str]) -> HostsType:
        return HostsType(
            hosts=list(hosts),
            master=self.master,
            secondary=self.secondary,
            unhealthy=list(self.unhealthy),
        )


class StageType(StrEnum):
    """What kind of step a stage performs."""

    PROCESSING = "PROCESSING"
    STOP = "STOP"
    START = "START"
    RESTART = "RESTART"
    SERVICE_CHECK = "SERVICE_CHECK"
    SERVER_SIDE = "SERVER_SIDE"


@dataclass
class TaskWrapper:
    """Tasks bound to a service/component and a set of hosts."""

    service: str
    component: str
    hosts: list[str]
    tasks: list[Task]
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "component": self.component,
            "hosts": list(self.hosts),
            "params": dict(self.params),
            "tasks": [t.model_dump(mode="json", exclude_defaults=True) for t in self.tasks],
        }

    def __str__(self) -> str:
        types = ",".join(t.type.value for t in self.tasks)
        return f"{self.service}/{self.component} [{types}] on {','.join(self.hosts)}"


@dataclass
class StageWrapper:
    """One executable step: task wrappers plus display text."""

    type: StageType
    tasks: list[TaskWrapper] = field(default_factory=list)
    text: str | None = None

    @property
    def hosts(self) -> list[str]:
        seen: dict[str, None] = {}
        for wrapper in self.tasks:
            for host in wrapper.hosts:
                seen.setdefault(host, None)
        return list(seen)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "text": self.text,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class UpgradeGroupHolder:
    """A planned grouping with its ordered stages."""

    name: str
    title: str
    group_kind: GroupKind = GroupKind.DEFAULT
    allow_retry: bool = True
    skippable: bool = False
    supports_auto_skip_on_failure: bool = True
    items: list[StageWrapper] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "kind": self.group_kind.value,
            "allow_retry": self.allow_retry,
            "skippable": self.skippable,
            "supports_auto_skip_on_failure": self.supports_auto_skip_on_failure,
            "stages": [s.to_dict() for s in self.items],
        }

    def __str__(self) -> str:
        return (
            f"UpgradeGroupHolder{{name={self.name}, title={self.title}, "
            f"allowRetry={self.allow_retry}, skippable={self.skippable}}}"
        )


@dataclass
class PlanningNotes:
    """Informational findings collected while planning.

    Passed explicitly into ``create_sequence``; nothing here affects
    the plan itself.
    """

    unhealthy_hosts: list[str] = field(default_factory=list)
    service_display: dict[str, str] = field(default_factory=dict)
    component_display: dict[tuple[str, str], str] = field(default_factory=dict)
    skipped: list[tuple[str, str, str]] = field(default_factory=list)  # (service, component, reason)

    def add_unhealthy(self, hosts: list[str]) -> None:
        for host in hosts:
            if host not in self.unhealthy_hosts:
                self.unhealthy_hosts.append(host)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unhealthy_hosts": list(self.unhealthy_hosts),
            "service_display": dict(self.service_display),
            "component_display": {
                f"{svc}/{comp}": name for (svc, comp), name in self.component_display.items()
            },
            "skipped": [
                {"service": s, "component": c, "reason": r} for s, c, r in self.skipped
            ],
        }
