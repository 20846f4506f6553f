"""
Cluster model — services, components, hosts and configuration revisions.

This is the observed state the planner reads from and the repository /
configuration transition writes into. It round-trips through
``cluster.yml`` (see ``rollplan.core.persistence.cluster_file``).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Version reported by a component host that does not advertise one
UNKNOWN_VERSION = "UNKNOWN"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StackId(BaseModel, frozen=True):
    """A stack name and version, written ``HDP-2.3``."""

    name: str
    version: str

    @classmethod
    def parse(cls, value: str) -> StackId:
        name, sep, version = value.rpartition("-")
        if not sep or not name or not version:
            raise ValueError(f"Invalid stack id {value!r}, expected NAME-VERSION")
        return cls(name=name, version=version)

    def __str__(self) -> str:
        return f"{self.name}-{self.version}"


class RepositoryVersion(BaseModel):
    """A concrete, installable build of a stack (e.g. 2.3.0.0-2557)."""

    version: str
    stack: StackId

    @field_validator("stack", mode="before")
    @classmethod
    def _parse_stack(cls, value: Any) -> Any:
        if isinstance(value, str):
            return StackId.parse(value)
        return value

    @property
    def stack_id(self) -> str:
        return str(self.stack)

    def __str__(self) -> str:
        return f"{self.stack}/{self.version}"


class UpgradeState(StrEnum):
    """Upgrade progress of one component on one host."""

    NONE = "NONE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class ServiceComponentHost(BaseModel):
    """A component installed on a host."""

    host_name: str
    healthy: bool = True
    version: str = UNKNOWN_VERSION
    upgrade_state: UpgradeState = UpgradeState.NONE


class ServiceComponent(BaseModel):
    """A component of a service and the hosts it is installed on."""

    name: str
    hosts: list[ServiceComponentHost] = Field(default_factory=list)
    active_host: str | None = None    # master / active instance
    standby_host: str | None = None   # secondary / standby instance
    desired_repository: RepositoryVersion | None = None

    @property
    def host_names(self) -> list[str]:
        return [h.host_name for h in self.hosts]


class Service(BaseModel):
    """A cluster service."""

    name: str
    client_only: bool = False
    config_types: list[str] = Field(default_factory=list)
    components: list[ServiceComponent] = Field(default_factory=list)
    desired_repository: RepositoryVersion | None = None

    def get_component(self, name: str) -> ServiceComponent | None:
        for component in self.components:
            if component.name == name:
                return component
        return None


class ConfigRevision(BaseModel):
    """One immutable revision of a configuration type."""

    type: str
    tag: str
    stack: str
    service_name: str = ""
    properties: dict[str, str | None] = Field(default_factory=dict)
    created_by: str = ""
    note: str = ""
    created_at: str = Field(default_factory=_now_iso)


class Cluster(BaseModel):
    """Root cluster state."""

    name: str
    current_stack: StackId
    desired_stack: StackId | None = None

    services: list[Service] = Field(default_factory=list)

    # ── Configuration ────────────────────────────────────────────
    config_revisions: list[ConfigRevision] = Field(default_factory=list)
    desired_configs: dict[str, str] = Field(default_factory=dict)  # type -> tag

    @field_validator("current_stack", "desired_stack", mode="before")
    @classmethod
    def _parse_stack(cls, value: Any) -> Any:
        if isinstance(value, str):
            return StackId.parse(value)
        return value

    @property
    def effective_desired_stack(self) -> StackId:
        return self.desired_stack or self.current_stack

    def get_service(self, name: str) -> Service | None:
        for service in self.services:
            if service.name == name:
                return service
        return None

    def get_revision(self, config_type: str, tag: str) -> ConfigRevision | None:
        for revision in self.config_revisions:
            if revision.type == config_type and revision.tag == tag:
                return revision
        return None

    def desired_config(self, config_type: str) -> ConfigRevision | None:
        """The revision currently desired for ``config_type``."""
        tag = self.desired_configs.get(config_type)
        if tag is None:
            return None
        return self.get_revision(config_type, tag)

    def desired_properties(self, config_type: str) -> dict[str, str | None]:
        revision = self.desired_config(config_type)
        return dict(revision.properties) if revision else {}
