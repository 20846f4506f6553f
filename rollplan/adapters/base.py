"""
Collaborator contracts — the interfaces the planner consumes.

The planning engine only talks to the outside world through these
abstract classes:

    HostResolver     — which hosts run a component, and HA masters
    ConfigStore      — stack defaults, live configuration, revisions
    MetadataCatalog  — display names and version advertising

Implementations live next to this module (topology, config_store,
catalog); tests and embedders can supply their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from rollplan.core.models.cluster import Cluster, StackId
from rollplan.core.models.plan import HostsType

# configuration type -> property name -> value
ConfigMap = dict[str, dict[str, str | None]]


class HostResolver(ABC):
    """Resolves the hosts a service component is deployed on."""

    @abstractmethod
    def resolve(self, service_name: str, component_name: str) -> HostsType | None:
        """Hosts for a component, or None if it is not deployed anywhere."""

    @abstractmethod
    def is_namenode_ha(self) -> bool:
        """Whether HDFS NameNode high availability is enabled."""


class ConfigStore(ABC):
    """Cluster configuration persistence.

    Every method may raise ``StoreError`` when the backing store cannot
    answer; callers decide whether that is fatal.
    """

    @abstractmethod
    def get_default_properties(self, stack_id: StackId, service_name: str) -> ConfigMap:
        """Stack default properties for a service, keyed by config type.

        Returns a fresh copy the caller may mutate.
        """

    @abstractmethod
    def get_live_config(self, service_name: str) -> list[tuple[str, dict[str, str | None]]]:
        """The service's current (desired) configuration, one entry per type."""

    @abstractmethod
    def apply_latest_configurations(self, stack_id: StackId, service_name: str) -> None:
        """Make the newest revisions created for ``stack_id`` desired again."""

    @abstractmethod
    def create_config_types(
        self,
        cluster: Cluster,
        stack_id: StackId,
        configs: ConfigMap,
        actor: str,
        comment: str,
        service_name: str = "",
    ) -> None:
        """Create and select a new revision for every type in ``configs``."""

    @abstractmethod
    def get_placeholder_value(self, cluster: Cluster, token: str) -> str | None:
        """Resolve a ``{{type/property}}`` token against desired configuration."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Context manager; changes made inside are discarded if it raises."""


class MetadataCatalog(ABC):
    """Read-only stack/service metadata."""

    @abstractmethod
    def get_display_name(self, stack_id: StackId, service_name: str) -> str:
        """Display name of a service; raises ``LookupError`` if unknown."""

    @abstractmethod
    def get_component_display_name(
        self, stack_id: StackId, service_name: str, component_name: str
    ) -> str:
        """Display name of a component; raises ``LookupError`` if unknown."""

    @abstractmethod
    def is_version_advertised(
        self, stack_id: StackId, service_name: str, component_name: str
    ) -> bool:
        """Whether the component reports its own version; raises ``LookupError`` if unknown."""
