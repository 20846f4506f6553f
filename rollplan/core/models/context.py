"""
Upgrade context — everything one planning or reconciliation call needs.

The caller owns the context; the planner only borrows it for the
duration of a call and never writes back into it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rollplan.adapters.base import HostResolver
from rollplan.core.models.cluster import Cluster, RepositoryVersion
from rollplan.core.models.direction import Direction, UpgradeScope, UpgradeType


@dataclass
class UpgradeContext:
    """Direction, orchestration type, versions and collaborators of a run.

    Source/target repositories can be overridden per service; services
    without an override use ``source_repository`` / ``target_repository``.
    ``repository_version`` is the version the run is moving to and is
    what ``{{version}}`` renders.
    """

    cluster: Cluster
    direction: Direction
    type: UpgradeType
    resolver: HostResolver
    source_repository: RepositoryVersion
    target_repository: RepositoryVersion
    supported_services: set[str] = field(default_factory=set)
    scope: UpgradeScope = UpgradeScope.COMPLETE
    source_overrides: dict[str, RepositoryVersion] = field(default_factory=dict)
    target_overrides: dict[str, RepositoryVersion] = field(default_factory=dict)

    @property
    def repository_version(self) -> RepositoryVersion:
        return self.target_repository

    def is_scoped(self, scope: UpgradeScope) -> bool:
        """Whether a grouping with ``scope`` applies to this run.

        ANY groupings always apply. Otherwise the run must be COMPLETE or
        PARTIAL and match; a run scoped ANY takes only ANY groupings.
        """
        if scope is UpgradeScope.ANY:
            return True
        if self.scope in (UpgradeScope.COMPLETE, UpgradeScope.PARTIAL):
            return scope is self.scope
        return False

    def is_service_supported(self, service_name: str) -> bool:
        return service_name in self.supported_services

    def get_supported_services(self) -> list[str]:
        """Participating services in a stable (sorted) order."""
        return sorted(self.supported_services)

    def get_source_repository_version(self, service_name: str) -> RepositoryVersion:
        return self.source_overrides.get(service_name, self.source_repository)

    def get_target_repository_version(self, service_name: str) -> RepositoryVersion:
        return self.target_overrides.get(service_name, self.target_repository)
