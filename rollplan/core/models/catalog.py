"""
Stack catalog model — per-stack service metadata and defaults.

Loaded from ``stacks.yml``::

    stacks:
      HDP-2.3:
        services:
          HDFS:
            display_name: HDFS
            components:
              NAMENODE: {display_name: NameNode}
            configurations:
              hdfs-site: {dfs.replication: "3"}
    repositories:
      - {version: 2.3.0.0-2557, stack: HDP-2.3}
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from rollplan.core.models.cluster import RepositoryVersion, StackId


class ComponentInfo(BaseModel):
    display_name: str = ""
    version_advertised: bool = True


class ServiceInfo(BaseModel):
    display_name: str = ""
    components: dict[str, ComponentInfo] = Field(default_factory=dict)
    configurations: dict[str, dict[str, str | None]] = Field(default_factory=dict)


class StackDefinition(BaseModel):
    services: dict[str, ServiceInfo] = Field(default_factory=dict)


class StackCatalog(BaseModel):
    """All known stacks and installable repository versions."""

    stacks: dict[str, StackDefinition] = Field(default_factory=dict)
    repositories: list[RepositoryVersion] = Field(default_factory=list)

    def get_stack(self, stack_id: StackId) -> StackDefinition | None:
        return self.stacks.get(str(stack_id))

    def get_service(self, stack_id: StackId, service_name: str) -> ServiceInfo | None:
        stack = self.get_stack(stack_id)
        if stack is None:
            return None
        return stack.services.get(service_name)

    def find_repository(self, stack_name: str, version: str) -> RepositoryVersion | None:
        """Repository with ``version`` belonging to any stack named ``stack_name``."""
        for repo in self.repositories:
            if repo.stack.name == stack_name and repo.version == version:
                return repo
        return None
