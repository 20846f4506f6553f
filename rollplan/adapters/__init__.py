"""Adapters — collaborators the planner and merge engine talk to.

Public re-exports for convenient access.
"""

from rollplan.adapters.base import ConfigMap, ConfigStore, HostResolver, MetadataCatalog
from rollplan.adapters.catalog import StaticMetadataCatalog
from rollplan.adapters.config_store import InMemoryConfigStore
from rollplan.adapters.topology import ClusterHostResolver

__all__ = [
    "ClusterHostResolver",
    "ConfigMap",
    "ConfigStore",
    "HostResolver",
    "InMemoryConfigStore",
    "MetadataCatalog",
    "StaticMetadataCatalog",
]
