"""
Cluster host resolver — resolves hosts from the cluster model.

Masters come from the component's declared active/standby hosts.
Hosts flagged unhealthy are still targeted but reported so the
caller can surface them.
"""

from __future__ import annotations

import logging

from rollplan.adapters.base import HostResolver
from rollplan.core.models.cluster import Cluster
from rollplan.core.models.plan import HostsType

logger = logging.getLogger(__name__)

# hdfs-site properties that only exist when NameNode HA is configured
_NAMESERVICE_PROPERTIES = ("dfs.internal.nameservices", "dfs.nameservices")


class ClusterHostResolver(HostResolver):
    """HostResolver backed by a ``Cluster``."""

    def __init__(self, cluster: Cluster):
        self._cluster = cluster

    def resolve(self, service_name: str, component_name: str) -> HostsType | None:
        service = self._cluster.get_service(service_name)
        if service is None:
            logger.debug("Service %s is not installed", service_name)
            return None

        component = service.get_component(component_name)
        if component is None or not component.hosts:
            logger.debug("No hosts for %s/%s", service_name, component_name)
            return None

        hosts = component.host_names
        return HostsType(
            hosts=hosts,
            master=component.active_host if component.active_host in hosts else None,
            secondary=component.standby_host if component.standby_host in hosts else None,
            unhealthy=[h.host_name for h in component.hosts if not h.healthy],
        )

    def is_namenode_ha(self) -> bool:
        hdfs_site = self._cluster.desired_properties("hdfs-site")
        return any(hdfs_site.get(prop) for prop in _NAMESERVICE_PROPERTIES)
