"""
Static metadata catalog — MetadataCatalog over a loaded StackCatalog.
"""

from __future__ import annotations

from rollplan.adapters.base import MetadataCatalog
from rollplan.core.models.catalog import ComponentInfo, ServiceInfo, StackCatalog
from rollplan.core.models.cluster import StackId


class StaticMetadataCatalog(MetadataCatalog):
    """Answers metadata lookups from ``stacks.yml`` content."""

    def __init__(self, catalog: StackCatalog):
        self._catalog = catalog

    def get_display_name(self, stack_id: StackId, service_name: str) -> str:
        info = self._service(stack_id, service_name)
        return info.display_name or service_name

    def get_component_display_name(
        self, stack_id: StackId, service_name: str, component_name: str
    ) -> str:
        info = self._component(stack_id, service_name, component_name)
        return info.display_name or component_name

    def is_version_advertised(
        self, stack_id: StackId, service_name: str, component_name: str
    ) -> bool:
        return self._component(stack_id, service_name, component_name).version_advertised

    def _service(self, stack_id: StackId, service_name: str) -> ServiceInfo:
        info = self._catalog.get_service(stack_id, service_name)
        if info is None:
            raise LookupError(f"Service {service_name} is not defined for stack {stack_id}")
        return info

    def _component(
        self, stack_id: StackId, service_name: str, component_name: str
    ) -> ComponentInfo:
        info = self._service(stack_id, service_name).components.get(component_name)
        if info is None:
            raise LookupError(
                f"Component {service_name}/{component_name} is not defined for stack {stack_id}"
            )
        return info
