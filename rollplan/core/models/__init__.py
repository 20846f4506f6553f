"""
Domain models — Pydantic types for packs, clusters and stacks, plus the
plan dataclasses the planner produces.

Re-exported here for convenient access:

    from rollplan.core.models import UpgradePack, Cluster, Direction

``UpgradeContext`` depends on the adapter contracts and is imported from
``rollplan.core.models.context`` directly.
"""

from rollplan.core.models.catalog import (
    ComponentInfo,
    ServiceInfo,
    StackCatalog,
    StackDefinition,
)
from rollplan.core.models.cluster import (
    UNKNOWN_VERSION,
    Cluster,
    ConfigRevision,
    RepositoryVersion,
    Service,
    ServiceComponent,
    ServiceComponentHost,
    StackId,
    UpgradeState,
)
from rollplan.core.models.direction import Direction, UpgradeScope, UpgradeType
from rollplan.core.models.pack import (
    ConfigurationCondition,
    GroupKind,
    Grouping,
    OrderService,
    ProcessingComponent,
    ServiceCondition,
    Task,
    TaskType,
    UpgradePack,
)
from rollplan.core.models.plan import (
    HostsType,
    PlanningNotes,
    StageType,
    StageWrapper,
    TaskWrapper,
    UpgradeGroupHolder,
)

__all__ = [
    # catalog.py
    "ComponentInfo",
    "ServiceInfo",
    "StackCatalog",
    "StackDefinition",
    # cluster.py
    "UNKNOWN_VERSION",
    "Cluster",
    "ConfigRevision",
    "RepositoryVersion",
    "Service",
    "ServiceComponent",
    "ServiceComponentHost",
    "StackId",
    "UpgradeState",
    # direction.py
    "Direction",
    "UpgradeScope",
    "UpgradeType",
    # pack.py
    "ConfigurationCondition",
    "GroupKind",
    "Grouping",
    "OrderService",
    "ProcessingComponent",
    "ServiceCondition",
    "Task",
    "TaskType",
    "UpgradePack",
    # plan.py
    "HostsType",
    "PlanningNotes",
    "StageType",
    "StageWrapper",
    "TaskWrapper",
    "UpgradeGroupHolder",
]
