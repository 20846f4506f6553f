"""
Shared test fixtures and configuration.

The fixture world is a small HDP cluster ``c1`` on HDP-2.2 with ZooKeeper
and HA HDFS, an HDP-2.3 rolling upgrade pack and a stack catalog that
knows both stacks.
"""

import copy
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from rollplan.adapters.topology import ClusterHostResolver
from rollplan.core.models.catalog import StackCatalog
from rollplan.core.models.cluster import Cluster
from rollplan.core.models.context import UpgradeContext
from rollplan.core.models.direction import Direction, UpgradeScope, UpgradeType
from rollplan.core.models.pack import UpgradePack

SOURCE_VERSION = "2.2.0.0-2041"
PATCH_VERSION = "2.2.1.0-2100"
TARGET_VERSION = "2.3.0.0-2557"


STACKS_DATA = {
    "stacks": {
        "HDP-2.2": {
            "services": {
                "ZOOKEEPER": {
                    "display_name": "ZooKeeper",
                    "components": {
                        "ZOOKEEPER_SERVER": {"display_name": "ZooKeeper Server"},
                        "ZOOKEEPER_CLIENT": {
                            "display_name": "ZooKeeper Client",
                            "version_advertised": False,
                        },
                    },
                    "configurations": {
                        "zoo.cfg": {
                            "tickTime": "2000",
                            "dataDir": "/hadoop/zookeeper",
                            "autopurge.purgeInterval": "24",
                        },
                    },
                },
                "HDFS": {
                    "display_name": "HDFS",
                    "components": {
                        "NAMENODE": {"display_name": "NameNode"},
                        "DATANODE": {"display_name": "DataNode"},
                    },
                    "configurations": {
                        "hdfs-site": {
                            "dfs.replication": "3",
                            "dfs.blocksize": "134217728",
                        },
                    },
                },
            },
        },
        "HDP-2.3": {
            "services": {
                "ZOOKEEPER": {
                    "display_name": "ZooKeeper",
                    "components": {
                        "ZOOKEEPER_SERVER": {"display_name": "ZooKeeper Server"},
                        "ZOOKEEPER_CLIENT": {
                            "display_name": "ZooKeeper Client",
                            "version_advertised": False,
                        },
                    },
                    "configurations": {
                        "zoo.cfg": {
                            "tickTime": "3000",
                            "dataDir": "/hadoop/zookeeper",
                            "autopurge.purgeInterval": "24",
                            "autopurge.snapRetainCount": "30",
                        },
                    },
                },
                "HDFS": {
                    "display_name": "HDFS",
                    "components": {
                        "NAMENODE": {"display_name": "NameNode"},
                        "DATANODE": {"display_name": "DataNode"},
                    },
                    "configurations": {
                        "hdfs-site": {
                            "dfs.replication": "3",
                            "dfs.blocksize": "268435456",
                            "dfs.legacy.option": None,
                        },
                    },
                },
            },
        },
    },
    "repositories": [
        {"version": SOURCE_VERSION, "stack": "HDP-2.2"},
        {"version": PATCH_VERSION, "stack": "HDP-2.2"},
        {"version": TARGET_VERSION, "stack": "HDP-2.3"},
    ],
}


CLUSTER_DATA = {
    "name": "c1",
    "current_stack": "HDP-2.2",
    "services": [
        {
            "name": "ZOOKEEPER",
            "config_types": ["zoo.cfg"],
            "components": [
                {
                    "name": "ZOOKEEPER_SERVER",
                    "hosts": [{"host_name": "h1"}, {"host_name": "h2"}, {"host_name": "h3"}],
                },
                {"name": "ZOOKEEPER_CLIENT", "hosts": [{"host_name": "h1"}]},
            ],
        },
        {
            "name": "HDFS",
            "config_types": ["hdfs-site"],
            "components": [
                {
                    "name": "NAMENODE",
                    "hosts": [{"host_name": "h1"}, {"host_name": "h2"}],
                    "active_host": "h1",
                    "standby_host": "h2",
                },
                {
                    "name": "DATANODE",
                    "hosts": [
                        {"host_name": "h1"},
                        {"host_name": "h2"},
                        {"host_name": "h3", "healthy": False},
                    ],
                },
            ],
        },
    ],
    "config_revisions": [
        {
            "type": "zoo.cfg",
            "tag": "version1",
            "stack": "HDP-2.2",
            "properties": {
                "tickTime": "2000",
                "dataDir": "/data/zookeeper",
                "autopurge.purgeInterval": "24",
            },
        },
        {
            "type": "hdfs-site",
            "tag": "version1",
            "stack": "HDP-2.2",
            "properties": {
                "dfs.replication": "2",
                "dfs.blocksize": "134217728",
                "dfs.nameservices": "ns1",
            },
        },
    ],
    "desired_configs": {"zoo.cfg": "version1", "hdfs-site": "version1"},
}


PACK_DATA = {
    "name": "upgrade-2.3",
    "target": "2.3.*.*",
    "target_stack": "HDP-2.3",
    "type": "rolling",
    "groups": [
        {
            "name": "PRE_CLUSTER",
            "title": "Prepare {{direction.text.proper}}",
            "kind": "cluster",
            "cluster_tasks": [
                {
                    "type": "manual",
                    "summary": "Back up NameNode",
                    "messages": ["Back up NameNode data before {{direction.verb}} to {{version}}"],
                },
            ],
        },
        {
            "name": "ZOOKEEPER",
            "title": "ZooKeeper",
            "services": [{"service_name": "ZOOKEEPER", "components": ["ZOOKEEPER_SERVER"]}],
        },
        {
            "name": "CORE_MASTER",
            "title": "Core Masters",
            "services": [{"service_name": "HDFS", "components": ["NAMENODE"]}],
        },
        {
            "name": "CORE_SLAVES",
            "title": "Core Slaves",
            "kind": "colocated",
            "services": [{"service_name": "HDFS", "components": ["DATANODE"]}],
        },
        {
            "name": "SERVICE_CHECK",
            "title": "All Service Checks",
            "kind": "service-check",
            "services": [{"service_name": "ZOOKEEPER"}, {"service_name": "HDFS"}],
        },
        {
            "name": "FINALIZE",
            "title": "Finalize {{direction.text.proper}}",
            "kind": "cluster",
            "cluster_tasks": [{"type": "server-action", "summary": "Save cluster state"}],
        },
    ],
    "processing": {
        "ZOOKEEPER": {
            "ZOOKEEPER_SERVER": {"tasks": [{"type": "restart"}]},
        },
        "HDFS": {
            "NAMENODE": {
                "pre_tasks": [{"type": "execute", "summary": "Prepare NameNode"}],
                "tasks": [{"type": "restart"}],
            },
            "DATANODE": {"tasks": [{"type": "restart"}]},
        },
    },
}


NON_ROLLING_PACK_DATA = {
    "name": "nonrolling-upgrade-2.3",
    "target_stack": "HDP-2.3",
    "type": "non-rolling",
    "groups": [
        {
            "name": "STOP_HIGH_LEVEL",
            "title": "Stop Services",
            "kind": "stop",
            "services": [
                {"service_name": "ZOOKEEPER", "components": ["ZOOKEEPER_SERVER"]},
                {"service_name": "HDFS", "components": ["NAMENODE", "DATANODE"]},
            ],
        },
        {
            "name": "START_HIGH_LEVEL",
            "title": "Start Services",
            "kind": "start",
            "services": [
                {"service_name": "ZOOKEEPER", "components": ["ZOOKEEPER_SERVER"]},
                {"service_name": "HDFS", "components": ["NAMENODE", "DATANODE"]},
            ],
        },
        {
            "name": "SERVICE_CHECKS",
            "title": "Service Checks",
            "kind": "service-check",
            "services": [{"service_name": "ZOOKEEPER"}, {"service_name": "HDFS"}],
        },
    ],
}


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def stacks_data() -> dict:
    return copy.deepcopy(STACKS_DATA)


@pytest.fixture
def cluster_data() -> dict:
    return copy.deepcopy(CLUSTER_DATA)


@pytest.fixture
def pack_data() -> dict:
    return copy.deepcopy(PACK_DATA)


@pytest.fixture
def catalog(stacks_data: dict) -> StackCatalog:
    return StackCatalog.model_validate(stacks_data)


@pytest.fixture
def cluster(cluster_data: dict) -> Cluster:
    return Cluster.model_validate(cluster_data)


@pytest.fixture
def pack(pack_data: dict) -> UpgradePack:
    return UpgradePack.model_validate(pack_data)


@pytest.fixture
def non_rolling_pack() -> UpgradePack:
    return UpgradePack.model_validate(copy.deepcopy(NON_ROLLING_PACK_DATA))


@pytest.fixture
def make_context(cluster: Cluster, catalog: StackCatalog) -> Callable[..., UpgradeContext]:
    """Factory for upgrade contexts over the fixture cluster.

    Defaults to a complete HDP-2.2 → HDP-2.3 rolling upgrade of every
    installed service.
    """

    def _make(
        direction: Direction = Direction.UPGRADE,
        upgrade_type: UpgradeType = UpgradeType.ROLLING,
        source: str = SOURCE_VERSION,
        target: str = TARGET_VERSION,
        services: set[str] | None = None,
        scope: UpgradeScope = UpgradeScope.COMPLETE,
        resolver=None,
    ) -> UpgradeContext:
        return UpgradeContext(
            cluster=cluster,
            direction=direction,
            type=upgrade_type,
            resolver=resolver or ClusterHostResolver(cluster),
            source_repository=catalog.find_repository("HDP", source),
            target_repository=catalog.find_repository("HDP", target),
            supported_services=services if services is not None else {"ZOOKEEPER", "HDFS"},
            scope=scope,
        )

    return _make


@pytest.fixture
def workspace(tmp_path: Path, cluster_data: dict, stacks_data: dict, pack_data: dict) -> Path:
    """A directory holding cluster.yml, stacks.yml and packs/."""
    (tmp_path / "cluster.yml").write_text(yaml.safe_dump(cluster_data, sort_keys=False))
    (tmp_path / "stacks.yml").write_text(yaml.safe_dump(stacks_data, sort_keys=False))

    packs = tmp_path / "packs"
    packs.mkdir()
    (packs / "upgrade-2.3.yml").write_text(yaml.safe_dump(pack_data, sort_keys=False))
    (packs / "nonrolling-upgrade-2.3.yml").write_text(
        yaml.safe_dump(copy.deepcopy(NON_ROLLING_PACK_DATA), sort_keys=False)
    )
    return tmp_path
