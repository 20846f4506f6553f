"""
Tests for adapters — host resolution, metadata catalog and config store.
"""

import pytest

from rollplan.adapters import ClusterHostResolver, InMemoryConfigStore, StaticMetadataCatalog
from rollplan.core.errors import StoreError
from rollplan.core.models import StackId

HDP22 = StackId.parse("HDP-2.2")
HDP23 = StackId.parse("HDP-2.3")


class TestClusterHostResolver:
    def test_resolve_with_masters(self, cluster):
        hosts = ClusterHostResolver(cluster).resolve("HDFS", "NAMENODE")
        assert hosts.hosts == ["h1", "h2"]
        assert hosts.master == "h1"
        assert hosts.secondary == "h2"
        assert hosts.unhealthy == []

    def test_unhealthy(self, cluster):
        hosts = ClusterHostResolver(cluster).resolve("HDFS", "DATANODE")
        assert hosts.hosts == ["h1", "h2", "h3"]
        assert hosts.master is None
        assert hosts.unhealthy == ["h3"]

    def test_master_not_on_component(self, cluster):
        cluster.get_service("HDFS").get_component("NAMENODE").active_host = "h9"
        assert ClusterHostResolver(cluster).resolve("HDFS", "NAMENODE").master is None

    def test_unresolvable(self, cluster):
        resolver = ClusterHostResolver(cluster)
        assert resolver.resolve("YARN", "RESOURCEMANAGER") is None
        assert resolver.resolve("HDFS", "JOURNALNODE") is None

    def test_namenode_ha(self, cluster):
        resolver = ClusterHostResolver(cluster)
        assert resolver.is_namenode_ha()

        del cluster.get_revision("hdfs-site", "version1").properties["dfs.nameservices"]
        assert not resolver.is_namenode_ha()

        cluster.get_revision("hdfs-site", "version1").properties["dfs.internal.nameservices"] = "ns1"
        assert resolver.is_namenode_ha()


class TestStaticMetadataCatalog:
    def test_display_names(self, catalog):
        metadata = StaticMetadataCatalog(catalog)
        assert metadata.get_display_name(HDP22, "ZOOKEEPER") == "ZooKeeper"
        assert metadata.get_component_display_name(HDP22, "HDFS", "DATANODE") == "DataNode"

    def test_display_name_falls_back_to_name(self, catalog):
        catalog.stacks["HDP-2.2"].services["HDFS"].display_name = ""
        assert StaticMetadataCatalog(catalog).get_display_name(HDP22, "HDFS") == "HDFS"

    def test_version_advertised(self, catalog):
        metadata = StaticMetadataCatalog(catalog)
        assert metadata.is_version_advertised(HDP23, "ZOOKEEPER", "ZOOKEEPER_SERVER")
        assert not metadata.is_version_advertised(HDP23, "ZOOKEEPER", "ZOOKEEPER_CLIENT")

    def test_unknown_raises_lookup_error(self, catalog):
        metadata = StaticMetadataCatalog(catalog)
        with pytest.raises(LookupError):
            metadata.get_display_name(HDP22, "YARN")
        with pytest.raises(LookupError):
            metadata.is_version_advertised(StackId.parse("HDP-9.9"), "HDFS", "NAMENODE")
        with pytest.raises(LookupError):
            metadata.get_component_display_name(HDP22, "HDFS", "JOURNALNODE")


class TestInMemoryConfigStore:
    def test_default_properties_are_copies(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        defaults = store.get_default_properties(HDP22, "ZOOKEEPER")
        defaults["zoo.cfg"]["tickTime"] = "1"
        assert store.get_default_properties(HDP22, "ZOOKEEPER")["zoo.cfg"]["tickTime"] == "2000"

    def test_default_properties_unknown_service(self, cluster, catalog):
        assert InMemoryConfigStore(cluster, catalog).get_default_properties(HDP22, "YARN") == {}

    def test_default_properties_unknown_stack(self, cluster, catalog):
        with pytest.raises(StoreError):
            InMemoryConfigStore(cluster, catalog).get_default_properties(
                StackId.parse("HDP-9.9"), "HDFS"
            )

    def test_live_config(self, cluster, catalog):
        live = InMemoryConfigStore(cluster, catalog).get_live_config("ZOOKEEPER")
        assert live == [("zoo.cfg", {
            "tickTime": "2000",
            "dataDir": "/data/zookeeper",
            "autopurge.purgeInterval": "24",
        })]

    def test_live_config_unknown_service(self, cluster, catalog):
        with pytest.raises(StoreError):
            InMemoryConfigStore(cluster, catalog).get_live_config("YARN")

    def test_create_config_types(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        store.create_config_types(
            cluster, HDP23, {"zoo.cfg": {"tickTime": "3000"}}, "admin", "note", "ZOOKEEPER"
        )

        revision = cluster.desired_config("zoo.cfg")
        assert revision.tag == "version2"
        assert revision.stack == "HDP-2.3"
        assert revision.properties == {"tickTime": "3000"}

    def test_apply_latest_configurations(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        store.create_config_types(cluster, HDP23, {"zoo.cfg": {"a": "1"}}, "admin", "", "ZOOKEEPER")
        store.create_config_types(cluster, HDP22, {"zoo.cfg": {"b": "2"}}, "admin", "", "ZOOKEEPER")
        store.create_config_types(cluster, HDP23, {"zoo.cfg": {"c": "3"}}, "admin", "", "ZOOKEEPER")

        store.apply_latest_configurations(HDP22, "ZOOKEEPER")
        assert cluster.desired_config("zoo.cfg").tag == "version3"

        store.apply_latest_configurations(HDP23, "ZOOKEEPER")
        assert cluster.desired_config("zoo.cfg").tag == "version4"

    def test_apply_latest_without_revision_leaves_selection(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        store.apply_latest_configurations(HDP23, "ZOOKEEPER")
        assert cluster.desired_config("zoo.cfg").tag == "version1"

    def test_placeholder_value(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        assert store.get_placeholder_value(cluster, "{{hdfs-site/dfs.replication}}") == "2"
        assert store.get_placeholder_value(cluster, "{{hdfs-site/nope}}") is None
        assert store.get_placeholder_value(cluster, "{{no-slash}}") is None


class TestTransactions:
    def test_commit(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        with store.transaction():
            store.create_config_types(cluster, HDP23, {"zoo.cfg": {}}, "admin", "")
        assert cluster.desired_config("zoo.cfg").tag == "version2"

    def test_rollback(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)
        before = cluster.model_copy(deep=True)

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.create_config_types(cluster, HDP23, {"zoo.cfg": {}}, "admin", "")
                cluster.get_service("HDFS").client_only = True
                raise RuntimeError("boom")

        assert cluster == before

    def test_nested_rolls_back_to_outermost(self, cluster, catalog):
        store = InMemoryConfigStore(cluster, catalog)

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.create_config_types(cluster, HDP23, {"zoo.cfg": {}}, "admin", "")
                with store.transaction():
                    store.create_config_types(cluster, HDP23, {"hdfs-site": {}}, "admin", "")
                raise RuntimeError("boom")

        assert cluster.desired_config("zoo.cfg").tag == "version1"
        assert cluster.desired_config("hdfs-site").tag == "version1"
        assert len(cluster.config_revisions) == 2
