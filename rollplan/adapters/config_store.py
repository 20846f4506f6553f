"""
In-memory config store — ConfigStore over the cluster model.

Revisions are appended to ``cluster.config_revisions`` and selected via
``cluster.desired_configs``. Stack defaults come from the stack catalog.

Transactions snapshot the whole cluster and restore it if the block
raises, so a failed reconciliation leaves no partial revisions behind.
Callers persist the cluster (``save_cluster``) after a successful run.
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager

from rollplan.adapters.base import ConfigMap, ConfigStore
from rollplan.core.errors import StoreError
from rollplan.core.models.catalog import StackCatalog
from rollplan.core.models.cluster import Cluster, ConfigRevision, StackId

logger = logging.getLogger(__name__)

_VERSION_TAG = re.compile(r"^version(\d+)$")


class InMemoryConfigStore(ConfigStore):
    """ConfigStore holding state on a ``Cluster`` instance."""

    def __init__(self, cluster: Cluster, catalog: StackCatalog):
        self._cluster = cluster
        self._catalog = catalog
        self._depth = 0

    @property
    def cluster(self) -> Cluster:
        return self._cluster

    # ── Reads ────────────────────────────────────────────────────

    def get_default_properties(self, stack_id: StackId, service_name: str) -> ConfigMap:
        stack = self._catalog.get_stack(stack_id)
        if stack is None:
            raise StoreError(f"No stack definition for {stack_id}")
        info = stack.services.get(service_name)
        if info is None:
            return {}
        return copy.deepcopy(info.configurations)

    def get_live_config(self, service_name: str) -> list[tuple[str, dict[str, str | None]]]:
        service = self._cluster.get_service(service_name)
        if service is None:
            raise StoreError(f"Service {service_name} is not installed in {self._cluster.name}")

        live: list[tuple[str, dict[str, str | None]]] = []
        for config_type in service.config_types:
            revision = self._cluster.desired_config(config_type)
            if revision is None:
                logger.debug("No desired configuration for %s (%s)", config_type, service_name)
                continue
            live.append((config_type, dict(revision.properties)))
        return live

    def get_placeholder_value(self, cluster: Cluster, token: str) -> str | None:
        key = token.strip()
        if key.startswith("{{") and key.endswith("}}"):
            key = key[2:-2]
        config_type, sep, prop = key.partition("/")
        if not sep or not config_type or not prop:
            return None
        return cluster.desired_properties(config_type).get(prop)

    # ── Writes ───────────────────────────────────────────────────

    def apply_latest_configurations(self, stack_id: StackId, service_name: str) -> None:
        service = self._cluster.get_service(service_name)
        if service is None:
            raise StoreError(f"Service {service_name} is not installed in {self._cluster.name}")

        stack = str(stack_id)
        for config_type in service.config_types:
            latest: ConfigRevision | None = None
            for revision in self._cluster.config_revisions:
                if revision.type == config_type and revision.stack == stack:
                    latest = revision
            if latest is None:
                logger.warning(
                    "No %s revision exists for stack %s; leaving it unchanged", config_type, stack
                )
                continue
            self._cluster.desired_configs[config_type] = latest.tag
            logger.debug("Selected %s/%s for %s", config_type, latest.tag, service_name)

    def create_config_types(
        self,
        cluster: Cluster,
        stack_id: StackId,
        configs: ConfigMap,
        actor: str,
        comment: str,
        service_name: str = "",
    ) -> None:
        for config_type, properties in configs.items():
            revision = ConfigRevision(
                type=config_type,
                tag=_next_tag(cluster, config_type),
                stack=str(stack_id),
                service_name=service_name,
                properties=dict(properties),
                created_by=actor,
                note=comment,
            )
            cluster.config_revisions.append(revision)
            cluster.desired_configs[config_type] = revision.tag
            logger.debug("Created %s/%s for stack %s", config_type, revision.tag, stack_id)

    # ── Transactions ─────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            # nested: the outermost transaction owns the snapshot
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = self._cluster.model_copy(deep=True)
        self._depth = 1
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            logger.debug("Transaction rolled back for cluster %s", self._cluster.name)
            raise
        finally:
            self._depth = 0

    def _restore(self, snapshot: Cluster) -> None:
        for name in type(self._cluster).model_fields:
            setattr(self._cluster, name, getattr(snapshot, name))


def _next_tag(cluster: Cluster, config_type: str) -> str:
    """``version{N}`` above every existing tag of ``config_type``."""
    used = {r.tag for r in cluster.config_revisions if r.type == config_type}
    numbers = [int(m.group(1)) for m in map(_VERSION_TAG.match, used) if m]
    return f"version{max(numbers, default=0) + 1}"
