"""
Cluster file persistence — atomic write of the cluster model.

The cluster is written back as YAML after a successful repository and
configuration transition. Writes are atomic (write to temp file, then
rename) so a crash mid-write never leaves a truncated cluster.yml.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml

from rollplan.core.models.cluster import Cluster

logger = logging.getLogger(__name__)


def save_cluster(cluster: Cluster, path: Path) -> None:
    """Save the cluster to a YAML file (atomic write).

    Args:
        cluster: The cluster to save.
        path: Target path for the cluster file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = cluster.model_dump(mode="json")
    content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    # Atomic write: temp file in same directory, then rename
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".cluster_",
            suffix=".tmp",
        )
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.replace(path)
            logger.debug("Cluster saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to save cluster to %s: %s", path, e)
        raise
