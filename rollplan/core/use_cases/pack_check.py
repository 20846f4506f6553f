"""
Pack check use case — validate an upgrade pack file and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rollplan.core.config.pack_loader import load_upgrade_pack
from rollplan.core.config.loader import ConfigError
from rollplan.core.models.direction import UpgradeType
from rollplan.core.models.pack import GroupKind, UpgradePack


@dataclass
class PackCheckResult:
    """Result of upgrade pack validation."""

    valid: bool = False
    pack: UpgradePack | None = None
    path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "path": str(self.path) if self.path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "pack_name": self.pack.name if self.pack else None,
            "type": self.pack.type.value if self.pack else None,
            "group_count": len(self.pack.groups) if self.pack else 0,
        }


def check_pack(path: Path) -> PackCheckResult:
    """Validate an upgrade pack and report issues.

    Returns:
        PackCheckResult with validation status and any issues.
    """
    result = PackCheckResult(path=path)

    try:
        pack = load_upgrade_pack(path)
        result.pack = pack
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if not pack.groups:
        result.warnings.append("No groups defined. The pack plans nothing.")

    # Duplicate group names
    names = [g.name for g in pack.groups]
    dupes = {n for n in names if names.count(n) > 1}
    if dupes:
        result.errors.append(f"Duplicate group names: {', '.join(sorted(dupes))}")

    for group in pack.groups + (pack.downgrade_groups or []):
        if group.kind is GroupKind.CLUSTER:
            if not group.cluster_tasks:
                result.warnings.append(f"Cluster group '{group.name}' has no cluster tasks.")
            continue

        if not group.services:
            result.warnings.append(f"Group '{group.name}' lists no services.")

        # Rolling packs skip anything without a processing entry
        if pack.type is not UpgradeType.ROLLING or group.is_service_check:
            continue
        for order in group.services:
            if not pack.has_service(order.service_name):
                result.warnings.append(
                    f"Group '{group.name}': service {order.service_name} has no processing "
                    "entry and will be skipped."
                )
                continue
            for component in order.components:
                if pack.get_processing(order.service_name, component) is None:
                    result.warnings.append(
                        f"Group '{group.name}': component {order.service_name}/{component} "
                        "has no processing entry and will be skipped."
                    )

    result.valid = len(result.errors) == 0
    return result
