"""
Direction and orchestration enums.

Direction carries the grammar used when rendering display text
(``{{direction.past.proper}}`` → "Upgraded"), so every form lives here
rather than being spelled out by callers.
"""

from __future__ import annotations

from enum import StrEnum


class Direction(StrEnum):
    """Which way the cluster is moving between repository versions."""

    UPGRADE = "UPGRADE"
    DOWNGRADE = "DOWNGRADE"

    @property
    def is_upgrade(self) -> bool:
        return self is Direction.UPGRADE

    @property
    def is_downgrade(self) -> bool:
        return self is Direction.DOWNGRADE

    def text(self, proper: bool = False) -> str:
        """upgrade / downgrade"""
        return _cased(self.value.lower(), proper)

    def past(self, proper: bool = False) -> str:
        """upgraded / downgraded"""
        return _cased(self.value.lower() + "d", proper)

    def plural(self, proper: bool = False) -> str:
        """upgrades / downgrades"""
        return _cased(self.value.lower() + "s", proper)

    def verb(self, proper: bool = False) -> str:
        """upgrading / downgrading"""
        return _cased(self.value.lower()[:-1] + "ing", proper)

    @property
    def preposition(self) -> str:
        return "to" if self.is_upgrade else "from"


class UpgradeType(StrEnum):
    """Orchestration strategy of an upgrade pack."""

    ROLLING = "ROLLING"
    NON_ROLLING = "NON_ROLLING"
    HOST_ORDERED = "HOST_ORDERED"


class UpgradeScope(StrEnum):
    """Which kind of upgrade a grouping applies to."""

    ANY = "ANY"
    COMPLETE = "COMPLETE"
    PARTIAL = "PARTIAL"


def _cased(word: str, proper: bool) -> str:
    return word.capitalize() if proper else word
