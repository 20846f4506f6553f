"""
Error taxonomy for planning and reconciliation.

Skipped components are not errors — see ``SkipReason`` in
``rollplan.core.engine.sequence``. Unresolvable placeholder tokens are
not errors either.
"""

from __future__ import annotations


class RollplanError(Exception):
    """Base class for all rollplan errors."""


class PlanningError(RollplanError):
    """Planning cannot produce a plan."""


class PlanningInputError(PlanningError):
    """No upgrade pack (or repository) matches the request, or more than one does."""


class StoreError(RollplanError):
    """A configuration store lookup or write failed."""


class MergeFatalError(RollplanError):
    """Configuration reconciliation failed; nothing was committed."""
