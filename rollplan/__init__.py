"""rollplan — upgrade sequence planning and configuration reconciliation."""

__version__ = "0.1.0"
