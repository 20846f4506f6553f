"""Planning and reconciliation engine."""
