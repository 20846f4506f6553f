"""Cluster file and audit ledger persistence."""
