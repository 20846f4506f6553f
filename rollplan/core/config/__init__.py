"""Input file loading: cluster, stack catalog and upgrade packs."""
