"""Core domain: models, engine, config loading, persistence, use cases."""
