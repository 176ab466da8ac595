"""Core configuration, database, identity and error types."""
