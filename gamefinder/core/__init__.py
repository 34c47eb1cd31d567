"""Core infrastructure: configuration, logging and result types."""
