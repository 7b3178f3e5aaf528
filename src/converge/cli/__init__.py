"""CLI entry point for ``converge``."""
