"""CLI configuration and output helpers."""
