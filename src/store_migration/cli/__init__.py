"""Command-line interface for Store Bridge."""
