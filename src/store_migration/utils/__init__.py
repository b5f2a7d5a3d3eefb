"""Shared utilities: logging and retry helpers."""
