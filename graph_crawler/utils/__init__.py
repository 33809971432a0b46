"""Shared utilities: error types and logging setup."""
