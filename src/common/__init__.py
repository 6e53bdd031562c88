"""Shared helpers: structured logging and HTTP access."""
